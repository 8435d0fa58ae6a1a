"""Condition poller — fixed-interval synchronization against the remote UI.

The remote UI is a single-page application: after almost every navigation
or form action the DOM is in flux for a short, unbounded time. Instead of
sleeping, every pause waits for an explicit ``WaitCondition``.

Usage::

    poller = ConditionPoller(timeout=20.0, poll_interval=0.5)
    poller.wait_for(element_present(session, Selector.parse(".pmt-form")))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from string import Template
from typing import Callable

from raiffcli.browser.session import RemoteSession, Selector
from raiffcli.exceptions import (
    ElementNotFoundError,
    ElementNotInteractableError,
    ElementPresenceTimeout,
    ElementVisibilityTimeout,
    StaleElementError,
    SynchronizationTimeout,
    ViewBindingTimeout,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20.0
DEFAULT_POLL_INTERVAL = 0.5

# Errors that mean the DOM is still settling. Anything else propagates.
INSPECTION_ERRORS = (StaleElementError, ElementNotFoundError, ElementNotInteractableError)


@dataclass(frozen=True)
class WaitCondition:
    """A predicate over the remote session plus its timing.

    ``timeout`` and ``poll_interval`` left as ``None`` fall back to the
    poller's defaults.
    """

    description: str
    predicate: Callable[[], bool]
    timeout: float | None = None
    poll_interval: float | None = None
    timeout_error: type[SynchronizationTimeout] = SynchronizationTimeout


class ConditionPoller:
    """Evaluates wait conditions at a fixed interval until met or timed out.

    Args:
        timeout: Default timeout in seconds.
        poll_interval: Default interval between evaluations in seconds.
        sleep: Sleep function (injectable for tests).
        clock: Monotonic clock (injectable for tests).
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def wait_for(self, condition: WaitCondition) -> None:
        """Block until *condition* holds.

        Recoverable inspection errors raised by the predicate (stale or
        vanished or not yet interactable elements while the DOM is being
        replaced) count as "not yet met". Any other error, including a terminal
        ``RemoteSessionError`` or an invalid selector, propagates immediately.

        Raises:
            SynchronizationTimeout: The condition's ``timeout_error`` subclass,
                when the deadline passes. Never retried here.
        """
        timeout = self.timeout if condition.timeout is None else condition.timeout
        interval = self.poll_interval if condition.poll_interval is None else condition.poll_interval
        deadline = self._clock() + timeout
        polls = 0

        while True:
            polls += 1
            try:
                if condition.predicate():
                    logger.debug("Condition met after %d poll(s): %s", polls, condition.description)
                    return
            except INSPECTION_ERRORS as exc:
                logger.debug("Inspection error while waiting for %s: %s", condition.description, exc)

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise condition.timeout_error(condition.description, timeout)
            self._sleep(min(interval, remaining))


# ---------------------------------------------------------------------------
# Condition factories
# ---------------------------------------------------------------------------


def element_present(
    session: RemoteSession,
    selector: Selector,
    *,
    present: bool = True,
    timeout: float | None = None,
    poll_interval: float | None = None,
) -> WaitCondition:
    """Wait for *selector* to appear in (or, with ``present=False``, leave) the DOM."""

    def _check() -> bool:
        return bool(session.find_all(selector)) == present

    return WaitCondition(
        description=f"element {selector} to be {'present' if present else 'absent'}",
        predicate=_check,
        timeout=timeout,
        poll_interval=poll_interval,
        timeout_error=ElementPresenceTimeout,
    )


def element_visible(
    session: RemoteSession,
    selector: Selector,
    *,
    visible: bool = True,
    timeout: float | None = None,
    poll_interval: float | None = None,
) -> WaitCondition:
    """Wait for *selector* to become visible (or hidden).

    Duplicates of an element are common (mobile variants, sticky footers):
    the element counts as visible when any match is visible. A missing
    element counts as hidden.
    """

    def _any_visible() -> bool:
        for element in session.find_all(selector):
            try:
                if element.is_visible():
                    return True
            except (StaleElementError, ElementNotFoundError):
                # Vanished mid-check.
                continue
        return False

    def _check() -> bool:
        return _any_visible() == visible

    return WaitCondition(
        description=f"element {selector} to be {'visible' if visible else 'hidden'}",
        predicate=_check,
        timeout=timeout,
        poll_interval=poll_interval,
        timeout_error=ElementVisibilityTimeout,
    )


def view_bound(
    session: RemoteSession,
    xpath: str,
    view_model: str,
    script: Template,
    *,
    timeout: float | None = None,
    poll_interval: float | None = None,
) -> WaitCondition:
    """Wait for the element at *xpath* to have the client-side *view_model* bound.

    Buttons can be rendered before their click handlers are attached; this
    probes the page's view-binding framework through *script*, a template
    with ``$xpath`` and ``$view_model`` placeholders that evaluates to a
    boolean.
    """
    probe = script.substitute(xpath=xpath.replace("'", "\\'"), view_model=view_model)

    def _check() -> bool:
        return session.evaluate(probe) is True

    return WaitCondition(
        description=f"element xpath={xpath} to have view model {view_model}",
        predicate=_check,
        timeout=timeout,
        poll_interval=poll_interval,
        timeout_error=ViewBindingTimeout,
    )
