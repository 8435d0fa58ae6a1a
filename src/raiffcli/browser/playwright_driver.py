"""Playwright-backed remote session (lightweight, headless).

Uses the synchronous Playwright API with a single page. Navigation falls
back from ``load`` to ``domcontentloaded`` when the stricter strategy
times out, since the banking UI keeps long-polling connections open.

Requires ``playwright install chromium`` to have been run at least once.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Literal

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout

from raiffcli.browser.session import RemoteElement, RemoteSession, Selector
from raiffcli.exceptions import (
    ClickObscuredError,
    ElementNotInteractableError,
    RemoteInteractionError,
    RemoteSessionError,
    StaleElementError,
)

logger = logging.getLogger(__name__)

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]

_NAVIGATION_STRATEGIES: list[WaitUntil] = ["load", "domcontentloaded"]

# Playwright error substrings, checked in order.
_ERROR_SIGNATURES: tuple[tuple[str, type[RemoteInteractionError]], ...] = (
    ("Target page, context or browser has been closed", RemoteSessionError),
    ("Target closed", RemoteSessionError),
    ("Browser has been closed", RemoteSessionError),
    ("intercepts pointer events", ClickObscuredError),
    ("not attached to the DOM", StaleElementError),
    ("Element is detached", StaleElementError),
    ("JSHandle is disposed", StaleElementError),
    ("Execution context was destroyed", StaleElementError),
    ("element is not visible", ElementNotInteractableError),
    ("element is not enabled", ElementNotInteractableError),
)


def translate_error(exc: PlaywrightError) -> RemoteInteractionError:
    """Map a Playwright error onto the driver-independent hierarchy."""
    message = str(exc)
    for needle, error_cls in _ERROR_SIGNATURES:
        if needle in message:
            return error_cls(message)
    if isinstance(exc, PlaywrightTimeout):
        return ElementNotInteractableError(message)
    return RemoteInteractionError(message)


@contextmanager
def _translated() -> Iterator[None]:
    try:
        yield
    except PlaywrightError as exc:
        raise translate_error(exc) from exc


def _query(selector: Selector) -> str:
    return f"xpath={selector.value}" if selector.engine == "xpath" else selector.value


class PlaywrightElement(RemoteElement):
    """Wraps a Playwright ``ElementHandle``."""

    def __init__(self, handle: Any, action_timeout_ms: int) -> None:
        self._handle = handle
        self._timeout = action_timeout_ms

    def click(self) -> None:
        with _translated():
            self._handle.click(timeout=self._timeout)

    def set_value(self, value: str) -> None:
        with _translated():
            self._handle.fill(value, timeout=self._timeout)

    def select_option(self, *, value: str | None = None, label: str | None = None) -> None:
        with _translated():
            if value is not None:
                self._handle.select_option(value=value, timeout=self._timeout)
            else:
                self._handle.select_option(label=label, timeout=self._timeout)

    def is_visible(self) -> bool:
        with _translated():
            return bool(self._handle.is_visible())

    def text(self) -> str:
        with _translated():
            return self._handle.inner_text() or ""

    def find_all(self, selector: Selector) -> list[RemoteElement]:
        with _translated():
            handles = self._handle.query_selector_all(_query(selector))
        return [PlaywrightElement(h, self._timeout) for h in handles]


class PlaywrightSession(RemoteSession):
    """Remote session driving a local headless browser through Playwright.

    Args:
        browser_name: ``chromium``, ``firefox`` or ``webkit``.
        headless: Run without a visible window.
        action_timeout_ms: Per-action timeout for clicks and form input.
        navigation_timeout_ms: Per-attempt timeout for page loads.
    """

    def __init__(
        self,
        *,
        browser_name: str = "chromium",
        headless: bool = True,
        action_timeout_ms: int = 5_000,
        navigation_timeout_ms: int = 30_000,
    ) -> None:
        self._browser_name = browser_name
        self._headless = headless
        self._action_timeout = action_timeout_ms
        self._navigation_timeout = navigation_timeout_ms
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Any = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Launch the browser and open a blank page."""
        from playwright.sync_api import sync_playwright

        self._playwright = sync_playwright().start()
        launcher = getattr(self._playwright, self._browser_name)
        self._browser = launcher.launch(headless=self._headless)
        self._page = self._browser.new_page()
        logger.info("Playwright %s started (headless=%s)", self._browser_name, self._headless)

    def close(self) -> None:
        """Shut down the browser cleanly."""
        try:
            if self._browser is not None:
                self._browser.close()
        except PlaywrightError as e:
            logger.warning("Browser close error (non-fatal): %s", e)
        finally:
            if self._playwright is not None:
                self._playwright.stop()
            self._playwright = None
            self._browser = None
            self._page = None
        logger.info("Playwright session closed")

    @property
    def page(self) -> Any:
        if self._page is None:
            raise RemoteSessionError("Browser not started. Call start() first.")
        return self._page

    # ------------------------------------------------------------------
    # RemoteSession interface
    # ------------------------------------------------------------------

    def open(self, url: str) -> None:
        """Navigate to *url*, relaxing the wait strategy on timeout."""
        last_error: PlaywrightTimeout | None = None
        for strategy in _NAVIGATION_STRATEGIES:
            try:
                logger.debug("goto %s (wait_until=%s)", url, strategy)
                self.page.goto(url, wait_until=strategy, timeout=self._navigation_timeout)
                return
            except PlaywrightTimeout as exc:
                logger.warning("Navigation to %s timed out with wait_until=%s", url, strategy)
                last_error = exc
            except PlaywrightError as exc:
                raise RemoteSessionError(f"Navigation to {url} failed: {exc}") from exc
        raise RemoteSessionError(f"Navigation to {url} timed out: {last_error}")

    def find_all(self, selector: Selector) -> list[RemoteElement]:
        with _translated():
            handles = self.page.query_selector_all(_query(selector))
        return [PlaywrightElement(h, self._action_timeout) for h in handles]

    def evaluate(self, script: str) -> Any:
        with _translated():
            return self.page.evaluate(script)
