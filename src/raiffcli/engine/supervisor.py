"""Recovery supervisor — bounded retries for transient remote-UI obstructions.

Marketing banners, security warnings and DOM re-renders can interrupt any
interaction. Every remote action that may hit one is run through
``RecoverySupervisor.perform``: on a recognized transient failure the
matching recovery routine runs (e.g. "close any open dialog") and the
action is re-invoked from scratch. Anything not recognized propagates
immediately.

Usage::

    policy = RecoveryPolicy().register("ClickObscuredError", ui.close_dialog)
    supervisor = RecoverySupervisor(policy, max_attempts=3)
    supervisor.perform(lambda: link.click(), description="click 'Transfers'")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, TypeVar

from raiffcli.exceptions import ActionExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _no_recovery() -> None:
    """Recovery routine for failures that only need a fresh attempt."""


@dataclass(frozen=True)
class RecoveryRule:
    """Maps a failure signature to a recovery routine.

    ``signature`` is either an exception class (subclasses match too) or
    the name of an exception class anywhere in the raised error's MRO,
    so rules can be declared in configuration.
    """

    signature: str | type[BaseException]
    recover: Callable[[], None] = _no_recovery

    def matches(self, exc: BaseException) -> bool:
        if isinstance(self.signature, str):
            return any(cls.__name__ == self.signature for cls in type(exc).__mro__)
        return isinstance(exc, self.signature)


class RecoveryPolicy:
    """Ordered set of recovery rules; the first matching rule wins.

    Policies are stateless configuration. ``register`` and ``extend``
    return new policies so a shared base policy is never mutated.
    """

    def __init__(self, rules: Iterable[RecoveryRule] = ()) -> None:
        self._rules: tuple[RecoveryRule, ...] = tuple(rules)

    @classmethod
    def from_names(cls, names: Iterable[str], recover: Callable[[], None] = _no_recovery) -> "RecoveryPolicy":
        """Build a policy where every named exception class triggers *recover*."""
        return cls(RecoveryRule(name, recover) for name in names)

    def register(
        self,
        signature: str | type[BaseException],
        recover: Callable[[], None] = _no_recovery,
    ) -> "RecoveryPolicy":
        """Return a policy with one more rule appended."""
        return RecoveryPolicy((*self._rules, RecoveryRule(signature, recover)))

    def extend(self, other: "RecoveryPolicy") -> "RecoveryPolicy":
        """Return a policy with *other*'s rules appended."""
        return RecoveryPolicy((*self._rules, *other.rules))

    @property
    def rules(self) -> tuple[RecoveryRule, ...]:
        return self._rules

    def match(self, exc: BaseException) -> RecoveryRule | None:
        """Return the rule for *exc*, or ``None`` if it is not transient."""
        for rule in self._rules:
            if rule.matches(exc):
                return rule
        return None


class RecoverySupervisor:
    """Runs actions under a recovery policy with a bounded attempt count.

    Args:
        policy: Default recovery policy.
        max_attempts: Default number of attempts (1 = no retries).
    """

    def __init__(self, policy: RecoveryPolicy | None = None, *, max_attempts: int = 3) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.policy = policy or RecoveryPolicy()
        self.max_attempts = max_attempts

    def perform(
        self,
        action: Callable[[], T],
        *,
        description: str = "remote action",
        policy: RecoveryPolicy | None = None,
        max_attempts: int | None = None,
    ) -> T:
        """Execute *action*, recovering from transient failures.

        Args:
            action: Zero-argument callable performing the remote interaction.
            description: Used in log lines and in ``ActionExhausted``.
            policy: Override the default policy for this call.
            max_attempts: Override the default attempt count for this call.

        Returns:
            Whatever *action* returns.

        Raises:
            ActionExhausted: After ``max_attempts`` consecutive transient failures.
            Exception: Any non-transient failure, unchanged and without retry.
        """
        active_policy = policy or self.policy
        attempts = max_attempts or self.max_attempts

        for attempt in range(1, attempts + 1):
            try:
                return action()
            except Exception as exc:
                rule = active_policy.match(exc)
                if rule is None:
                    raise
                if attempt >= attempts:
                    logger.warning("%s: giving up after %d attempts (%s)", description, attempt, exc)
                    raise ActionExhausted(description, attempt, exc) from exc
                logger.info(
                    "%s: transient %s on attempt %d/%d, recovering",
                    description,
                    type(exc).__name__,
                    attempt,
                    attempts,
                )
                rule.recover()

        raise AssertionError("max_attempts must be at least 1")
