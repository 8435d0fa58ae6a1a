"""raiffcli exception hierarchy.

Four families live here:

* **Synchronization timeouts** raised by the condition poller when the
  remote UI never reaches an expected state.
* **Driver-level interaction failures** that every ``RemoteSession``
  implementation translates its native errors into, so the engine never
  depends on Playwright or Selenium exception types.
* **Engine failures** (retries exhausted, batch aborted, challenge rejected).
* **Storage and configuration failures**.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from raiffcli.models.execution import BatchRunResult
    from raiffcli.models.transaction import TransactionRequest


class RaiffCliError(Exception):
    """Base exception for all raiffcli-specific errors."""


# ---------------------------------------------------------------------------
# Synchronization timeouts
# ---------------------------------------------------------------------------


class SynchronizationTimeout(RaiffCliError):
    """Raised when a wait condition is not satisfied before its deadline.

    Attributes:
        description: Human-readable description of the condition (usually
            including the selector).
        timeout: The configured timeout in seconds.
    """

    verb = "satisfied"

    def __init__(self, description: str, timeout: float) -> None:
        self.description = description
        self.timeout = timeout
        super().__init__(f"Condition not {self.verb} within {timeout:g}s: {description}")


class ElementPresenceTimeout(SynchronizationTimeout):
    """An element did not appear in (or disappear from) the DOM in time."""

    verb = "met (presence)"


class ElementVisibilityTimeout(SynchronizationTimeout):
    """An element did not become visible (or hidden) in time."""

    verb = "met (visibility)"


class ViewBindingTimeout(SynchronizationTimeout):
    """An element never received the expected client-side view model."""

    verb = "met (view binding)"


# ---------------------------------------------------------------------------
# Driver-level interaction failures
# ---------------------------------------------------------------------------


class RemoteInteractionError(RaiffCliError):
    """Base class for failures while interacting with the remote UI."""


class ClickObscuredError(RemoteInteractionError):
    """The click target is covered by another element such as a dialog."""


class StaleElementError(RemoteInteractionError):
    """The element was detached from the DOM while interacting with it."""


class ElementNotInteractableError(RemoteInteractionError):
    """The element exists but cannot be interacted with yet (e.g. fading in)."""


class ElementNotFoundError(RemoteInteractionError):
    """No element matches the selector."""

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"No element matches selector {selector!r}")


class RemoteSessionError(RemoteInteractionError):
    """The remote session itself is gone (browser closed, driver unreachable).

    This is terminal: wait loops propagate it immediately instead of
    treating it as "condition not yet met".
    """


# ---------------------------------------------------------------------------
# Engine failures
# ---------------------------------------------------------------------------


class ActionExhausted(RaiffCliError):
    """A supervised action kept failing with transient errors.

    Attributes:
        action: Description of the supervised action.
        attempts: Number of attempts made.
        last_error: The transient error raised by the final attempt.
    """

    def __init__(self, action: str, attempts: int, last_error: BaseException) -> None:
        self.action = action
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{action} failed after {attempts} attempts: "
            f"{type(last_error).__name__}: {last_error}"
        )


class BatchExecutionError(RaiffCliError):
    """A transaction in a batch failed; the rest of the batch was not attempted.

    Attributes:
        operation: The operation kind of the batch (e.g. ``transfer-domestic``).
        index: Zero-based position of the failed transaction in the batch.
        transaction: The failed transaction.
        cause: The underlying error.
        result: The partial run result (confirmed transactions included).
    """

    def __init__(
        self,
        operation: str,
        index: int,
        transaction: TransactionRequest,
        cause: BaseException,
        result: BatchRunResult | None = None,
    ) -> None:
        self.operation = operation
        self.index = index
        self.transaction = transaction
        self.cause = cause
        self.result = result
        super().__init__(
            f"{operation}: transaction {index + 1} to {transaction.recipient.name} "
            f"({transaction.amount} {transaction.currency}) failed: "
            f"{type(cause).__name__}: {cause}"
        )


class ChallengeRejected(RaiffCliError):
    """The remote system did not accept a challenge response.

    Attributes:
        messages: Messages shown by the remote UI, verbatim.
    """

    def __init__(self, messages: list[str]) -> None:
        self.messages = messages
        detail = "; ".join(messages) if messages else "no message shown by the remote UI"
        super().__init__(f"Challenge response was not accepted: {detail}")


class TransferAborted(RaiffCliError):
    """The operator declined to proceed."""


# ---------------------------------------------------------------------------
# Storage and configuration
# ---------------------------------------------------------------------------


class QueueCorrupt(RaiffCliError):
    """A persisted queue or address book file cannot be parsed.

    Distinct from an empty queue: callers must never fall back to an
    assumed-empty batch when they see this.
    """

    def __init__(self, path: Any, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Stored data in {path} is unreadable: {reason}")


class ConfigurationError(RaiffCliError):
    """Required configuration (credentials, accounts, driver) is missing or invalid."""
