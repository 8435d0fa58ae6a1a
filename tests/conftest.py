"""raiffcli test configuration — shared fixtures for unit and integration tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from raiffcli.browser.session import RemoteElement, RemoteSession, Selector
from raiffcli.engine.poller import ConditionPoller
from raiffcli.models.transaction import Recipient, TransactionRequest
from raiffcli.ui.profile import UIProfile
from raiffcli.ui.remote_ui import RemoteUI


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from raiffcli.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    """Point ``storage.data_dir`` at a temporary directory."""
    path = tmp_path / "data"
    monkeypatch.setenv("RAIFF_STORAGE__DATA_DIR", str(path))
    return path


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture()
def queue_store(tmp_path: Path):
    """Create a disposable ``TransactionQueueStore`` in a temporary directory."""
    from raiffcli.store.queue_store import TransactionQueueStore

    return TransactionQueueStore(tmp_path / "queue")


@pytest.fixture()
def make_transaction() -> Callable[..., TransactionRequest]:
    """Build a domestic transaction with overridable fields."""

    def _make(
        name: str = "Jane Doe",
        iban: str = "BG00TEST00000000000",
        amount: str = "100.00",
        currency: str = "BGN",
        description: str = "rent",
        **extra: Any,
    ) -> TransactionRequest:
        return TransactionRequest(
            recipient=Recipient(name=name, iban=iban),
            amount=amount,
            currency=currency,
            description=description,
            **extra,
        )

    return _make


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def poller(fake_clock: FakeClock) -> ConditionPoller:
    """A poller with the production defaults that never really sleeps."""
    return ConditionPoller(timeout=20.0, poll_interval=0.5, sleep=fake_clock.sleep, clock=fake_clock)


# ---------------------------------------------------------------------------
# Scripted remote session
# ---------------------------------------------------------------------------


class FakeElement(RemoteElement):
    """Element of a ``FakeSession``; records every interaction on the session."""

    def __init__(self, session: "FakeSession", selector: str) -> None:
        self.session = session
        self.selector = selector

    def click(self) -> None:
        self.session.clicks.append(self.selector)
        errors = self.session.click_errors.get(self.selector)
        if errors:
            raise errors.pop(0)
        if self.session.on_click is not None:
            self.session.on_click(self.selector)

    def set_value(self, value: str) -> None:
        self.session.values[self.selector] = value

    def select_option(self, *, value: str | None = None, label: str | None = None) -> None:
        self.session.selections[self.selector] = value if value is not None else label

    def is_visible(self) -> bool:
        return self.selector not in self.session.hidden

    def text(self) -> str:
        return self.session.texts.get(self.selector, "")

    def find_all(self, selector: Selector) -> list[RemoteElement]:
        return self.session.find_all(selector)


class FakeSession(RemoteSession):
    """In-memory remote UI where every selector matches one visible element.

    Selectors listed in ``absent`` match nothing; those in ``hidden`` match
    an invisible element. Overlays, dialogs and backdrops of the profile
    start out absent, as on a settled page.
    """

    def __init__(self, profile: UIProfile) -> None:
        nav = profile.navigation
        self.absent: set[str] = {
            nav.loading_overlay,
            nav.dialog_close_button,
            nav.campaign_dialog,
            profile.account_chooser.modal_backdrop,
            profile.foreign.operation_dialog,
            profile.signing.declaration_form,
        }
        self.hidden: set[str] = set()
        self.texts: dict[str, str] = {}
        self.values: dict[str, str] = {}
        self.selections: dict[str, str | None] = {}
        self.clicks: list[str] = []
        self.click_errors: dict[str, list[Exception]] = {}
        self.on_click: Callable[[str], None] | None = None
        self.opened: list[str] = []
        self.evaluated: list[str] = []
        self.evaluate_result: Any = True

    def open(self, url: str) -> None:
        self.opened.append(url)

    def find_all(self, selector: Selector) -> list[RemoteElement]:
        key = str(selector)
        if key in self.absent:
            return []
        return [FakeElement(self, key)]

    def evaluate(self, script: str) -> Any:
        self.evaluated.append(script)
        return self.evaluate_result


@pytest.fixture()
def profile() -> UIProfile:
    return UIProfile()


@pytest.fixture()
def fake_session(profile: UIProfile) -> FakeSession:
    return FakeSession(profile)


@pytest.fixture()
def remote_ui(fake_session: FakeSession, profile: UIProfile, poller: ConditionPoller) -> RemoteUI:
    return RemoteUI(fake_session, profile, poller=poller)
