"""Shared remote-UI operations composed from session, profile, poller and supervisor.

``RemoteUI`` is the one object the transfer forms, the batch executor and
the signing flow talk to. It owns no browser state of its own: the session
is injected, selectors come from the active ``UIProfile``, every pause is a
``ConditionPoller`` wait, and every click that can be intercepted by a
banner or a re-render runs through the ``RecoverySupervisor``.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from raiffcli.browser.session import RemoteElement, RemoteSession, Selector
from raiffcli.engine.poller import ConditionPoller, element_present, element_visible, view_bound
from raiffcli.engine.supervisor import RecoveryPolicy, RecoverySupervisor
from raiffcli.exceptions import (
    ConfigurationError,
    ElementNotFoundError,
    ElementNotInteractableError,
    ElementVisibilityTimeout,
    StaleElementError,
)
from raiffcli.models.transaction import AccountClass
from raiffcli.ui.profile import UIProfile, sel

logger = logging.getLogger(__name__)

DEFAULT_TRANSIENT_ERRORS: dict[str, str] = {
    "ClickObscuredError": "close_dialog",
    "StaleElementError": "retry",
}

# Attempts for clicking a dialog close button that is still fading in.
_CLOSE_ATTEMPTS = 6


def _as_selector(selector: str | Selector) -> Selector:
    return selector if isinstance(selector, Selector) else Selector.parse(selector)


class RemoteUI:
    """Remote banking UI operations shared by every flow.

    Args:
        session: The live remote session.
        profile: Selector mapping for the remote UI version in use.
        poller: Condition poller used for every wait.
        transient_errors: Exception class name -> recovery routine name
            (``close_dialog`` or ``retry``).
        max_attempts: Attempts per supervised action.
        probe_timeout: Timeout for fast-fail probes (seconds).
    """

    def __init__(
        self,
        session: RemoteSession,
        profile: UIProfile | None = None,
        *,
        poller: ConditionPoller | None = None,
        transient_errors: Mapping[str, str] | None = None,
        max_attempts: int = 3,
        probe_timeout: float = 1.0,
    ) -> None:
        self.session = session
        self.profile = profile or UIProfile()
        self.poller = poller or ConditionPoller()
        self.probe_timeout = probe_timeout
        self.policy = self._build_policy(
            DEFAULT_TRANSIENT_ERRORS if transient_errors is None else transient_errors
        )
        self.supervisor = RecoverySupervisor(self.policy, max_attempts=max_attempts)

    @classmethod
    def from_settings(
        cls,
        session: RemoteSession,
        profile: UIProfile | None = None,
    ) -> "RemoteUI":
        """Build a RemoteUI with timings and recovery rules from settings."""
        from raiffcli.settings import get_settings
        from raiffcli.ui.profile import load_profile

        settings = get_settings()
        return cls(
            session,
            profile or load_profile(),
            poller=ConditionPoller(
                timeout=settings.wait.timeout_sec,
                poll_interval=settings.wait.poll_interval_sec,
            ),
            transient_errors=settings.recovery.transient_errors,
            max_attempts=settings.recovery.max_attempts,
            probe_timeout=settings.wait.probe_timeout_sec,
        )

    def _build_policy(self, transient_errors: Mapping[str, str]) -> RecoveryPolicy:
        routines: dict[str, Callable[[], None]] = {
            "close_dialog": self.close_dialog,
            "retry": lambda: None,
        }
        policy = RecoveryPolicy()
        for name, routine in transient_errors.items():
            if routine not in routines:
                raise ConfigurationError(
                    f"Unknown recovery routine {routine!r} for {name}; "
                    f"expected one of {sorted(routines)}"
                )
            policy = policy.register(name, routines[routine])
        return policy

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------

    def wait_present(
        self, selector: str | Selector, *, present: bool = True, timeout: float | None = None
    ) -> None:
        self.poller.wait_for(
            element_present(self.session, _as_selector(selector), present=present, timeout=timeout)
        )

    def wait_absent(self, selector: str | Selector, *, timeout: float | None = None) -> None:
        self.wait_present(selector, present=False, timeout=timeout)

    def wait_visible(
        self, selector: str | Selector, *, visible: bool = True, timeout: float | None = None
    ) -> None:
        self.poller.wait_for(
            element_visible(self.session, _as_selector(selector), visible=visible, timeout=timeout)
        )

    def wait_hidden(self, selector: str | Selector, *, timeout: float | None = None) -> None:
        self.wait_visible(selector, visible=False, timeout=timeout)

    def wait_until_page_loaded(self) -> None:
        """Wait for the loading overlay to go away."""
        self.wait_hidden(self.profile.navigation.loading_overlay)

    def wait_for_success_message(self) -> None:
        self.wait_present(self.profile.navigation.success_message)

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    def element(self, selector: str | Selector) -> RemoteElement:
        """Return the first match for *selector*.

        Raises:
            ElementNotFoundError: If nothing matches.
        """
        parsed = _as_selector(selector)
        found = self.session.find(parsed)
        if found is None:
            raise ElementNotFoundError(str(parsed))
        return found

    def click(self, selector: str | Selector, *, description: str | None = None) -> None:
        """Locate and click *selector* under the recovery supervisor.

        The element is looked up again on every attempt.
        """
        parsed = _as_selector(selector)
        self.supervisor.perform(
            lambda: self.element(parsed).click(),
            description=description or f"click {parsed}",
        )

    def fill(self, selector: str | Selector, value: str) -> None:
        self.element(selector).set_value(value)

    def select(
        self, selector: str | Selector, *, value: str | None = None, label: str | None = None
    ) -> None:
        self.element(selector).select_option(value=value, label=label)

    def read_text(self, selector: str | Selector) -> str:
        return self.element(selector).text().strip()

    def result_messages(self) -> list[str]:
        """Return the status messages currently shown by the remote UI."""
        messages = []
        for element in self.session.find_all(Selector.parse(self.profile.navigation.result_message)):
            text = element.text().strip()
            if text:
                messages.append(text)
        return messages

    # ------------------------------------------------------------------
    # Session-level flows
    # ------------------------------------------------------------------

    def log_in(self, base_url: str, username: str, password: str) -> None:
        """Open the login page and authenticate."""
        if not username or not password:
            raise ConfigurationError(
                "Bank credentials are not configured (set bank.username and bank.password)"
            )
        login = self.profile.login
        logger.info("Opening %s", base_url)
        self.session.open(base_url)

        def _attempt() -> None:
            self.wait_present(login.username_input)
            self.fill(login.username_input, username)
            self.fill(login.password_input, password)
            self.element(login.submit_button).click()
            self.wait_present(login.profile_selection)

        self.supervisor.perform(_attempt, description="log in")
        logger.info("Logged in as %s", username)

    def select_account_class(self, account_class: AccountClass) -> None:
        """Choose the individual/corporate theme after login."""
        nav = self.profile.navigation
        button = sel(nav.account_class_button, account_class=account_class.value)
        if button.engine != "xpath":
            raise ConfigurationError("account_class_button must be an xpath= selector")

        self.poller.wait_for(
            view_bound(
                self.session,
                button.value,
                nav.account_class_view_model,
                self.profile.view_binding_script(),
            )
        )
        self.click(button, description=f"select account class {account_class.value}")
        self.wait_present(nav.main_navigation)
        self.close_dialog(nav.campaign_dialog)
        logger.info("Account class %s selected", account_class.value)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def click_main_navigation(self, title: str) -> None:
        nav = self.profile.navigation
        try:
            remote_title = nav.main_navigation_titles[title.lower()]
        except KeyError:
            raise ConfigurationError(f"Unknown main navigation link {title!r}") from None
        self.click(
            sel(nav.main_navigation_link, title=remote_title),
            description=f"main navigation {title!r}",
        )

    def click_secondary_navigation(self, title: str) -> None:
        self.click(
            sel(self.profile.navigation.secondary_navigation_link, title=title),
            description=f"secondary navigation {title!r}",
        )

    def click_link_button(self, text: str) -> None:
        """Click the first visible primary button labelled *text*.

        The page often renders duplicates of a button (desktop and mobile);
        hidden copies are skipped.
        """
        selector = sel(self.profile.navigation.link_button, text=text)
        self.wait_visible(selector)

        def _click_first_visible() -> None:
            for element in self.session.find_all(selector):
                if element.is_visible():
                    element.click()
                    return
            raise ElementNotInteractableError(f"No visible button labelled {text!r}")

        self.supervisor.perform(_click_first_visible, description=f"click button {text!r}")

    def choose_account(self, account: str) -> None:
        """Pick the sender *account* in the account chooser modal."""
        chooser = self.profile.account_chooser
        self.click_link_button(chooser.open_button_text)
        self.wait_present(chooser.modal)
        self.wait_visible(chooser.modal)

        row = sel(chooser.account_row, account=account)
        self.wait_present(row)
        self.click(row, description=f"choose account {account}")

        self.wait_absent(chooser.modal_backdrop)
        self.wait_present(chooser.chosen_marker)
        logger.debug("Account %s chosen", account)

    # ------------------------------------------------------------------
    # Dialogs
    # ------------------------------------------------------------------

    def close_dialog(self, dialog: str | Selector | None = None) -> None:
        """Close the open modal dialog, if any, and wait for it to fade out.

        Args:
            dialog: Only act when this dialog is present. ``None`` closes
                whatever dialog currently shows a close button.
        """
        if dialog is not None and self.session.find(_as_selector(dialog)) is None:
            return

        close_button = Selector.parse(self.profile.navigation.dialog_close_button)
        try:
            self.wait_visible(close_button, timeout=self.probe_timeout)
        except ElementVisibilityTimeout:
            logger.debug("No dialog to close")
            return

        def _click_close() -> None:
            try:
                self.element(close_button).click()
            except (StaleElementError, ElementNotFoundError):
                logger.debug("Dialog closed before its close button was clicked")

        # The button may still be fading in.
        fade_in = RecoveryPolicy().register(
            ElementNotInteractableError, lambda: self.wait_visible(close_button)
        )
        self.supervisor.perform(
            _click_close, description="close dialog", policy=fade_in, max_attempts=_CLOSE_ATTEMPTS
        )
        self.wait_hidden(close_button)
        logger.info("Dialog closed")
