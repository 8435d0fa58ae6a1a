"""Signing of pending transfers through the remote challenge-response dialog.

Unlike the batch executor this flow never touches the local queue: it
releases transfers the remote system already holds. The one-time code is
single-use, so a rejected response is reported and never retried.
"""

from __future__ import annotations

import logging
from typing import Callable

from pydantic import BaseModel, Field

from raiffcli.browser.session import Selector
from raiffcli.exceptions import ChallengeRejected, ElementPresenceTimeout
from raiffcli.models.transaction import AccountClass, numeric_validator
from raiffcli.ui.profile import sel
from raiffcli.ui.remote_ui import RemoteUI

logger = logging.getLogger(__name__)


class SigningResult(BaseModel):
    """Outcome of a signing run."""

    account_class: AccountClass
    had_pending: bool = False
    sent: bool = False
    messages: list[str] = Field(default_factory=list)


class AuthorizationChallengeFlow:
    """Signs (and, where separate, sends) every pending transfer.

    Args:
        ui: Remote UI operations bound to the live session.
        respond: Given the challenge shown by the remote UI, returns the
            operator's numeric response.
        base_url: Login page of the remote UI.
        username: Login user name.
        password: Login password.
    """

    # Account classes where "sign" and "send" are separate remote actions.
    SEPARATE_SEND = frozenset({AccountClass.CORPORATE})

    def __init__(
        self,
        ui: RemoteUI,
        respond: Callable[[str], str],
        *,
        base_url: str,
        username: str,
        password: str,
    ) -> None:
        self._ui = ui
        self._respond = respond
        self._base_url = base_url
        self._username = username
        self._password = password

    def run(self, account_class: AccountClass) -> SigningResult:
        """Sign all pending transfers for *account_class*.

        Returns:
            A ``SigningResult``; ``had_pending`` is False when there was
            nothing to sign.

        Raises:
            ChallengeRejected: If the remote UI does not confirm the response
                or the send step. Carries the remote messages verbatim.
        """
        result = SigningResult(account_class=account_class)
        ui = self._ui

        ui.log_in(self._base_url, self._username, self._password)
        ui.select_account_class(account_class)
        self._open_pending(account_class)

        if ui.session.find(Selector.parse(ui.profile.signing.pending_row)) is None:
            logger.info("The %s account has no pending transfers", account_class.value)
            return result
        result.had_pending = True

        challenge = self._request_challenge(account_class)
        response = numeric_validator(self._respond(challenge))
        result.messages.extend(self._submit_response(response))

        if account_class in self.SEPARATE_SEND:
            result.messages.extend(self._send(account_class))
        result.sent = True
        return result

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _open_pending(self, account_class: AccountClass) -> None:
        s = self._ui.profile.signing
        self._ui.click_main_navigation(s.landing_link)
        landing_button = s.landing_button_text[account_class.value]
        self._ui.wait_present(sel(self._ui.profile.navigation.link_button, text=landing_button))
        self._ui.click_secondary_navigation(s.pending_link)
        self._ui.wait_present(s.pending_ready)

    def _select_all(self) -> None:
        s = self._ui.profile.signing
        self._ui.click_link_button(s.show_all_text)
        self._ui.wait_until_page_loaded()
        self._ui.click_link_button(s.select_all_text)

    def _request_challenge(self, account_class: AccountClass) -> str:
        ui = self._ui
        s = ui.profile.signing
        self._select_all()
        ui.click_link_button(s.sign_button_text[account_class.value])
        ui.wait_present(s.response_input)
        self._confirm_declarations()

        challenge = ui.read_text(s.challenge)
        logger.info("Challenge received for %s signing", account_class.value)
        return challenge

    def _confirm_declarations(self) -> None:
        """Submit the funds-origin declaration for every preview row that asks for one."""
        ui = self._ui
        s = ui.profile.signing
        link_selector = Selector.parse(s.declaration_link)
        for row in ui.session.find_all(Selector.parse(s.preview_rows)):
            link = row.find(link_selector)
            if link is None:
                continue
            ui.supervisor.perform(link.click, description="open funds origin declaration")
            ui.wait_present(s.declaration_form)
            ui.click(s.declaration_submit, description="submit funds origin declaration")
            ui.wait_absent(s.declaration_form)
            logger.debug("Funds origin declaration confirmed")

    def _submit_response(self, response: str) -> list[str]:
        ui = self._ui
        s = ui.profile.signing
        ui.fill(s.response_input, response)
        ui.click_link_button(s.confirm_button_text)
        return self._await_success()

    def _send(self, account_class: AccountClass) -> list[str]:
        ui = self._ui
        s = ui.profile.signing
        ui.close_dialog()
        self._open_pending(account_class)
        self._select_all()
        ui.click_link_button(s.send_button_text)
        ui.wait_present(sel(ui.profile.navigation.link_button, text=s.confirm_button_text))
        ui.click_link_button(s.confirm_button_text)
        return self._await_success()

    def _await_success(self) -> list[str]:
        try:
            self._ui.wait_for_success_message()
        except ElementPresenceTimeout as exc:
            raise ChallengeRejected(self._ui.result_messages()) from exc
        messages = self._ui.result_messages()
        for message in messages:
            logger.info("Remote: %s", message)
        return messages
