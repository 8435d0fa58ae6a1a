"""Remote transfer forms, one strategy per operation kind.

The batch executor drives every transaction through the same steps
(open form, choose account, fill, submit, await confirmation); a
``TransferForm`` supplies what each step means for its operation kind.
Selectors come from the active ``UIProfile``.
"""

from __future__ import annotations

import abc
import logging

from raiffcli.engine.supervisor import RecoveryPolicy
from raiffcli.exceptions import ConfigurationError, ElementPresenceTimeout
from raiffcli.models.transaction import AccountClass, OperationKind, TransactionRequest, funds_origin_value
from raiffcli.ui.profile import sel
from raiffcli.ui.remote_ui import RemoteUI

logger = logging.getLogger(__name__)


def _field(fields: dict[str, str], name: str) -> str:
    try:
        return fields[name]
    except KeyError:
        raise ConfigurationError(f"UI profile defines no selector for field {name!r}") from None


class TransferForm(abc.ABC):
    """Steps for registering one kind of transfer in the remote UI."""

    operation: OperationKind

    def __init__(self, account_class: AccountClass) -> None:
        self.account_class = account_class

    @abc.abstractmethod
    def prepare(self, ui: RemoteUI) -> None:
        """Navigate to the page the forms are opened from. Runs once per batch."""

    @abc.abstractmethod
    def open(self, ui: RemoteUI) -> None:
        """Open a blank form."""

    def select_account(self, ui: RemoteUI, account: str) -> None:
        ui.choose_account(account)

    @abc.abstractmethod
    def fill(self, ui: RemoteUI, transaction: TransactionRequest) -> None:
        """Populate the form from *transaction*."""

    @abc.abstractmethod
    def submit(self, ui: RemoteUI) -> None:
        """Send the filled form."""

    @abc.abstractmethod
    def await_confirmation(self, ui: RemoteUI) -> None:
        """Block until the remote UI confirms the submitted transfer."""


class DomesticTransferForm(TransferForm):
    """Transfer in domestic currency ("In leva")."""

    operation = OperationKind.DOMESTIC

    def prepare(self, ui: RemoteUI) -> None:
        ui.click_main_navigation(ui.profile.domestic.landing_link)

    def open(self, ui: RemoteUI) -> None:
        s = ui.profile.domestic
        try:
            link = s.new_transfer_link[self.account_class.value]
        except KeyError:
            raise ConfigurationError(
                f"UI profile defines no new-transfer link for {self.account_class.value} accounts"
            ) from None
        form_button = sel(ui.profile.navigation.link_button, text=s.form_button_text)

        # The secondary links ignore clicks for a moment after they appear.
        def _open_menu() -> None:
            ui.click_secondary_navigation(link)
            ui.wait_present(form_button, timeout=ui.probe_timeout)

        ui.supervisor.perform(
            _open_menu,
            description=f"open {link!r}",
            policy=RecoveryPolicy().register(ElementPresenceTimeout).extend(ui.policy),
        )
        ui.click_link_button(s.form_button_text)
        ui.wait_present(s.form)

    def fill(self, ui: RemoteUI, transaction: TransactionRequest) -> None:
        fields = ui.profile.domestic.fields
        ui.fill(_field(fields, "name"), transaction.recipient.name)
        ui.fill(_field(fields, "iban"), transaction.recipient.iban)
        ui.fill(_field(fields, "amount"), f"{transaction.amount:.2f}")
        ui.fill(_field(fields, "description"), transaction.description)
        if transaction.funds_origin:
            ui.select(
                ui.profile.domestic.funds_origin_select,
                value=funds_origin_value(transaction.funds_origin),
            )

    def submit(self, ui: RemoteUI) -> None:
        ui.click_link_button(ui.profile.domestic.save_button_text)

    def await_confirmation(self, ui: RemoteUI) -> None:
        ui.wait_for_success_message()


class ForeignTransferForm(TransferForm):
    """Cross-border transfer in foreign currency."""

    operation = OperationKind.FOREIGN

    def prepare(self, ui: RemoteUI) -> None:
        ui.click_main_navigation(ui.profile.foreign.landing_link)

    def open(self, ui: RemoteUI) -> None:
        s = ui.profile.foreign
        ui.wait_present(s.payment_types)
        ui.click(s.form_link, description="open foreign currency form")

    def select_account(self, ui: RemoteUI, account: str) -> None:
        super().select_account(ui, account)
        ui.wait_present(ui.profile.foreign.form_ready)

    def fill(self, ui: RemoteUI, transaction: TransactionRequest) -> None:
        s = ui.profile.foreign
        recipient = transaction.recipient
        missing = [f for f in ("bic", "address", "country") if not getattr(recipient, f)]
        if missing:
            raise ValueError(
                f"Recipient {recipient.name} lacks {', '.join(missing)} required for a foreign transfer"
            )

        ui.fill(_field(s.fields, "name"), recipient.name)
        ui.fill(_field(s.fields, "iban"), recipient.iban)
        ui.fill(_field(s.fields, "address"), recipient.address)
        ui.fill(_field(s.fields, "bic"), recipient.bic)
        ui.fill(_field(s.fields, "amount"), f"{transaction.amount:.2f}")
        ui.fill(_field(s.fields, "description"), transaction.description)

        ui.click(s.currency_picker, description="open currency picker")
        ui.click(sel(s.currency_option, currency=transaction.currency), description=f"pick {transaction.currency}")

        ui.select(s.country_select, label=recipient.country)

        ui.click(s.operation_type_button, description="open operation type dialog")
        ui.wait_present(s.operation_type_select)
        ui.select(s.operation_type_select, value=s.operation_type_value)
        ui.wait_present(s.operation_code_select)
        ui.select(s.operation_code_select, value=s.operation_code_value)
        ui.click(s.operation_confirm_button, description="confirm operation type")

        # The form recalculates fees after the dialog closes.
        ui.wait_hidden(s.operation_dialog)
        ui.wait_until_page_loaded()

    def submit(self, ui: RemoteUI) -> None:
        ui.click(ui.profile.foreign.save_button, description="save foreign transfer")

    def await_confirmation(self, ui: RemoteUI) -> None:
        ui.wait_present(ui.profile.foreign.success_marker)


_FORMS: dict[OperationKind, type[TransferForm]] = {
    OperationKind.DOMESTIC: DomesticTransferForm,
    OperationKind.FOREIGN: ForeignTransferForm,
}


def form_for(operation: OperationKind, account_class: AccountClass) -> TransferForm:
    """Return the form strategy for *operation*."""
    return _FORMS[operation](account_class)
