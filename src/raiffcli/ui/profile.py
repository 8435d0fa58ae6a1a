"""UI profiles — the selector/field mapping for one version of the remote UI.

The remote banking UI has changed shape several times. Everything that
depends on its DOM lives in a ``UIProfile`` so that a redesign is absorbed
by a new profile file instead of edits scattered across the flows.

Selectors use the ``xpath=`` prefix for XPath and are CSS otherwise.
Template fields contain ``{placeholders}`` that are filled with
``str.format`` at runtime; the view-binding probe is a JavaScript
``string.Template`` (``$xpath``, ``$view_model``) because JavaScript uses
braces itself.

Profiles live as JSON files in ``ui.profile_dir``; fields omitted from a
file keep the defaults below, which describe the current UI version.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from string import Template

from pydantic import BaseModel, Field

from raiffcli.browser.session import Selector
from raiffcli.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_BTN_PRIMARY = 'contains(concat(" ", normalize-space(@class), " "), " btn-primary ")'

_KNOCKOUT_PROBE = """(function() {
    function getElementByXPath(xpath) {
        return document.evaluate(xpath, document, null, XPathResult.FIRST_ORDERED_NODE_TYPE, null).singleNodeValue;
    }
    if (typeof require === 'undefined' || !require.s.contexts._.defined.knockout) {
        return false;
    }
    var element = getElementByXPath('$xpath');
    var data = element ? require('knockout').dataFor(element) : null;
    if (!data) {
        return false;
    }
    return data.constructor.name === '$view_model';
}())"""


class LoginSelectors(BaseModel):
    """Login page."""

    username_input: str = 'xpath=//input[contains(@data-bind, "Model.UserName") and contains(@id, "Model_UserName")]'
    password_input: str = 'xpath=//input[@type = "password"]'
    submit_button: str = ".btn-login"
    profile_selection: str = ".profile-selection"


class NavigationSelectors(BaseModel):
    """Landing page, menus, generic buttons, dialogs and status messages."""

    account_class_button: str = 'xpath=//button[contains(@data-bind, "{account_class}")]'
    account_class_view_model: str = "ChooseThemeViewModel"
    view_binding_probe: str = _KNOCKOUT_PROBE
    main_navigation: str = 'xpath=//nav[contains(@class, "nav-main") and not(contains(@class, "nav-mobile"))]'
    main_navigation_link: str = (
        'xpath=//nav[contains(@class, "nav-main") and not(contains(@class, "nav-mobile"))]'
        '//a[span[@title = "{title}"]]'
    )
    # The remote menu capitalizes its titles inconsistently.
    main_navigation_titles: dict[str, str] = Field(
        default_factory=lambda: {
            "home": "home",
            "transfers": "Transfers",
            "accounts": "accounts",
            "cards": "cards",
            "loans": "loans",
            "deposits": "deposits",
            "investments": "investments",
            "offers": "offers",
            "forms": "forms",
            "financing": "financing",
        }
    )
    secondary_navigation_link: str = (
        'xpath=//ul[contains(concat(" ", normalize-space(@class), " "), " nav-tabs ")]//a[span[@title = "{title}"]]'
    )
    link_button: str = f'xpath=//button[{_BTN_PRIMARY} and .//span[normalize-space(text()) = "{{text}}"]]'
    loading_overlay: str = ".overlay-loading"
    success_message: str = ".status-container .text-success"
    result_message: str = 'xpath=//span[@data-bind = "text: Message"]'
    dialog_close_button: str = "button.close"
    campaign_dialog: str = "#CampaignsContent"


class AccountChooserSelectors(BaseModel):
    """Modal used to choose the sender account."""

    open_button_text: str = "Choose an account from the list"
    modal: str = 'xpath=//div[@class = "modal-content"]'
    account_row: str = (
        'xpath=//div[@class = "modal-content"]//tr[@data-selectionmode = "Single" and .//span[text() = "{account}"]]'
    )
    modal_backdrop: str = 'xpath=//div[contains(@class, "modal-backdrop")]'
    chosen_marker: str = 'xpath=//span[normalize-space(text()) = "Choose a different account"]'


class DomesticTransferSelectors(BaseModel):
    """Transfer in domestic currency."""

    landing_link: str = "Transfers"
    new_transfer_link: dict[str, str] = Field(
        default_factory=lambda: {"corporate": "New transfer", "individual": "Transfer Types"}
    )
    form_button_text: str = "In leva"
    form: str = ".pmt-form"
    fields: dict[str, str] = Field(
        default_factory=lambda: {
            "name": 'xpath=//*[@id = //label[normalize-space(.) = "Name"]/@for]',
            "iban": 'xpath=//*[@id = //label[normalize-space(.) = "IBAN"]/@for]',
            "amount": 'xpath=//*[@id = //label[normalize-space(.) = "Amount"]/@for]',
            "description": 'xpath=//*[@id = //label[normalize-space(.) = "Details"]/@for]',
        }
    )
    funds_origin_select: str = 'xpath=//select[contains(@id, "Model_DirtyMoney_Model_DirtyMoney")]'
    save_button_text: str = "Save"


class ForeignTransferSelectors(BaseModel):
    """Transfer in foreign currency."""

    landing_link: str = "home"
    payment_types: str = "#NewPaymentTypes"
    form_link: str = 'xpath=//a[normalize-space(.) = "In foreign currency"]'
    form_ready: str = "#PayeeName"
    fields: dict[str, str] = Field(
        default_factory=lambda: {
            "name": '[name="Document.PayeeName"]',
            "iban": '[name="Document.PayeeAccountNumber"]',
            "address": '[name="Document.PayeeAddress"]',
            "bic": '[name="Document.PayeeBankSWIFT"]',
            "amount": '[name="Document.Amount"]',
            "description": '[name="Document.Description"]',
        }
    )
    currency_picker: str = "#CCYPicker-button"
    currency_option: str = 'xpath=//a[normalize-space(.) = "{currency}"]'
    country_select: str = '[name="Document.PayeeBankCountryPicker"]'
    operation_type_button: str = "#FCCYOpCodeSelector"
    operation_dialog: str = 'xpath=//div[@aria-labelledby = "ui-dialog-title-1"]'
    operation_type_select: str = (
        'xpath=//div[@aria-labelledby = "ui-dialog-title-1"]/div/fieldset[@class = "col1"]/div[@class = "column"][1]/select'
    )
    operation_type_value: str = "4"
    operation_code_select: str = "#OpCodePick"
    operation_code_value: str = "629"
    operation_confirm_button: str = 'xpath=//div[@aria-labelledby = "ui-dialog-title-1"]/div/div/button'
    save_button: str = "#btnSave"
    success_marker: str = "#SaveOKResultHolder"


class SigningSelectors(BaseModel):
    """Pending transfers and the challenge-response dialog."""

    landing_link: str = "Transfers"
    landing_button_text: dict[str, str] = Field(
        default_factory=lambda: {"corporate": "In leva", "individual": "Next"}
    )
    pending_link: str = "Pending"
    pending_ready: str = 'xpath=//a[contains(@data-bind, "filterToggler")]'
    pending_row: str = 'xpath=//table//tr//span[contains(@data-bind, "Payment.PayerName")]'
    show_all_text: str = "Show all"
    select_all_text: str = "Select all"
    sign_button_text: dict[str, str] = Field(
        default_factory=lambda: {"corporate": "Sign", "individual": "Send"}
    )
    send_button_text: str = "Send"
    response_input: str = "input#id_Model_Response"
    preview_rows: str = "#SignSendPreview > table tr"
    declaration_link: str = "a.dirtyMoney"
    declaration_form: str = 'xpath=//div[@id = "DirtyMoneyDeclarationForm"]'
    declaration_submit: str = '#sendDirtyMontdlnk, [name="sendDirtyMontdlnk"]'
    challenge: str = 'xpath=//span[contains(@data-bind, "Model.Challenge")]'
    confirm_button_text: str = "OK"


class UIProfile(BaseModel):
    """Complete selector mapping for one remote UI version."""

    name: str = "default"
    description: str = ""
    login: LoginSelectors = Field(default_factory=LoginSelectors)
    navigation: NavigationSelectors = Field(default_factory=NavigationSelectors)
    account_chooser: AccountChooserSelectors = Field(default_factory=AccountChooserSelectors)
    domestic: DomesticTransferSelectors = Field(default_factory=DomesticTransferSelectors)
    foreign: ForeignTransferSelectors = Field(default_factory=ForeignTransferSelectors)
    signing: SigningSelectors = Field(default_factory=SigningSelectors)

    def view_binding_script(self) -> Template:
        return Template(self.navigation.view_binding_probe)


def sel(raw: str, **values: str) -> Selector:
    """Fill a selector template and parse it."""
    return Selector.parse(raw.format(**values) if values else raw)


def load_profile_from_file(path: Path) -> UIProfile:
    """Load a single profile from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        pydantic.ValidationError: If the data does not conform to the schema.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    return UIProfile(**data)


def load_profile(name: str | None = None, directory: Path | str | None = None) -> UIProfile:
    """Return the named profile.

    Looks for ``<directory>/<name>.json``. The ``default`` profile is
    built in and needs no file.

    Args:
        name: Profile name. If None, reads ``get_settings().ui.profile``.
        directory: Profile directory. If None, reads ``get_settings().ui.profile_dir``.

    Raises:
        ConfigurationError: If the profile does not exist or is invalid.
    """
    if name is None or directory is None:
        from raiffcli.settings import get_settings

        settings = get_settings()
        name = name or settings.ui.profile
        directory = directory or settings.ui.profile_dir

    path = Path(directory) / f"{name}.json"
    if path.is_file():
        try:
            profile = load_profile_from_file(path)
        except Exception as exc:
            raise ConfigurationError(f"Invalid UI profile {path}: {exc}") from exc
        logger.info("Loaded UI profile %s from %s", profile.name, path)
        return profile

    if name == "default":
        return UIProfile()

    raise ConfigurationError(f"UI profile not found: {path}")
