"""Sender accounts and the recipient address book.

Accounts are stored per account class in ``accounts.json``; recipients in
``recipients.json``, sorted by alias. Both use the same atomic write as the
transaction queue.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator, model_validator

from raiffcli.exceptions import ConfigurationError, QueueCorrupt
from raiffcli.models.transaction import AccountClass, Recipient
from raiffcli.store.files import read_json_document, write_json_document

logger = logging.getLogger(__name__)

DOMESTIC_IBAN_PREFIX = "BG"

_IBAN_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{11,30}$")


def validate_iban(value: str) -> str:
    """Validate an IBAN's structure and ISO 13616 mod-97 check digits.

    Spaces are removed and letters upper-cased before checking.

    Raises:
        ValueError: If the IBAN is malformed or its checksum is wrong.
    """
    iban = value.replace(" ", "").upper()
    if not _IBAN_RE.match(iban):
        raise ValueError("Invalid IBAN.")
    rearranged = iban[4:] + iban[:4]
    digits = "".join(str(int(ch, 36)) for ch in rearranged)
    if int(digits) % 97 != 1:
        raise ValueError("Invalid IBAN.")
    return iban


class Nationality(str, Enum):
    """Recipient filter derived from the IBAN country prefix."""

    DOMESTIC = "domestic"
    FOREIGN = "foreign"


class RecipientEntry(BaseModel):
    """A recipient in the address book, identified by a unique alias."""

    model_config = ConfigDict(frozen=True)

    alias: str
    name: str
    iban: str
    bic: str | None = None
    address: str | None = None
    country: str | None = None

    @field_validator("alias", "name")
    @classmethod
    def _required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("iban")
    @classmethod
    def _valid_iban(cls, v: str) -> str:
        return validate_iban(v)

    @model_validator(mode="after")
    def _foreign_details(self, info: ValidationInfo) -> "RecipientEntry":
        prefix = (info.context or {}).get("domestic_iban_prefix", DOMESTIC_IBAN_PREFIX)
        if not self.is_domestic(prefix) and not (self.bic and self.address and self.country):
            raise ValueError(f"BIC, address and country are required for IBANs outside {prefix}")
        return self

    def is_domestic(self, prefix: str = DOMESTIC_IBAN_PREFIX) -> bool:
        return self.iban.startswith(prefix)

    def to_recipient(self) -> Recipient:
        return Recipient(
            name=self.name,
            iban=self.iban,
            bic=self.bic,
            address=self.address,
            country=self.country,
        )


class AddressBook:
    """Accounts per account class and the recipient list.

    Args:
        directory: Directory holding ``accounts.json`` and ``recipients.json``.
        domestic_iban_prefix: IBAN prefix that marks a domestic recipient.
    """

    def __init__(self, directory: str | Path, *, domestic_iban_prefix: str = DOMESTIC_IBAN_PREFIX) -> None:
        self.directory = Path(directory)
        self.domestic_iban_prefix = domestic_iban_prefix

    @classmethod
    def from_settings(cls) -> "AddressBook":
        from raiffcli.settings import get_settings

        settings = get_settings()
        return cls(settings.storage.data_dir, domestic_iban_prefix=settings.transfer.domestic_iban_prefix)

    @property
    def accounts_path(self) -> Path:
        return self.directory / "accounts.json"

    @property
    def recipients_path(self) -> Path:
        return self.directory / "recipients.json"

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def accounts(self, account_class: AccountClass) -> list[str]:
        document = read_json_document(self.accounts_path)
        accounts = document.get(account_class.value, [])
        if not isinstance(accounts, list) or not all(isinstance(a, str) for a in accounts):
            raise QueueCorrupt(self.accounts_path, f"{account_class.value!r} must map to a list of strings")
        return accounts

    def add_account(self, account_class: AccountClass, account: str) -> None:
        account = account.strip()
        if not account:
            raise ValueError("Please enter a value.")
        document = read_json_document(self.accounts_path)
        accounts = self.accounts(account_class)
        if account in accounts:
            raise ValueError(f"Account {account!r} already exists.")
        document[account_class.value] = [*accounts, account]
        write_json_document(self.accounts_path, document)
        logger.info("Added %s account %s", account_class.value, account)

    def require_accounts(self, account_class: AccountClass) -> list[str]:
        """Return the accounts for *account_class*, failing when there are none."""
        accounts = self.accounts(account_class)
        if not accounts:
            raise ConfigurationError(
                f"There are no {account_class.value} accounts. "
                f"Please add one using the 'account add' command."
            )
        return accounts

    # ------------------------------------------------------------------
    # Recipients
    # ------------------------------------------------------------------

    @property
    def _context(self) -> dict[str, str]:
        return {"domestic_iban_prefix": self.domestic_iban_prefix}

    def new_recipient(self, **fields: str | None) -> RecipientEntry:
        """Build a validated entry using this book's domestic IBAN prefix.

        Raises:
            ValidationError: If a field is invalid or a foreign recipient lacks
                BIC, address or country.
        """
        return RecipientEntry.model_validate(fields, context=self._context)

    def recipients(self, nationality: Nationality | None = None) -> list[RecipientEntry]:
        """Return recipients sorted by alias, optionally filtered by nationality."""
        document = read_json_document(self.recipients_path)
        records = document.get("recipients", [])
        if not isinstance(records, list):
            raise QueueCorrupt(self.recipients_path, "'recipients' must be a list")
        try:
            entries = [RecipientEntry.model_validate(r, context=self._context) for r in records]
        except ValidationError as exc:
            raise QueueCorrupt(self.recipients_path, f"invalid recipient: {exc}") from exc

        if nationality is Nationality.DOMESTIC:
            entries = [e for e in entries if e.is_domestic(self.domestic_iban_prefix)]
        elif nationality is Nationality.FOREIGN:
            entries = [e for e in entries if not e.is_domestic(self.domestic_iban_prefix)]
        return sorted(entries, key=lambda e: e.alias)

    def get_recipient(self, alias: str) -> RecipientEntry:
        for entry in self.recipients():
            if entry.alias == alias:
                return entry
        raise KeyError(alias)

    def add_recipient(self, entry: RecipientEntry) -> None:
        """Store *entry*.

        Raises:
            ValueError: If the alias is already taken.
        """
        entries = self.recipients()
        if any(e.alias == entry.alias for e in entries):
            raise ValueError("A recipient with this alias already exists.")
        entries = sorted([*entries, entry], key=lambda e: e.alias)
        document = read_json_document(self.recipients_path)
        document["recipients"] = [e.model_dump(exclude_none=True) for e in entries]
        write_json_document(self.recipients_path, document)
        logger.info("Added recipient %s (%s)", entry.alias, entry.iban)
