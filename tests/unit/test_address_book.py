"""Unit tests for raiffcli.store.address_book."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from raiffcli.exceptions import ConfigurationError, QueueCorrupt
from raiffcli.models.transaction import AccountClass
from raiffcli.store.address_book import AddressBook, Nationality, RecipientEntry, validate_iban

BG_IBAN = "BG80BNBG96611020345678"
BE_IBAN = "BE71096123456769"
RO_IBAN = "RO49AAAA1B31007593840000"


@pytest.fixture()
def book(tmp_path) -> AddressBook:
    return AddressBook(tmp_path / "data")


def _foreign(alias: str = "acme", **overrides) -> RecipientEntry:
    data = {
        "alias": alias,
        "name": "ACME NV",
        "iban": BE_IBAN,
        "bic": "GKCCBEBB",
        "address": "Rue de la Loi 1, Brussels",
        "country": "Belgium",
        **overrides,
    }
    return RecipientEntry(**data)


class TestValidateIban:
    """Tests for IBAN normalization and checksum validation."""

    def test_normalizes(self):
        """Spaces are stripped and letters upper-cased."""
        assert validate_iban("bg80 bnbg 9661 1020 3456 78") == BG_IBAN

    @pytest.mark.parametrize(
        "value",
        ["", "BG80", "BG81BNBG96611020345678", "1280BNBG96611020345678", "BG80BNBG9661102034567!"],
    )
    def test_rejects(self, value):
        """Malformed IBANs and bad check digits are rejected."""
        with pytest.raises(ValueError, match="Invalid IBAN"):
            validate_iban(value)


class TestRecipientEntry:
    """Tests for address book entry validation."""

    def test_domestic_needs_no_bank_details(self):
        """A domestic recipient needs only alias, name and IBAN."""
        entry = RecipientEntry(alias=" jane ", name="Jane Doe", iban=BG_IBAN)
        assert entry.alias == "jane"
        assert entry.is_domestic()

    def test_foreign_requires_details(self):
        """A foreign recipient without BIC, address and country is rejected."""
        with pytest.raises(ValidationError, match="BIC, address and country"):
            RecipientEntry(alias="acme", name="ACME NV", iban=BE_IBAN)

    def test_empty_name(self):
        """A blank name is rejected."""
        with pytest.raises(ValidationError):
            RecipientEntry(alias="x", name="   ", iban=BG_IBAN)

    def test_to_recipient(self):
        """Entries convert to the recipient stored on a transaction."""
        recipient = _foreign().to_recipient()
        assert recipient.name == "ACME NV"
        assert recipient.bic == "GKCCBEBB"
        assert recipient.country == "Belgium"


class TestAccounts:
    """Tests for sender accounts per account class."""

    def test_empty_book(self, book):
        """A missing accounts file means no accounts."""
        assert book.accounts(AccountClass.INDIVIDUAL) == []

    def test_add_keeps_classes_apart(self, book):
        """Accounts are stored per account class and trimmed."""
        book.add_account(AccountClass.INDIVIDUAL, " 1234567890 BGN ")
        book.add_account(AccountClass.CORPORATE, "5555 BGN")

        assert book.accounts(AccountClass.INDIVIDUAL) == ["1234567890 BGN"]
        assert book.accounts(AccountClass.CORPORATE) == ["5555 BGN"]

    def test_duplicate(self, book):
        """Adding the same account twice raises ValueError."""
        book.add_account(AccountClass.INDIVIDUAL, "1234567890 BGN")
        with pytest.raises(ValueError, match="already exists"):
            book.add_account(AccountClass.INDIVIDUAL, "1234567890 BGN")

    def test_blank(self, book):
        """A blank account is rejected without touching the file."""
        with pytest.raises(ValueError):
            book.add_account(AccountClass.INDIVIDUAL, "  ")
        assert not book.accounts_path.exists()

    def test_require_accounts(self, book):
        """Requiring accounts of an empty class points at the add command."""
        with pytest.raises(ConfigurationError, match="account add"):
            book.require_accounts(AccountClass.CORPORATE)
        book.add_account(AccountClass.CORPORATE, "5555 BGN")
        assert book.require_accounts(AccountClass.CORPORATE) == ["5555 BGN"]

    def test_corrupt_accounts_file(self, book):
        """A non-list account entry raises QueueCorrupt."""
        book.directory.mkdir(parents=True)
        book.accounts_path.write_text(json.dumps({"individual": "1234"}))
        with pytest.raises(QueueCorrupt):
            book.accounts(AccountClass.INDIVIDUAL)


class TestRecipients:
    """Tests for the recipient list."""

    def test_sorted_by_alias(self, book):
        """Recipients are kept sorted by alias on disk and when read."""
        book.add_recipient(RecipientEntry(alias="zed", name="Zed", iban=BG_IBAN))
        book.add_recipient(_foreign("acme"))
        book.add_recipient(RecipientEntry(alias="jane", name="Jane Doe", iban=BG_IBAN))

        assert [e.alias for e in book.recipients()] == ["acme", "jane", "zed"]
        stored = json.loads(book.recipients_path.read_text())
        assert [r["alias"] for r in stored["recipients"]] == ["acme", "jane", "zed"]
        assert "bic" not in stored["recipients"][1]

    def test_nationality_filter(self, book):
        """The nationality filter splits by the domestic IBAN prefix."""
        book.add_recipient(RecipientEntry(alias="jane", name="Jane Doe", iban=BG_IBAN))
        book.add_recipient(_foreign("acme"))

        assert [e.alias for e in book.recipients(Nationality.DOMESTIC)] == ["jane"]
        assert [e.alias for e in book.recipients(Nationality.FOREIGN)] == ["acme"]

    def test_domestic_prefix_is_configurable(self, tmp_path):
        """A different prefix changes which recipients count as domestic."""
        book = AddressBook(tmp_path, domestic_iban_prefix="BE")
        book.add_recipient(_foreign("acme"))
        assert [e.alias for e in book.recipients(Nationality.DOMESTIC)] == ["acme"]

    def test_configured_prefix_waives_bank_details(self, tmp_path):
        """Recipients under the configured prefix need no bank details."""
        book = AddressBook(tmp_path, domestic_iban_prefix="RO")
        entry = book.new_recipient(alias="ion", name="Ion", iban=RO_IBAN)
        book.add_recipient(entry)

        assert entry.bic is None
        assert [e.alias for e in book.recipients(Nationality.DOMESTIC)] == ["ion"]

    def test_configured_prefix_treats_bulgarian_iban_as_foreign(self, tmp_path):
        """Under another prefix a Bulgarian IBAN needs bank details."""
        book = AddressBook(tmp_path, domestic_iban_prefix="RO")
        with pytest.raises(ValidationError, match="outside RO"):
            book.new_recipient(alias="jane", name="Jane Doe", iban=BG_IBAN)

    def test_unique_alias(self, book):
        """A taken alias is refused."""
        book.add_recipient(RecipientEntry(alias="jane", name="Jane Doe", iban=BG_IBAN))
        with pytest.raises(ValueError, match="alias already exists"):
            book.add_recipient(RecipientEntry(alias="jane", name="Jane Smith", iban=BG_IBAN))
        assert len(book.recipients()) == 1

    def test_get_recipient(self, book):
        """Lookup by alias returns the entry or raises KeyError."""
        book.add_recipient(_foreign("acme"))
        assert book.get_recipient("acme").iban == BE_IBAN
        with pytest.raises(KeyError):
            book.get_recipient("nobody")

    def test_corrupt_recipient(self, book):
        """An invalid stored recipient raises QueueCorrupt."""
        book.directory.mkdir(parents=True)
        book.recipients_path.write_text(json.dumps({"recipients": [{"alias": "x", "name": "X", "iban": "nope"}]}))
        with pytest.raises(QueueCorrupt, match="invalid recipient"):
            book.recipients()

    def test_accounts_and_recipients_share_directory(self, book):
        """Accounts and recipients live side by side in the data directory."""
        book.add_account(AccountClass.INDIVIDUAL, "1234567890 BGN")
        book.add_recipient(RecipientEntry(alias="jane", name="Jane Doe", iban=BG_IBAN))

        assert sorted(p.name for p in book.directory.iterdir()) == ["accounts.json", "recipients.json"]
