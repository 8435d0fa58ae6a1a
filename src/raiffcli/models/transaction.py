"""Transaction data models and operator-input validators.

A ``TransactionRequest`` is a value object: it is never edited in place
once it joins a ``Batch``. Batches are keyed by ``BatchKey`` (operation
kind × account class) and persisted by the transaction queue store.

Whether a transfer needs a funds-origin declaration depends on the
configured threshold and domestic currency, so that rule is applied by the
collector (``requires_funds_origin``) and not by the model.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

DOMESTIC_CURRENCY = "BGN"
FUNDS_ORIGIN_THRESHOLD = Decimal("30000.00")

AMOUNT_RE = re.compile(r"^[0-9]+\.[0-9]{2}$")

# Regulatory source-of-funds categories, keyed by the remote form's option value.
FUNDS_ORIGINS: dict[str, str] = {
    "1": "Commercial activity",
    "2": "Agricultural activity",
    "3": "Personal labour services",
    "4": "Liberal profession services",
    "5": "Received loan",
    "6": "Real estate sale",
    "7": "Vehicle sale",
    "8": "Received rent",
    "9": "Donation",
    "10": "Savings",
    "11": "Inheritance",
    "12": "Labour remuneration",
    "13": "Dividend",
    "14": "Insurance paid",
    "15": "Deal with financial instruments",
    "16": "Other income from legal activity",
}


class AccountClass(str, Enum):
    """Which remote UI flow and field set apply."""

    INDIVIDUAL = "individual"
    CORPORATE = "corporate"


class OperationKind(str, Enum):
    """Logical command a batch belongs to. The value names the queue file."""

    DOMESTIC = "transfer-domestic"
    FOREIGN = "transfer-foreign"


class BatchKey(BaseModel):
    """Identifies at most one live batch."""

    model_config = ConfigDict(frozen=True)

    operation: OperationKind
    account_class: AccountClass

    def __str__(self) -> str:
        return f"{self.operation.value}/{self.account_class.value}"


# ---------------------------------------------------------------------------
# Validators (raise ValueError; the collector re-prompts on failure)
# ---------------------------------------------------------------------------


def required_validator(value: str | None) -> str:
    """Reject empty or whitespace-only input."""
    if not value or not value.strip():
        raise ValueError("Please enter a value.")
    return value


def numeric_validator(value: str | None) -> str:
    """Reject input that is empty or not made of digits only."""
    if not value or not value.strip() or not value.strip().isdigit():
        raise ValueError("Please enter a numeric value.")
    return value.strip()


def _reject_surrounding_whitespace(value: str, field: str) -> str:
    if value != value.strip():
        raise ValueError(f"The {field} must not start or end with whitespace.")
    return value


def validate_amount(value: str) -> str:
    """Validate an amount typed by the operator.

    Args:
        value: Raw input, e.g. ``"123.45"``.

    Returns:
        The unchanged input.

    Raises:
        ValueError: If the amount has surrounding whitespace, is not in the
            ``123.45`` format, or is not strictly positive.
    """
    _reject_surrounding_whitespace(value, "amount")
    if not AMOUNT_RE.match(value):
        raise ValueError('The amount must be in the format "123.45".')
    if Decimal(value) <= 0:
        raise ValueError("The amount must be greater than zero.")
    return value


def validate_description(value: str) -> str:
    """Validate a transfer description."""
    required_validator(value)
    return _reject_surrounding_whitespace(value, "description")


def funds_origin_value(label: str) -> str:
    """Return the remote form option value for a funds-origin *label*."""
    for value, known in FUNDS_ORIGINS.items():
        if known == label:
            return value
    raise ValueError(f"Unknown funds origin: {label!r}")


def requires_funds_origin(
    amount: Decimal,
    currency: str,
    *,
    domestic_currency: str = DOMESTIC_CURRENCY,
    threshold: Decimal = FUNDS_ORIGIN_THRESHOLD,
) -> bool:
    """Return True if a funds-origin declaration is mandatory for this transfer."""
    return currency == domestic_currency and amount > threshold


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Recipient(BaseModel):
    """Beneficiary of a transfer as stored in a queued transaction."""

    model_config = ConfigDict(frozen=True)

    name: str
    iban: str
    bic: str | None = None
    address: str | None = None
    country: str | None = None


class TransactionRequest(BaseModel):
    """The unit of work: one transfer to register in the remote UI."""

    model_config = ConfigDict(frozen=True)

    recipient: Recipient
    amount: Decimal
    currency: str
    description: str
    funds_origin: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _two_fraction_digits(cls, v: object) -> Decimal:
        if isinstance(v, Decimal):
            text = str(v)
        elif isinstance(v, str):
            text = v
        else:
            raise ValueError("amount must be given as a string or Decimal with two fraction digits")
        try:
            validate_amount(text)
            return Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {text!r}") from e

    @field_validator("description")
    @classmethod
    def _clean_description(cls, v: str) -> str:
        return validate_description(v)

    @field_validator("funds_origin")
    @classmethod
    def _known_funds_origin(cls, v: str | None) -> str | None:
        if v is not None:
            funds_origin_value(v)
        return v

    @field_serializer("amount")
    def _serialize_amount(self, v: Decimal) -> str:
        return f"{v:.2f}"

    def summary(self) -> str:
        """One-line human-readable description."""
        return f"{self.recipient.name} for {self.amount:.2f} {self.currency}: '{self.description}'"


class Batch(BaseModel):
    """Ordered transactions collected for one command and one account class."""

    transactions: list[TransactionRequest] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.transactions)

    @property
    def is_empty(self) -> bool:
        return not self.transactions

    def without(self, transaction: TransactionRequest) -> "Batch":
        """Return a copy with the first value-equal transaction removed.

        If nothing matches, the returned batch equals this one.
        """
        remaining = list(self.transactions)
        for idx, candidate in enumerate(remaining):
            if candidate == transaction:
                del remaining[idx]
                break
        return Batch(transactions=remaining)

    def merged(self, other: "Batch") -> "Batch":
        """Return a batch with *other*'s transactions appended."""
        return Batch(transactions=[*self.transactions, *other.transactions])
