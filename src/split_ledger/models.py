"""Pydantic domain models for SplitLedger."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Currencies
# ============================================================================

SUPPORTED_CURRENCIES = ("INR", "USD", "EUR", "GBP", "JPY", "CAD", "AUD")

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "$",
    "AUD": "$",
}

CURRENCY_NAMES = {
    "INR": "Indian Rupee",
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "JPY": "Japanese Yen",
    "CAD": "Canadian Dollar",
    "AUD": "Australian Dollar",
}


# ============================================================================
# Group Records
# ============================================================================


class Member(BaseModel):
    """A group member's profile."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    name: str | None = None
    email: str | None = None
    preferred_currency: str = Field(default="USD", alias="preferredCurrency")

    @property
    def display_name(self) -> str:
        return self.name or self.uid


class Expense(BaseModel):
    """A shared cost paid by one member and split among several.

    split_details holds each member's owed share in the expense currency.
    Equal, percentage and custom splits all collapse to this mapping before
    an expense is stored (see splits.py).
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    title: str | None = None
    amount: Decimal
    currency: str
    paid_by: str = Field(alias="paidBy")
    split_between: list[str] = Field(default_factory=list, alias="splitBetween")
    split_details: dict[str, Decimal] = Field(
        default_factory=dict, alias="splitDetails"
    )
    notes: str | None = None
    date: datetime | None = None


class Group(BaseModel):
    """A group with its members and expenses, as read from a group file."""

    name: str = "Group"
    members: list[Member] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)


# ============================================================================
# Engine Results
# ============================================================================


class ConversionResult(BaseModel):
    """Outcome of a currency conversion.

    status is "identity" when no conversion was needed, "converted" when a
    rate was applied, and "missing_rate" when the amount passed through
    unchanged because the table has no rate for the pair.
    """

    amount: Decimal
    from_currency: str
    to_currency: str
    rate: Decimal | None = None
    status: Literal["identity", "converted", "missing_rate"]

    @property
    def converted(self) -> bool:
        return self.status != "missing_rate"


class Balance(BaseModel):
    """A member's net position: positive means the group owes them."""

    user_id: str
    amount: Decimal
    currency: str


class Settlement(BaseModel):
    """A recommended payment from one member to another."""

    model_config = ConfigDict(populate_by_name=True)

    from_user: str = Field(alias="from")
    to_user: str = Field(alias="to")
    amount: Decimal
    currency: str
    settled: bool = False  # advisory only
    settled_date: datetime | None = None
    note: str | None = None

    def involves(self, user_id: str) -> bool:
        return user_id in (self.from_user, self.to_user)


class BalanceReport(BaseModel):
    """Balances and the settlement plan derived from them."""

    base_currency: str
    balances: dict[str, Balance]
    settlements: list[Settlement]
    missing_rates: list[tuple[str, str]] = Field(default_factory=list)

    def for_member(self, user_id: str) -> list[Settlement]:
        """Get the settlements a member pays or receives."""
        return [s for s in self.settlements if s.involves(user_id)]

    def total(self) -> Decimal:
        """Sum of all balances; zero for a consistent set of expenses."""
        return sum((b.amount for b in self.balances.values()), Decimal("0"))
