"""SplitLedger - Shared-expense balances and debt simplification."""

__version__ = "0.1.0"

from .balances import compute_balances, net_for_member, simplify_debts
from .config import Settings, load_settings
from .currency import RateTable, convert, format_currency
from .models import (
    Balance,
    BalanceReport,
    ConversionResult,
    Expense,
    Group,
    Member,
    Settlement,
)
from .service import LedgerService

__all__ = [
    "Settings",
    "load_settings",
    "RateTable",
    "convert",
    "format_currency",
    "Balance",
    "BalanceReport",
    "ConversionResult",
    "Expense",
    "Group",
    "Member",
    "Settlement",
    "compute_balances",
    "net_for_member",
    "simplify_debts",
    "LedgerService",
]
