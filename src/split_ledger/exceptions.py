"""Custom exceptions for SplitLedger."""


class SplitLedgerError(Exception):
    """Base exception for all SplitLedger errors."""

    pass


class ConfigurationError(SplitLedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class RateTableError(SplitLedgerError):
    """Raised when a currency rate table cannot be loaded."""

    pass


class GroupFileError(SplitLedgerError):
    """Raised when a group file cannot be read or parsed."""

    def __init__(self, path: str, message: str | None = None):
        self.path = path
        super().__init__(message or f"Could not read group file: {path}")


class SplitValidationError(SplitLedgerError):
    """Raised when an expense's split data is inconsistent."""

    def __init__(self, message: str, expense_id: str | None = None):
        self.expense_id = expense_id
        if expense_id:
            message = f"Expense {expense_id}: {message}"
        super().__init__(message)
