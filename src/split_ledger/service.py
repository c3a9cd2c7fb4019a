"""Service layer that composes group loading, validation and the balance engine.

Callers hand the service a coherent snapshot of a group (members plus
expenses). The service keeps no state between calls; every report is
recomputed from scratch.
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from .balances import compute_balances
from .config import Settings
from .currency import RateTable
from .exceptions import GroupFileError, SplitValidationError
from .models import BalanceReport, Expense, Group
from .splits import validate_expense

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for computing balances and settlements for a group."""

    def __init__(self, settings: Settings, rates: RateTable | None = None):
        """Initialize the service, loading the rate table from settings if needed."""
        self.settings = settings
        if rates is None:
            rates = (
                RateTable.from_json(settings.rates_path)
                if settings.rates_path
                else RateTable.default()
            )
        self.rates = rates

    def load_group(self, path: Path) -> Group:
        """
        Load a group (members and expenses) from a JSON file.

        Args:
            path: Path to the group file

        Returns:
            The parsed group

        Raises:
            GroupFileError: If the file can't be read or doesn't match the schema
        """
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise GroupFileError(str(path), f"Could not read {path}: {e}") from e

        try:
            group = Group.model_validate_json(raw)
        except ValidationError as e:
            raise GroupFileError(str(path), f"Invalid group file {path}:\n{e}") from e

        logger.info(
            f"Loaded group '{group.name}' with {len(group.members)} members "
            f"and {len(group.expenses)} expenses"
        )
        return group

    def report(self, group: Group, base_currency: str | None = None) -> BalanceReport:
        """
        Compute balances and settlements for a group.

        Args:
            group: Group snapshot to compute over
            base_currency: Currency for the report (defaults to settings)

        Returns:
            Balance report with settlements
        """
        currency = (base_currency or self.settings.base_currency).upper()

        report = compute_balances(
            group.expenses,
            group.members,
            currency,
            self.rates,
            strict_members=self.settings.strict_members,
            epsilon=self.settings.settlement_epsilon,
        )

        for from_code, to_code in report.missing_rates:
            logger.warning(
                f"No rate for {from_code} -> {to_code}; "
                f"those amounts were not converted"
            )

        return report

    def check_group(
        self, group: Group
    ) -> list[tuple[Expense, SplitValidationError]]:
        """
        Validate every expense in a group.

        Returns:
            (expense, error) pairs for each expense that fails validation
        """
        problems = []
        for expense in group.expenses:
            try:
                validate_expense(expense)
            except SplitValidationError as e:
                problems.append((expense, e))

        logger.info(
            f"Checked {len(group.expenses)} expenses, {len(problems)} with problems"
        )
        return problems
