"""Split policies that turn an expense total into per-member shares.

Equal, percentage and custom splits all produce the same split_details
mapping, which is what the balance engine consumes. Validation happens here,
at entry time; the engine itself trusts stored shares.
"""

import logging
from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from .exceptions import SplitValidationError
from .models import Expense

logger = logging.getLogger(__name__)

SplitType = Literal["equal", "percentage", "custom"]

SPLIT_TOLERANCE = Decimal("0.01")  # shares must sum to the amount within a cent
PERCENT_TOLERANCE = Decimal("0.1")  # percentages must sum to 100 within this


def _cents(amount: Decimal) -> Decimal:
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _absorb_residual(
    shares: dict[str, Decimal], amount: Decimal, target: str
) -> dict[str, Decimal]:
    """Push the rounding residual onto one share so the total matches exactly."""
    residual = amount - sum(shares.values(), Decimal("0"))
    if residual != 0:
        shares[target] += residual
        logger.debug(f"Applied rounding adjustment of {residual} to {target}")
    return shares


def equal_split(amount: Decimal, members: Sequence[str]) -> dict[str, Decimal]:
    """
    Split an amount equally, rounded to cents.

    The first member absorbs any rounding remainder, so
    equal_split(Decimal("100"), ["a", "b", "c"]) gives a=33.34, b=33.33, c=33.33.

    Raises:
        SplitValidationError: If there are no members to split between
    """
    if not members:
        raise SplitValidationError("Cannot split an expense between no members")

    per_person = _cents(amount / len(members))
    shares = {uid: per_person for uid in members}
    return _absorb_residual(shares, amount, members[0])


def percentage_split(
    amount: Decimal, percentages: Mapping[str, Decimal]
) -> dict[str, Decimal]:
    """
    Split an amount by percentage of the total.

    Shares are rounded to cents and the largest share absorbs the residual.

    Raises:
        SplitValidationError: If percentages are empty or don't total 100
    """
    if not percentages:
        raise SplitValidationError(
            "Percentages must be provided for percentage split"
        )

    total_percent = sum(percentages.values(), Decimal("0"))
    if abs(total_percent - 100) > PERCENT_TOLERANCE:
        raise SplitValidationError(
            f"Percentages must add up to 100 (got {total_percent})"
        )

    shares = {uid: _cents(pct / 100 * amount) for uid, pct in percentages.items()}
    largest = max(shares, key=lambda uid: abs(shares[uid]))
    return _absorb_residual(shares, amount, largest)


def custom_split(
    amount: Decimal, shares: Mapping[str, Decimal]
) -> dict[str, Decimal]:
    """
    Use explicit per-member amounts as the split.

    Raises:
        SplitValidationError: If the shares don't total the amount
    """
    total = sum(shares.values(), Decimal("0"))
    if abs(total - amount) > SPLIT_TOLERANCE:
        raise SplitValidationError(f"Custom split must total {amount} (got {total})")
    return dict(shares)


def validate_expense(expense: Expense) -> None:
    """
    Check an expense's split data before it is stored.

    Raises:
        SplitValidationError: If the amount is not positive, nobody shares
            the cost, shares name members outside split_between, or the
            shares don't sum to the amount
    """
    if expense.amount <= 0:
        raise SplitValidationError(
            f"Amount must be positive (got {expense.amount})", expense.id
        )

    if not expense.split_between:
        raise SplitValidationError(
            "Expense must be split between at least one member", expense.id
        )

    outsiders = sorted(set(expense.split_details) - set(expense.split_between))
    if outsiders:
        raise SplitValidationError(
            f"Shares given for members not in the split: {', '.join(outsiders)}",
            expense.id,
        )

    total = sum(
        (
            expense.split_details.get(uid, Decimal("0"))
            for uid in expense.split_between
        ),
        Decimal("0"),
    )
    if abs(total - expense.amount) > SPLIT_TOLERANCE:
        raise SplitValidationError(
            f"Shares total {total} {expense.currency} "
            f"but the expense amount is {expense.amount} {expense.currency}",
            expense.id,
        )


def detect_split_type(expense: Expense) -> SplitType:
    """
    Guess which split policy produced an expense's shares.

    Equal when every share is within a cent of the others, percentage when
    the shares happen to sum to 100 and the amount doesn't, custom otherwise.
    """
    shares = list(expense.split_details.values())
    if not shares:
        return "equal"

    if max(shares) - min(shares) <= SPLIT_TOLERANCE:
        return "equal"

    total = sum(shares, Decimal("0"))
    sums_to_hundred = abs(total - 100) <= SPLIT_TOLERANCE
    if sums_to_hundred and abs(expense.amount - 100) > SPLIT_TOLERANCE:
        return "percentage"

    return "custom"
