"""Core balance computation and debt simplification for group expenses."""

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from .currency import RateTable, convert
from .models import (
    Balance,
    BalanceReport,
    ConversionResult,
    Expense,
    Member,
    Settlement,
)

logger = logging.getLogger(__name__)

# Balances within a cent of zero are treated as settled. This absorbs the
# noise left behind by repeated currency conversions.
SETTLEMENT_EPSILON = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round an amount to cents using ROUND_HALF_UP."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _member_id(member: Member | str) -> str:
    return member.uid if isinstance(member, Member) else member


def _balance_amount(balance: Balance | Decimal) -> Decimal:
    if isinstance(balance, Balance):
        return balance.amount
    return Decimal(str(balance)) if not isinstance(balance, Decimal) else balance


def compute_balances(
    expenses: Iterable[Expense],
    members: Iterable[Member | str],
    base_currency: str,
    rates: RateTable | None = None,
    *,
    strict_members: bool = False,
    epsilon: Decimal = SETTLEMENT_EPSILON,
) -> BalanceReport:
    """
    Compute every member's net balance and the settlements that clear them.

    Steps:
    1. Seed a zero balance for each member
    2. Credit each payer with the expense amount less their own share
    3. Debit each non-payer with their share
    4. Reduce the balances to settlements with simplify_debts

    All amounts are converted to base_currency first. Because the payer's
    own share is netted out of their credit, balances sum to zero whenever
    the shares sum to the expense amount.

    Ids that appear in expenses but not in members are added on the fly.
    With strict_members=True they are skipped instead: an expense paid by an
    unknown id is ignored entirely, and a share owed by an unknown id is
    removed from the payer's credit so the balances still sum to zero.

    Args:
        expenses: Expenses to fold (order does not matter)
        members: Group members, as Member records or plain ids
        base_currency: Currency all balances and settlements are expressed in
        rates: Rate table for conversions (defaults to the built-in table)
        strict_members: Skip contributions from undeclared ids
        epsilon: Settlement threshold passed on to simplify_debts

    Returns:
        Report holding the balances, settlements and any missing rate pairs
    """
    if rates is None:
        rates = RateTable.default()

    totals: dict[str, Decimal] = {_member_id(m): Decimal("0") for m in members}
    missing_rates: list[tuple[str, str]] = []

    def track(result: ConversionResult) -> Decimal:
        if result.status == "missing_rate":
            pair = (result.from_currency, result.to_currency)
            if pair not in missing_rates:
                missing_rates.append(pair)
        return result.amount

    expense_count = 0
    for expense in expenses:
        expense_count += 1
        payer = expense.paid_by

        if payer not in totals:
            if strict_members:
                logger.warning(
                    f"Skipping expense {expense.id}: "
                    f"payer {payer} is not a group member"
                )
                continue
            logger.debug(f"Adding untracked member {payer} from expense {expense.id}")
            totals[payer] = Decimal("0")

        # Credit the payer, net of their own share
        totals[payer] += track(
            convert(expense.amount, expense.currency, base_currency, rates)
        )
        own_share = expense.split_details.get(payer)
        if own_share is not None:
            totals[payer] -= track(
                convert(own_share, expense.currency, base_currency, rates)
            )

        # Debit each participant
        for user_id, share in expense.split_details.items():
            if user_id == payer:
                continue

            converted_share = track(
                convert(share, expense.currency, base_currency, rates)
            )

            if user_id not in totals:
                if strict_members:
                    logger.warning(
                        f"Skipping share of {user_id} in expense {expense.id}: "
                        f"not a group member"
                    )
                    totals[payer] -= converted_share
                    continue
                logger.debug(
                    f"Adding untracked member {user_id} from expense {expense.id}"
                )
                totals[user_id] = Decimal("0")

            totals[user_id] -= converted_share

    balances = {
        user_id: Balance(user_id=user_id, amount=amount, currency=base_currency)
        for user_id, amount in totals.items()
    }
    settlements = simplify_debts(balances, base_currency, epsilon=epsilon)

    logger.info(
        f"Computed balances for {len(balances)} members from {expense_count} "
        f"expenses: {len(settlements)} settlements in {base_currency}"
    )

    return BalanceReport(
        base_currency=base_currency,
        balances=balances,
        settlements=settlements,
        missing_rates=missing_rates,
    )


def simplify_debts(
    balances: Mapping[str, Balance | Decimal],
    base_currency: str,
    *,
    epsilon: Decimal = SETTLEMENT_EPSILON,
) -> list[Settlement]:
    """
    Reduce net balances to a short list of direct payments.

    Greedy largest-first matching: the biggest remaining debtor pays the
    biggest remaining creditor min(debt, credit), and whichever side is
    cleared moves on. This is not guaranteed to find the fewest possible
    payments, but every debt and every credit is covered.

    Members within epsilon of zero are left out. Equal amounts are ordered
    by member id so the plan is deterministic.

    Args:
        balances: Member id to Balance (or signed amount)
        base_currency: Currency of the balances and the settlements
        epsilon: Threshold below which amounts count as settled

    Returns:
        Settlements with amounts rounded to cents
    """
    # A negative epsilon behaves as zero
    epsilon = max(Decimal(str(epsilon)), Decimal("0"))

    debtors: list[list] = []
    creditors: list[list] = []

    for user_id, balance in balances.items():
        amount = _balance_amount(balance)
        if amount < -epsilon:
            debtors.append([user_id, -amount])
        elif amount > epsilon:
            creditors.append([user_id, amount])

    debtors.sort(key=lambda x: (-x[1], x[0]))
    creditors.sort(key=lambda x: (-x[1], x[0]))

    settlements: list[Settlement] = []
    i, j = 0, 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(debtor[1], creditor[1])

        if amount > epsilon:
            settlements.append(
                Settlement(
                    from_user=debtor[0],
                    to_user=creditor[0],
                    amount=round_money(amount),
                    currency=base_currency,
                )
            )

        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] <= epsilon:
            i += 1
        if creditor[1] <= epsilon:
            j += 1

    return settlements


def net_for_member(settlements: Iterable[Settlement], user_id: str) -> Decimal:
    """
    Net settlement position for a member.

    Positive when the member is due to receive money, negative when they
    are due to pay.
    """
    net = Decimal("0")
    for settlement in settlements:
        if settlement.to_user == user_id:
            net += settlement.amount
        elif settlement.from_user == user_id:
            net -= settlement.amount
    return net
