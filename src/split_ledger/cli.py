"""CLI for SplitLedger using Typer."""

import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .balances import SETTLEMENT_EPSILON, net_for_member, round_money
from .config import load_settings
from .currency import convert, format_currency
from .models import CURRENCY_NAMES, BalanceReport, Group
from .service import LedgerService
from .ui import select_member_interactive

app = typer.Typer(
    name="split-ledger",
    help="Compute shared-expense balances and who owes whom",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def format_money(amount: Decimal, currency: str, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    The spaces ensure decimal points align in tables.
    """
    text = format_currency(abs(amount), currency)
    if round_money(amount) < 0:
        if use_color:
            return f"([red]{text}[/red])"
        return f"({text})"
    if use_color:
        return f" [green]{text}[/green] "
    return f" {text} "


def display_report(
    group: Group,
    report: BalanceReport,
    me: str | None = None,
    epsilon: Decimal = SETTLEMENT_EPSILON,
):
    """Display balances and settlements as tables."""
    names = {m.uid: m.display_name for m in group.members}
    currency = report.base_currency

    console.print(f"\n[bold]{group.name}[/bold] (amounts in {currency})\n")

    table = Table(title="Balances", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Balance", justify="right", width=16)
    table.add_column("Status", style="dim")

    for user_id, balance in report.balances.items():
        if balance.amount > epsilon:
            status = "is owed"
        elif balance.amount < -epsilon:
            status = "owes"
        else:
            status = "settled up"
        table.add_row(
            names.get(user_id, user_id), format_money(balance.amount, currency), status
        )

    console.print(table)

    settlements = report.for_member(me) if me else report.settlements
    title = f"Settlements involving {names.get(me, me)}" if me else "Settlements"

    if not settlements:
        console.print("\n[green]✓ Everyone is settled up[/green]")
    else:
        plan = Table(title=title, show_header=True, header_style="bold magenta")
        plan.add_column("From", style="cyan")
        plan.add_column("To", style="cyan")
        plan.add_column("Amount", justify="right", width=16)
        for settlement in settlements:
            plan.add_row(
                names.get(settlement.from_user, settlement.from_user),
                names.get(settlement.to_user, settlement.to_user),
                format_money(settlement.amount, currency),
            )
        console.print()
        console.print(plan)

    if me:
        net = net_for_member(report.settlements, me)
        if net > 0:
            console.print(f"\n  You get back {format_money(net, currency)}")
        elif net < 0:
            console.print(f"\n  You pay {format_money(-net, currency)}")

    for from_code, to_code in report.missing_rates:
        console.print(
            f"\n[yellow]⚠️  No rate for {from_code} → {to_code}; "
            f"those amounts were used unconverted[/yellow]"
        )


@app.command()
def balances(
    group_file: Path = typer.Argument(..., help="JSON file with members and expenses"),
    currency: str | None = typer.Option(
        None, "--currency", "-c", help="Currency for balances (default from settings)"
    ),
    me: str | None = typer.Option(
        None, "--me", help="Only show settlements involving this member"
    ),
    pick: bool = typer.Option(
        False, "--pick", "-p", help="Choose the member interactively"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Show each member's balance and the payments that settle the group.
    """
    setup_logging(verbose)

    try:
        settings = load_settings()
        service = LedgerService(settings)

        group = service.load_group(group_file)

        if pick and not me:
            me = select_member_interactive(group.members)

        report = service.report(group, base_currency=currency)
        display_report(group, report, me=me, epsilon=settings.settlement_epsilon)

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command(name="convert")
def convert_command(
    amount: str = typer.Argument(..., help="Amount to convert"),
    from_currency: str = typer.Argument(..., help="Currency to convert from"),
    to_currency: str = typer.Argument(..., help="Currency to convert to"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Convert an amount using the configured rate table."""
    setup_logging(verbose)

    try:
        try:
            value = Decimal(amount)
        except InvalidOperation as e:
            raise typer.BadParameter(f"Not a number: {amount}") from e

        service = LedgerService(load_settings())
        result = convert(
            value, from_currency.upper(), to_currency.upper(), service.rates
        )

        if result.status == "missing_rate":
            console.print(
                f"[yellow]⚠️  No rate for {result.from_currency} → "
                f"{result.to_currency}; amount left unconverted[/yellow]"
            )

        console.print(
            f"{format_currency(value, result.from_currency)} = "
            f"[bold]{format_currency(result.amount, result.to_currency)}[/bold]"
            + (f" [dim](rate {result.rate})[/dim]" if result.rate is not None else "")
        )

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def rates(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the configured currency rate table."""
    setup_logging(verbose)

    try:
        service = LedgerService(load_settings())
        table_data = service.rates.as_dict()
        codes = service.rates.currencies

        table = Table(title="Rates (row → column)", header_style="bold magenta")
        table.caption = ", ".join(
            f"{code} {CURRENCY_NAMES[code]}" for code in codes if code in CURRENCY_NAMES
        )
        table.add_column("From", style="cyan")
        for code in codes:
            table.add_column(code, justify="right")

        for from_code in codes:
            row = table_data[from_code]
            table.add_row(
                from_code,
                *[str(row[code]) if code in row else "—" for code in codes],
            )

        console.print(table)

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def check(
    group_file: Path = typer.Argument(..., help="JSON file with members and expenses"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Validate the split data of every expense in a group file."""
    setup_logging(verbose)

    try:
        service = LedgerService(load_settings())
        group = service.load_group(group_file)
        problems = service.check_group(group)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)

    if not problems:
        console.print(
            f"[green]✓ All {len(group.expenses)} expenses have valid splits[/green]"
        )
        return

    for _expense, error in problems:
        console.print(f"[red]✗[/red] {error}")
    console.print(f"\n[bold red]{len(problems)} invalid expense(s)[/bold red]")
    sys.exit(1)


if __name__ == "__main__":
    app()
