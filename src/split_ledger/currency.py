"""Currency conversion against a static rate table."""

import json
import logging
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path

from .exceptions import RateTableError
from .models import CURRENCY_SYMBOLS, ConversionResult

logger = logging.getLogger(__name__)

# Rates are quoted independently per pair, so A -> B -> A need not round-trip.
DEFAULT_RATES: dict[str, dict[str, str]] = {
    "USD": {
        "INR": "83.1",
        "EUR": "0.92",
        "GBP": "0.78",
        "JPY": "150.2",
        "CAD": "1.36",
        "AUD": "1.52",
        "USD": "1",
    },
    "INR": {
        "USD": "0.012",
        "EUR": "0.011",
        "GBP": "0.0094",
        "JPY": "1.81",
        "CAD": "0.016",
        "AUD": "0.018",
        "INR": "1",
    },
    "EUR": {
        "USD": "1.09",
        "INR": "90.5",
        "GBP": "0.85",
        "JPY": "163.5",
        "CAD": "1.48",
        "AUD": "1.65",
        "EUR": "1",
    },
    "GBP": {
        "USD": "1.28",
        "INR": "106.5",
        "EUR": "1.18",
        "JPY": "192.3",
        "CAD": "1.74",
        "AUD": "1.94",
        "GBP": "1",
    },
    "JPY": {
        "USD": "0.0067",
        "INR": "0.55",
        "EUR": "0.0061",
        "GBP": "0.0052",
        "CAD": "0.0091",
        "AUD": "0.01",
        "JPY": "1",
    },
    "CAD": {
        "USD": "0.74",
        "INR": "61.1",
        "EUR": "0.68",
        "GBP": "0.57",
        "JPY": "110.4",
        "AUD": "1.12",
        "CAD": "1",
    },
    "AUD": {
        "USD": "0.66",
        "INR": "54.6",
        "EUR": "0.61",
        "GBP": "0.51",
        "JPY": "98.8",
        "CAD": "0.89",
        "AUD": "1",
    },
}


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats keep their printed value (1.09, not 1.0900000000000000799)
    return Decimal(str(value))


class RateTable:
    """Two-level lookup of conversion rates keyed [from][to]."""

    def __init__(self, rates: Mapping[str, Mapping[str, object]]):
        """Initialize the table from a nested mapping of codes to rates."""
        self._rates: dict[str, dict[str, Decimal]] = {}
        for from_code, row in rates.items():
            try:
                self._rates[from_code.upper()] = {
                    to_code.upper(): _to_decimal(rate) for to_code, rate in row.items()
                }
            except (InvalidOperation, AttributeError, TypeError) as e:
                raise RateTableError(
                    f"Invalid rates for {from_code}: {row!r}"
                ) from e

    @classmethod
    def default(cls) -> "RateTable":
        """Get the built-in static rate table."""
        return cls(DEFAULT_RATES)

    @classmethod
    def from_json(cls, path: Path) -> "RateTable":
        """
        Load a rate table from a JSON file.

        The file holds an object of objects: {"USD": {"EUR": 0.92, ...}, ...}

        Raises:
            RateTableError: If the file is missing or malformed
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RateTableError(f"Could not load rate table from {path}: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(row, dict) for row in data.values()
        ):
            raise RateTableError(
                f"Rate table {path} must map each currency code to an object of rates"
            )

        table = cls(data)
        logger.debug(f"Loaded {len(table.currencies)} currencies from {path}")
        return table

    @property
    def currencies(self) -> list[str]:
        return list(self._rates)

    def rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        """Look up the rate for a pair, or None if the table has none."""
        return self._rates.get(from_currency.upper(), {}).get(to_currency.upper())

    def as_dict(self) -> dict[str, dict[str, Decimal]]:
        return {code: dict(row) for code, row in self._rates.items()}


def convert(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    rates: RateTable | None = None,
) -> ConversionResult:
    """
    Convert an amount between currencies.

    A missing rate does not raise: the amount is passed through unchanged
    and the result is marked "missing_rate", so one bad expense cannot stop
    a whole group's balances from being computed.

    Args:
        amount: Amount in from_currency
        from_currency: Source currency code
        to_currency: Target currency code
        rates: Rate table to use (defaults to the built-in table)

    Returns:
        Conversion result with the converted amount and the path taken
    """
    from_currency = from_currency.upper()
    to_currency = to_currency.upper()

    if from_currency == to_currency:
        return ConversionResult(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            status="identity",
        )

    if rates is None:
        rates = RateTable.default()

    rate = rates.rate(from_currency, to_currency)
    if rate is None:
        logger.warning(
            f"Conversion rate not found for {from_currency} to {to_currency}; "
            f"using unconverted amount {amount}"
        )
        return ConversionResult(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            status="missing_rate",
        )

    return ConversionResult(
        amount=amount * rate,
        from_currency=from_currency,
        to_currency=to_currency,
        rate=rate,
        status="converted",
    )


def format_currency(amount: Decimal, currency: str) -> str:
    """
    Format an amount for display with its currency symbol.

    Examples:
        format_currency(Decimal("1234.5"), "USD") -> "$1,234.50"
        format_currency(Decimal("-20"), "EUR") -> "-€20.00"
        format_currency(Decimal("5"), "XYZ") -> "XYZ 5.00"
    """
    rounded = _to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    symbol = CURRENCY_SYMBOLS.get(currency)
    prefix = symbol if symbol else f"{currency} "
    return f"{sign}{prefix}{abs(rounded):,.2f}"
