"""Tests for LedgerService layer."""

import json
from decimal import Decimal
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from split_ledger.config import Settings
from split_ledger.currency import RateTable
from split_ledger.exceptions import GroupFileError, RateTableError
from split_ledger.models import Expense, Group, Member
from split_ledger.service import LedgerService


@pytest.fixture
def settings():
    """Create settings with defaults."""
    return Settings(base_currency="usd")


@pytest.fixture
def service(settings):
    """Create a LedgerService instance."""
    return LedgerService(settings)


@pytest.fixture
def group_data():
    """Group file contents in the stored (camelCase) shape."""
    return {
        "name": "Goa Trip",
        "members": [
            {"uid": "u1", "name": "Asha", "preferredCurrency": "INR"},
            {"uid": "u2", "name": "Ben"},
            {"uid": "u3", "name": "Chen"},
        ],
        "expenses": [
            {
                "id": "e1",
                "title": "Hotel",
                "amount": "300",
                "currency": "USD",
                "paidBy": "u1",
                "splitBetween": ["u1", "u2", "u3"],
                "splitDetails": {"u1": 100, "u2": 100, "u3": 100},
            },
            {
                "id": "e2",
                "title": "Dinner",
                "amount": 8310,
                "currency": "INR",
                "paidBy": "u2",
                "splitBetween": ["u2", "u3"],
                "splitDetails": {"u2": 4155, "u3": 4155},
            },
        ],
    }


@pytest.fixture
def group_file(tmp_path, group_data):
    path = tmp_path / "group.json"
    path.write_text(json.dumps(group_data))
    return path


class TestSettings:
    """Tests for settings normalization."""

    def test_currency_upper_cased(self, settings):
        assert settings.base_currency == "USD"

    def test_defaults(self, settings):
        assert settings.settlement_epsilon == Decimal("0.01")
        assert settings.strict_members is False
        assert settings.rates_path is None

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SPLIT_LEDGER_BASE_CURRENCY", "eur")
        monkeypatch.setenv("SPLIT_LEDGER_STRICT_MEMBERS", "true")

        env_settings = Settings()

        assert env_settings.base_currency == "EUR"
        assert env_settings.strict_members is True

    def test_zero_epsilon_allowed(self):
        assert Settings(settlement_epsilon=Decimal("0")).settlement_epsilon == 0

    def test_negative_epsilon_rejected(self):
        with pytest.raises(ValidationError):
            Settings(settlement_epsilon=Decimal("-1"))


class TestRateTableSelection:
    """Tests for how the service picks its rate table."""

    def test_default_table(self, service):
        assert service.rates.rate("EUR", "USD") == Decimal("1.09")

    def test_rates_path_from_settings(self, tmp_path):
        path = tmp_path / "rates.json"
        path.write_text(json.dumps({"EUR": {"USD": 2}}))

        service = LedgerService(Settings(rates_path=path))

        assert service.rates.rate("EUR", "USD") == Decimal("2")

    def test_bad_rates_path(self, tmp_path):
        with pytest.raises(RateTableError):
            LedgerService(Settings(rates_path=tmp_path / "missing.json"))

    def test_injected_table_wins(self, settings):
        table = RateTable({"AAA": {"USD": 1}})

        assert LedgerService(settings, rates=table).rates is table


class TestLoadGroup:
    """Tests for load_group method."""

    def test_parses_camel_case_fields(self, service, group_file):
        group = service.load_group(group_file)

        assert group.name == "Goa Trip"
        assert [m.uid for m in group.members] == ["u1", "u2", "u3"]
        assert group.members[0].preferred_currency == "INR"
        expense = group.expenses[0]
        assert expense.paid_by == "u1"
        assert expense.split_details["u2"] == Decimal("100")

    def test_missing_file(self, service, tmp_path):
        with pytest.raises(GroupFileError) as exc_info:
            service.load_group(tmp_path / "nope.json")

        assert exc_info.value.path.endswith("nope.json")

    def test_invalid_json(self, service, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"expenses": [{"amount": "ten"}]}')

        with pytest.raises(GroupFileError, match="Invalid group file"):
            service.load_group(path)


class TestReport:
    """Tests for report method."""

    def test_uses_settings_currency(self, service, group_file):
        group = service.load_group(group_file)

        report = service.report(group)

        # u1: +200, u2: -100 + 4155 INR * 0.012, u3: -100 - 4155 INR * 0.012
        assert report.base_currency == "USD"
        assert report.balances["u1"].amount == Decimal("200")
        assert report.balances["u2"].amount == Decimal("-50.140")
        assert report.balances["u3"].amount == Decimal("-149.860")
        assert abs(report.total()) <= Decimal("0.01")
        assert sum(s.amount for s in report.settlements) == Decimal("200.00")

    def test_currency_override(self, service, group_file):
        group = service.load_group(group_file)

        report = service.report(group, base_currency="inr")

        assert report.base_currency == "INR"
        assert all(s.currency == "INR" for s in report.settlements)

    def test_passes_policy_from_settings(self, group_file):
        service = LedgerService(
            Settings(strict_members=True, settlement_epsilon=Decimal("0.5"))
        )
        group = service.load_group(group_file)

        with patch("split_ledger.service.compute_balances") as mock_compute:
            service.report(group)

        _, kwargs = mock_compute.call_args
        assert kwargs["strict_members"] is True
        assert kwargs["epsilon"] == Decimal("0.5")

    def test_recomputed_every_call(self, service, group_file):
        """Reports are rebuilt from scratch and don't depend on earlier calls."""
        group = service.load_group(group_file)

        first = service.report(group)
        group.expenses.pop()
        second = service.report(group)

        assert first.balances["u2"].amount != second.balances["u2"].amount
        assert second.balances["u2"].amount == Decimal("-100")


class TestCheckGroup:
    """Tests for check_group method."""

    def test_all_valid(self, service, group_file):
        group = service.load_group(group_file)

        assert service.check_group(group) == []

    def test_reports_each_bad_expense(self, service):
        group = Group(
            members=[Member(uid="a"), Member(uid="b")],
            expenses=[
                Expense(
                    id="ok",
                    amount=Decimal("10"),
                    currency="USD",
                    paid_by="a",
                    split_between=["a", "b"],
                    split_details={"a": Decimal("5"), "b": Decimal("5")},
                ),
                Expense(
                    id="bad",
                    amount=Decimal("10"),
                    currency="USD",
                    paid_by="a",
                    split_between=["a", "b"],
                    split_details={"a": Decimal("5"), "b": Decimal("1")},
                ),
            ],
        )

        problems = service.check_group(group)

        assert len(problems) == 1
        expense, error = problems[0]
        assert expense.id == "bad"
        assert "Shares total 6" in str(error)
