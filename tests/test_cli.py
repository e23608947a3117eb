"""Tests for the balances CLI."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from household_ledger.balances.cli import app, format_money
from household_ledger.config import Settings
from household_ledger.exceptions import DataServiceAPIError
from household_ledger.models import (
    HouseholdMember,
    MemberBalance,
    SplitType,
    Transaction,
    TransactionSplit,
    TransactionType,
)

runner = CliRunner()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_api_key="test_key",
        household_id="house-1",
        database_path=tmp_path / "test.db",
    )


@pytest.fixture
def client():
    """Data client for a two-member household with one custom expense."""
    client = MagicMock()
    client.fetch_transactions = AsyncMock(
        return_value=[
            Transaction(
                id="dinner",
                date=date(2025, 3, 1),
                description="Dinner",
                amount=Decimal("90"),
                split_type=SplitType.CUSTOM,
                paid_by_member_id="a",
            )
        ]
    )
    client.fetch_members = AsyncMock(
        return_value=[
            HouseholdMember(id="a", display_name="Alice"),
            HouseholdMember(id="b", display_name="Bob"),
        ]
    )
    client.fetch_member_balances = AsyncMock(
        return_value=[
            MemberBalance(member_id="a", display_name="Alice", balance=Decimal("30")),
            MemberBalance(member_id="b", display_name="Bob", balance=Decimal("-30")),
        ]
    )
    client.fetch_all_splits_for_household = AsyncMock(
        return_value=[
            TransactionSplit(
                transaction_id="dinner",
                member_id="a",
                paid_amount=Decimal("90"),
                owed_amount=Decimal("60"),
            ),
            TransactionSplit(
                transaction_id="dinner",
                member_id="b",
                paid_amount=Decimal("0"),
                owed_amount=Decimal("30"),
            ),
        ]
    )
    return client


def invoke(args, settings, client):
    """Run a balances command against a mock client on a wide console."""
    with (
        patch("household_ledger.balances.cli.console", Console(width=160)),
        patch("household_ledger.balances.cli.load_settings", return_value=settings),
        patch("household_ledger.balances.cli.HouseholdDataClient", return_value=client),
    ):
        return runner.invoke(app, args)


class TestFormatMoney:
    """Tests for accounting-style money formatting."""

    def test_positive(self):
        assert format_money(Decimal("1234.5"), use_color=False) == " $1,234.50 "

    def test_negative_uses_parentheses(self):
        assert format_money(Decimal("-85.02"), use_color=False) == "($85.02)"

    def test_color(self):
        assert format_money(Decimal("-1"), use_color=True) == "($[red]1.00[/red])"


class TestShow:
    """Tests for the show command."""

    def test_shows_balances(self, settings, client):
        result = invoke(["show"], settings, client)

        assert result.exit_code == 0
        assert "Alice" in result.output
        assert "Bob" in result.output
        assert "match stored balances" in result.output

    def test_falls_back_to_cache(self, settings, client):
        assert invoke(["show"], settings, client).exit_code == 0

        client.fetch_member_balances.side_effect = DataServiceAPIError(
            "member_balances", "offline"
        )
        result = invoke(["show"], settings, client)

        assert result.exit_code == 0
        assert "Refresh failed" in result.output
        assert "cached balances" in result.output

    def test_fails_without_cache(self, settings, client):
        client.fetch_members.side_effect = DataServiceAPIError(
            "household_members", "offline"
        )

        result = invoke(["show"], settings, client)

        assert result.exit_code == 1


class TestImpacting:
    """Tests for the impacting command."""

    def test_lists_impacting_transactions(self, settings, client):
        result = invoke(["impacting"], settings, client)

        assert result.exit_code == 0
        assert "dinner" in result.output
        assert "... and" not in result.output

    def test_limit_shows_remaining_count(self, settings, client):
        settle = Transaction(
            id="settle",
            date=date(2025, 3, 2),
            description="Pay back",
            amount=Decimal("30"),
            transaction_type=TransactionType.SETTLEMENT,
            paid_by_member_id="b",
            paid_to_member_id="a",
        )
        client.fetch_transactions.return_value = [
            settle,
            *client.fetch_transactions.return_value,
        ]

        result = invoke(["impacting", "--limit", "1"], settings, client)

        assert result.exit_code == 0
        assert "settle" in result.output
        assert "... and 1 more" in result.output

    def test_zero_limit_still_counts_transactions(self, settings, client):
        result = invoke(["impacting", "--limit", "0"], settings, client)

        assert result.exit_code == 0
        assert "No transactions impact" not in result.output
        assert "... and 1 more" in result.output

    def test_no_impacting_transactions(self, settings, client):
        client.fetch_transactions.return_value = []

        result = invoke(["impacting"], settings, client)

        assert result.exit_code == 0
        assert "No transactions impact member balances" in result.output


class TestExplain:
    """Tests for the explain command."""

    def test_explains_transaction(self, settings, client):
        result = invoke(["explain", "dinner"], settings, client)

        assert result.exit_code == 0
        assert "$30.00" in result.output

    def test_expense_without_split_data(self, settings, client):
        client.fetch_all_splits_for_household.return_value = []

        result = invoke(["explain", "dinner"], settings, client)

        assert result.exit_code == 0
        assert "Split data for this transaction is not available yet" in result.output

    def test_settlement_missing_recipient(self, settings, client):
        client.fetch_transactions.return_value = [
            Transaction(
                id="settle",
                date=date(2025, 3, 2),
                amount=Decimal("30"),
                transaction_type=TransactionType.SETTLEMENT,
                paid_by_member_id="b",
            )
        ]

        result = invoke(["explain", "settle"], settings, client)

        assert result.exit_code == 0
        assert "settlement is missing its payer or recipient" in result.output
        assert "Split data" not in result.output

    def test_unknown_transaction(self, settings, client):
        result = invoke(["explain", "nope"], settings, client)

        assert result.exit_code == 1
        assert "nope" in result.output


class TestHealth:
    """Tests for the health command."""

    def test_healthy(self, settings, client):
        result = invoke(["health"], settings, client)

        assert result.exit_code == 0
        assert "OK" in result.output
        assert "All transaction splits add up" in result.output
