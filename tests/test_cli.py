"""Smoke tests for the Typer CLI."""

import pytest
from typer.testing import CliRunner

from group_ledger.cli import app, format_money, parse_member, parse_shares

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a temporary database and account."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("ACCOUNT_ID", "acct-john")
    monkeypatch.setenv("ACCOUNT_EMAIL", "john@test.com")
    monkeypatch.setenv("ACCOUNT_NAME", "John")


class TestParsing:
    def test_parse_member(self):
        member = parse_member("Alice:alice@test.com:#f97316")

        assert member.name == "Alice"
        assert member.email == "alice@test.com"
        assert member.color == "#f97316"

    def test_parse_shares_ids_and_values(self):
        assert parse_shares(["3", "1"]) == [3, 1]
        assert parse_shares(["3=40", "1=60.5"]) == {3: 40, 1: 60.5}
        assert parse_shares(None) == []

    def test_format_money(self):
        from decimal import Decimal

        assert format_money(Decimal("-85.02"), use_color=False) == "($85.02)"
        assert format_money(Decimal("1234.5"), use_color=False) == " $1,234.50 "


class TestCommands:
    """End-to-end runs against a temporary database."""

    def test_group_expense_and_balances(self):
        result = runner.invoke(
            app, ["group", "create", "Trip", "-m", "Alice:alice@test.com", "-m", "Bob:bob@test.com"]
        )
        assert result.exit_code == 0, result.output
        assert "Created group 1" in result.output

        result = runner.invoke(
            app, ["expense", "add", "1", "Lunch", "150", "--payer", "1", "--date", "2025-01-10"]
        )
        assert result.exit_code == 0, result.output
        assert "Added expense 1" in result.output

        result = runner.invoke(app, ["balances", "1"])
        assert result.exit_code == 0, result.output
        assert "Suggested settlements" in result.output
        assert "$50.00" in result.output

    def test_percentage_expense(self):
        runner.invoke(app, ["group", "create", "Trip", "-m", "Alice:alice@test.com"])

        result = runner.invoke(
            app,
            ["expense", "add", "1", "Hotel", "120", "--payer", "2",
             "--mode", "percentage", "-s", "1=25", "-s", "2=75"],
        )

        assert result.exit_code == 0, result.output
        assert "$90.00" in result.output

    def test_split_mismatch_reports_error(self):
        runner.invoke(app, ["group", "create", "Trip", "-m", "Alice:alice@test.com"])

        result = runner.invoke(
            app,
            ["expense", "add", "1", "Hotel", "120", "--payer", "1",
             "--mode", "custom", "-s", "1=10", "-s", "2=10"],
        )

        assert result.exit_code == 1
        assert "Split total must match amount" in result.output

    def test_missing_group(self):
        result = runner.invoke(app, ["group", "show", "99"])

        assert result.exit_code == 1
        assert "Group 99 not found" in result.output

    def test_invalid_mode(self):
        runner.invoke(app, ["group", "create", "Trip"])

        result = runner.invoke(
            app, ["expense", "add", "1", "Lunch", "10", "--payer", "1", "--mode", "shares"]
        )

        assert result.exit_code != 0

    def test_zero_amount_reports_error_and_keeps_group_readable(self):
        runner.invoke(app, ["group", "create", "Trip", "-m", "Alice:alice@test.com"])

        result = runner.invoke(app, ["expense", "add", "1", "Nothing", "0", "--payer", "1"])

        assert result.exit_code == 1
        assert "Amount must be positive" in result.output

        result = runner.invoke(app, ["balances", "1"])
        assert result.exit_code == 0, result.output

    def test_participant_with_bad_email_reports_error(self):
        runner.invoke(app, ["group", "create", "Trip"])

        result = runner.invoke(app, ["participant", "add", "1", "Chris", "chris"])

        assert result.exit_code == 1
        assert "Invalid email" in result.output
