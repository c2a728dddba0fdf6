# tests/test_statements.py
"""
Tests for the balance sheet and income statement.
"""

import pytest
from datetime import date
from decimal import Decimal

from accounting.exceptions import InvalidDateRangeError
from accounting.reports.statements import (
    NET_INCOME_ROW_NAME,
    balance_sheet,
    income_statement,
)


@pytest.fixture
def month_of_trading(post_entry):
    """Capital, a purchase, a sale with its cost, and some expenses."""
    post_entry(date(2026, 1, 2), [("111005", "10000000", "0"), ("3105", "0", "10000000")])
    post_entry(
        date(2026, 1, 5),
        [("143505", "2000000", "0"), ("241205", "380000", "0"), ("220505", "0", "2380000")],
    )
    post_entry(
        date(2026, 1, 15),
        [("130505", "1785000", "0"), ("413505", "0", "1500000"), ("240805", "0", "285000")],
    )
    post_entry(date(2026, 1, 15), [("613505", "900000", "0"), ("143505", "0", "900000")])
    post_entry(date(2026, 1, 20), [("5120", "150000", "0"), ("5305", "50000", "0"), ("111005", "0", "200000")])


@pytest.mark.django_db
class TestBalanceSheet:

    def test_assets_equal_liabilities_plus_equity(self, company, month_of_trading):
        report = balance_sheet(company.id, date(2026, 1, 31))

        assert report.is_balanced
        assert report.total_assets == report.total_liabilities_and_equity
        assert report.total_assets == Decimal("12685000.00")

    def test_net_income_is_folded_into_equity(self, company, month_of_trading):
        report = balance_sheet(company.id, date(2026, 1, 31))

        assert report.net_income == Decimal("400000.00")
        row = report.equity.accounts[-1]
        assert row.name == NET_INCOME_ROW_NAME
        assert row.account_id is None
        assert row.balance == Decimal("400000.00")
        assert report.equity.total == Decimal("10400000.00")

    def test_sections_hold_only_their_type(self, company, month_of_trading):
        report = balance_sheet(company.id, date(2026, 1, 31))

        assert {a.code for a in report.assets.accounts} == {"111005", "130505", "143505"}
        assert {a.code for a in report.liabilities.accounts} == {"220505", "240805", "241205"}
        assert report.liabilities.total == Decimal("2285000.00")

    def test_empty_ledger_is_balanced(self, company, chart):
        report = balance_sheet(company.id, date(2026, 1, 31))

        assert report.is_balanced
        assert report.total_assets == Decimal("0.00")
        assert report.equity.accounts[0].name == NET_INCOME_ROW_NAME

    def test_to_dict_is_json_ready(self, company, month_of_trading):
        data = balance_sheet(company.id, date(2026, 1, 31)).to_dict()

        assert data["as_of_date"] == "2026-01-31"
        assert data["net_income"] == "400000.00"
        assert data["is_balanced"] is True


@pytest.mark.django_db
class TestIncomeStatement:

    def test_gross_profit_and_net_income(self, company, month_of_trading):
        report = income_statement(company.id, date(2026, 1, 1), date(2026, 1, 31))

        assert report.revenue.total == Decimal("1500000.00")
        assert report.cogs.total == Decimal("900000.00")
        assert report.gross_profit == Decimal("600000.00")
        assert report.expenses.total == Decimal("200000.00")
        assert report.net_income == Decimal("400000.00")

    def test_only_the_period_counts(self, company, month_of_trading, post_entry):
        post_entry(date(2026, 2, 3), [("110505", "70000", "0"), ("413505", "0", "70000")])

        february = income_statement(company.id, date(2026, 2, 1), date(2026, 2, 28))

        assert february.revenue.total == Decimal("70000.00")
        assert february.cogs.accounts == []
        assert february.net_income == Decimal("70000.00")

    def test_inverted_range_raises(self, company, chart):
        with pytest.raises(InvalidDateRangeError):
            income_statement(company.id, date(2026, 2, 1), date(2026, 1, 1))
