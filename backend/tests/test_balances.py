# tests/test_balances.py
"""
Tests for the balance engine.

Balances come only from POSTED entries, are signed by account nature,
and are filtered by the date window.
"""

import pytest
from datetime import date
from decimal import Decimal

from accounting.balances import calculate_balances, signed_balance
from accounting.commands import void_journal_entry
from accounting.exceptions import InvalidDateRangeError
from accounting.models import Account, JournalEntry


def _by_code(balances):
    return {b.code: b for b in balances}


class TestSignedBalance:

    def test_debit_nature(self):
        assert signed_balance(Account.Nature.DEBIT, Decimal("100"), Decimal("30")) == Decimal("70")

    def test_credit_nature(self):
        assert signed_balance(Account.Nature.CREDIT, Decimal("100"), Decimal("30")) == Decimal("-70")


@pytest.mark.django_db
class TestCalculateBalances:

    def test_empty_ledger(self, company, chart):
        assert calculate_balances(company.id, date(2026, 12, 31)) == []

    def test_sale_and_cost(self, company, post_entry):
        post_entry(date(2026, 1, 10), [("110505", "1000", "0"), ("413505", "0", "1000")])
        post_entry(date(2026, 1, 10), [("613505", "600", "0"), ("143505", "0", "600")])

        balances = _by_code(calculate_balances(company.id, date(2026, 1, 31)))

        assert balances["110505"].balance == Decimal("1000.00")
        assert balances["413505"].balance == Decimal("1000.00")
        assert balances["413505"].total_credit == Decimal("1000.00")
        assert balances["613505"].balance == Decimal("600.00")
        assert balances["143505"].balance == Decimal("-600.00")
        assert list(balances) == sorted(balances)

    def test_only_posted_entries_count(self, company, post_entry):
        post_entry(
            date(2026, 1, 10),
            [("110505", "10", "0"), ("413505", "0", "10")],
            status=JournalEntry.Status.DRAFT,
        )
        voided = post_entry(date(2026, 1, 10), [("110505", "20", "0"), ("413505", "0", "20")])
        void_journal_entry(company.id, voided.pk, "Duplicado")
        post_entry(date(2026, 1, 10), [("110505", "30", "0"), ("413505", "0", "30")])

        balances = _by_code(calculate_balances(company.id, date(2026, 1, 31)))

        assert balances["110505"].balance == Decimal("30.00")

    def test_date_window(self, company, post_entry):
        post_entry(date(2026, 1, 10), [("110505", "100", "0"), ("3105", "0", "100")])
        post_entry(date(2026, 2, 10), [("110505", "50", "0"), ("413505", "0", "50")])
        post_entry(date(2026, 3, 10), [("110505", "25", "0"), ("413505", "0", "25")])

        as_of_feb = _by_code(calculate_balances(company.id, date(2026, 2, 28)))
        only_feb = _by_code(calculate_balances(company.id, date(2026, 2, 28), date(2026, 2, 1)))

        assert as_of_feb["110505"].balance == Decimal("150.00")
        assert only_feb["110505"].balance == Decimal("50.00")
        assert "3105" not in only_feb

    def test_inactive_accounts_are_excluded(self, company, post_entry, accounts):
        post_entry(date(2026, 1, 10), [("5305", "10", "0"), ("110505", "0", "10")])
        Account.objects.filter(pk=accounts["5305"].pk).update(is_active=False)

        balances = _by_code(calculate_balances(company.id, date(2026, 1, 31)))

        assert "5305" not in balances
        assert "110505" in balances

    def test_tenant_isolation(self, company, post_entry, second_company, second_chart):
        post_entry(date(2026, 1, 10), [("110505", "10", "0"), ("3105", "0", "10")])

        assert calculate_balances(second_company.id, date(2026, 1, 31)) == []

    def test_inverted_range_raises(self, company, chart):
        with pytest.raises(InvalidDateRangeError):
            calculate_balances(company.id, date(2026, 1, 1), date(2026, 2, 1))
