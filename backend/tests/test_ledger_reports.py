# tests/test_ledger_reports.py
"""
Tests for the trial balance, general journal, general ledger and cash flow.
"""

import pytest
from datetime import date
from decimal import Decimal

from accounting.commands import void_journal_entry
from accounting.exceptions import InvalidDateRangeError, NotFoundError
from accounting.models import JournalEntry
from accounting.reports.cash_flow import cash_flow
from accounting.reports.journal import general_journal, general_ledger
from accounting.reports.trial_balance import trial_balance


@pytest.fixture
def ledger(post_entry):
    """Entries spread over January and February."""
    return [
        post_entry(date(2026, 1, 2), [("111005", "5000", "0"), ("3105", "0", "5000")], description="Capital"),
        post_entry(date(2026, 1, 20), [("110505", "300", "0"), ("413505", "0", "300")], description="Venta contado"),
        post_entry(
            date(2026, 2, 3),
            [("413505", "0", "200"), ("130505", "238", "0"), ("240805", "0", "38")],
            description="Venta credito",
        ),
        post_entry(date(2026, 2, 10), [("5120", "120", "0"), ("111005", "0", "120")], description="Servicios"),
        post_entry(date(2026, 2, 15), [("111005", "238", "0"), ("130505", "0", "238")], description="Recaudo"),
    ]


@pytest.mark.django_db
class TestTrialBalance:

    def test_columns_balance(self, company, ledger):
        report = trial_balance(company.id, date(2026, 2, 28))

        assert report.total_debit == report.total_credit
        assert report.total_debit == Decimal("5896.00")

    def test_as_of_date_cuts_off(self, company, ledger):
        report = trial_balance(company.id, date(2026, 1, 31))

        assert {a.code for a in report.accounts} == {"110505", "111005", "3105", "413505"}
        assert report.total_debit == Decimal("5300.00")

    def test_voided_entries_drop_out(self, company, ledger):
        void_journal_entry(company.id, ledger[1].pk, "Venta anulada")

        report = trial_balance(company.id, date(2026, 1, 31))

        assert report.total_debit == Decimal("5000.00")


@pytest.mark.django_db
class TestGeneralJournal:

    def test_posted_entries_in_order(self, company, ledger, post_entry):
        post_entry(
            date(2026, 2, 5),
            [("110505", "1", "0"), ("413505", "0", "1")],
            status=JournalEntry.Status.DRAFT,
        )

        report = general_journal(company.id, date(2026, 2, 1), date(2026, 2, 28))

        assert [r.description for r in report.entries] == ["Venta credito", "Servicios", "Recaudo"]
        assert report.total_debit == report.total_credit == Decimal("596.00")

    def test_debit_lines_come_first(self, company, ledger):
        report = general_journal(company.id, date(2026, 2, 3), date(2026, 2, 3))

        lines = report.entries[0].lines
        assert lines[0].account_code == "130505"
        assert lines[0].debit == Decimal("238.00")
        assert [ln.account_code for ln in lines[1:]] == ["413505", "240805"]

    def test_inverted_range_raises(self, company, chart):
        with pytest.raises(InvalidDateRangeError):
            general_journal(company.id, date(2026, 3, 1), date(2026, 2, 1))


@pytest.mark.django_db
class TestGeneralLedger:

    def test_opening_running_and_closing(self, company, ledger, accounts):
        report = general_ledger(company.id, date(2026, 2, 1), date(2026, 2, 28))

        bank = next(s for s in report.accounts if s.code == "111005")
        assert bank.opening_balance == Decimal("5000.00")
        assert [m.running_balance for m in bank.movements] == [Decimal("4880.00"), Decimal("5118.00")]
        assert bank.closing_balance == Decimal("5118.00")
        assert bank.movements[0].description == "Servicios"

    def test_credit_nature_running_balance(self, company, ledger):
        report = general_ledger(company.id, date(2026, 1, 1), date(2026, 2, 28))

        revenue = next(s for s in report.accounts if s.code == "413505")
        assert revenue.opening_balance == Decimal("0.00")
        assert [m.running_balance for m in revenue.movements] == [Decimal("300.00"), Decimal("500.00")]

    def test_accounts_without_movements_are_skipped(self, company, ledger):
        report = general_ledger(company.id, date(2026, 2, 1), date(2026, 2, 28))

        codes = [s.code for s in report.accounts]
        assert "3105" not in codes
        assert codes == sorted(codes)

    def test_single_account_is_always_returned(self, company, ledger, accounts):
        report = general_ledger(
            company.id,
            date(2026, 2, 1),
            date(2026, 2, 28),
            account_id=accounts["3105"].pk,
        )

        assert len(report.accounts) == 1
        section = report.accounts[0]
        assert section.movements == []
        assert section.opening_balance == section.closing_balance == Decimal("5000.00")

    def test_recomputation_is_stable(self, company, ledger):
        first = general_ledger(company.id, date(2026, 1, 15), date(2026, 2, 28))
        second = general_ledger(company.id, date(2026, 1, 15), date(2026, 2, 28))

        assert first.to_dict() == second.to_dict()

    def test_window_from_earliest_date_has_zero_opening(self, company, ledger):
        report = general_ledger(company.id, date.min, date(2026, 2, 28))

        bank = next(s for s in report.accounts if s.code == "111005")
        assert bank.opening_balance == Decimal("0.00")
        assert bank.closing_balance == Decimal("5118.00")
        assert len(bank.movements) == 3

    def test_unknown_account_raises(self, company, chart):
        with pytest.raises(NotFoundError):
            general_ledger(company.id, date(2026, 1, 1), date(2026, 1, 31), account_id=999999)


@pytest.mark.django_db
class TestCashFlow:

    def test_inflows_and_outflows(self, company, ledger):
        report = cash_flow(company.id, date(2026, 2, 1), date(2026, 2, 28))

        assert report.opening_balance == Decimal("5300.00")
        assert report.total_inflows == Decimal("238.00")
        assert report.total_outflows == Decimal("120.00")
        assert report.net_change == Decimal("118.00")
        assert report.closing_balance == Decimal("5418.00")
        assert [m.entry_number for m in report.movements] == [ledger[3].entry_number, ledger[4].entry_number]

    def test_no_cash_accounts_gives_zero_report(self, company, ledger, settings):
        settings.ACCOUNTING_CASH_CLASS_PREFIX = "99"

        report = cash_flow(company.id, date(2026, 1, 1), date(2026, 2, 28))

        assert report.movements == []
        assert report.opening_balance == report.closing_balance == Decimal("0.00")
