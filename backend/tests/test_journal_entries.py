# tests/test_journal_entries.py
"""
Tests for the journal service.

Tests cover:
- Entry creation: validation, balance, numbering, events
- Posting and voiding state machine
- Tenant isolation of accounts and entries
- Lookups
"""

import pytest
from datetime import date
from decimal import Decimal

from accounting.commands import (
    create_auto_entry,
    create_journal_entry,
    get_journal_entry,
    list_journal_entries,
    post_journal_entry,
    void_journal_entry,
)
from accounting.exceptions import (
    InvalidLineError,
    InvalidStateError,
    NotFoundError,
    UnbalancedEntryError,
)
from accounting.models import Account, JournalEntry
from events.models import BusinessEvent
from events.types import EventTypes
from tenant.context import NoTenantContextError, tenant_context


def _lines(accounts, *specs):
    return [
        {"account_id": accounts[code].pk, "debit": debit, "credit": credit, "description": ""}
        for code, debit, credit in specs
    ]


# =============================================================================
# Creation
# =============================================================================

@pytest.mark.django_db
class TestCreateJournalEntry:

    def test_creates_draft_with_totals_and_lines(self, company, accounts, user):
        entry = create_journal_entry(
            company.id,
            date=date(2026, 1, 10),
            description="Aporte de capital",
            created_by=user,
            lines=_lines(
                accounts,
                ("111005", "5000000", "0"),
                ("3105", "0", "5000000"),
            ),
        )

        assert entry.status == JournalEntry.Status.DRAFT
        assert entry.source == JournalEntry.Source.MANUAL
        assert entry.total_debit == Decimal("5000000.00")
        assert entry.total_credit == Decimal("5000000.00")
        assert entry.posted_at is None
        assert entry.created_by == user
        assert [ln.line_no for ln in entry.lines.order_by("line_no")] == [1, 2]

    def test_entry_numbers_are_sequential_per_company(self, company, accounts, second_company, second_chart):
        first = create_journal_entry(
            company.id,
            date=date(2026, 1, 1),
            description="Uno",
            lines=_lines(accounts, ("110505", "10", "0"), ("3105", "0", "10")),
        )
        second = create_journal_entry(
            company.id,
            date=date(2026, 1, 1),
            description="Dos",
            lines=_lines(accounts, ("110505", "10", "0"), ("3105", "0", "10")),
        )
        other_accounts = {a.code: a for a in Account.objects.filter(company=second_company)}
        other = create_journal_entry(
            second_company.id,
            date=date(2026, 1, 1),
            description="Otra empresa",
            lines=_lines(other_accounts, ("110505", "10", "0"), ("3105", "0", "10")),
        )

        assert first.entry_number == "CE-00001"
        assert second.entry_number == "CE-00002"
        assert other.entry_number == "CE-00001"

    def test_unbalanced_entry_is_rejected(self, company, accounts):
        with pytest.raises(UnbalancedEntryError) as exc:
            create_journal_entry(
                company.id,
                date=date(2026, 1, 1),
                description="Descuadrado",
                lines=_lines(accounts, ("110505", "100", "0"), ("413505", "0", "99.99")),
            )

        assert exc.value.total_debit == Decimal("100.00")
        assert exc.value.total_credit == Decimal("99.99")
        assert not JournalEntry.objects.filter(company=company).exists()

    def test_sub_cent_amount_is_rejected_not_rounded(self, company, accounts):
        with pytest.raises(InvalidLineError, match="more than 2 decimal places") as exc:
            create_journal_entry(
                company.id,
                date=date(2026, 1, 1),
                description="Centavos de mas",
                lines=_lines(accounts, ("110505", "100.004", "0"), ("413505", "0", "100.00")),
            )

        assert exc.value.line_no == 1
        assert not JournalEntry.objects.filter(company=company).exists()

    def test_trailing_zero_precision_is_accepted(self, company, accounts):
        entry = create_journal_entry(
            company.id,
            date=date(2026, 1, 1),
            description="Ceros a la derecha",
            lines=_lines(accounts, ("110505", "100.000", "0"), ("413505", "0", "100")),
        )

        assert entry.total_debit == entry.total_credit == Decimal("100.00")

    def test_manual_entries_cannot_be_created_posted(self, company, accounts):
        with pytest.raises(TypeError):
            create_journal_entry(
                company.id,
                date=date(2026, 1, 1),
                description="Directo a contabilizado",
                status=JournalEntry.Status.POSTED,
                lines=_lines(accounts, ("110505", "10", "0"), ("3105", "0", "10")),
            )

        assert not JournalEntry.objects.filter(company=company).exists()

    @pytest.mark.parametrize(
        "debit,credit",
        [("-5", "0"), ("5", "5"), ("0", "0")],
    )
    def test_invalid_line_amounts_are_rejected(self, company, accounts, debit, credit):
        with pytest.raises(InvalidLineError):
            create_journal_entry(
                company.id,
                date=date(2026, 1, 1),
                description="Linea invalida",
                lines=_lines(accounts, ("110505", debit, credit), ("413505", "0", "5")),
            )

    def test_single_line_is_rejected(self, company, accounts):
        with pytest.raises(InvalidLineError, match="at least 2 lines"):
            create_journal_entry(
                company.id,
                date=date(2026, 1, 1),
                description="Una linea",
                lines=_lines(accounts, ("110505", "0", "0")),
            )

    def test_inactive_account_is_rejected(self, company, accounts):
        inactive = accounts["5305"]
        Account.objects.filter(pk=inactive.pk).update(is_active=False)

        with pytest.raises(NotFoundError, match="inactive"):
            create_journal_entry(
                company.id,
                date=date(2026, 1, 1),
                description="Cuenta inactiva",
                lines=_lines(accounts, ("5305", "10", "0"), ("110505", "0", "10")),
            )

    def test_foreign_account_is_rejected(self, company, accounts, second_company, second_chart):
        foreign = Account.objects.get(company=second_company, code="110505")

        with pytest.raises(NotFoundError):
            create_journal_entry(
                company.id,
                date=date(2026, 1, 1),
                description="Cuenta ajena",
                lines=[
                    {"account_id": foreign.pk, "debit": "10", "credit": "0"},
                    {"account_id": accounts["3105"].pk, "debit": "0", "credit": "10"},
                ],
            )

    def test_creation_emits_created_event(self, company, accounts):
        entry = create_journal_entry(
            company.id,
            date=date(2026, 1, 1),
            description="Evento",
            lines=_lines(accounts, ("110505", "10", "0"), ("3105", "0", "10")),
        )

        event = BusinessEvent.objects.get(
            company=company,
            event_type=EventTypes.JOURNAL_ENTRY_CREATED,
        )
        assert event.aggregate_id == str(entry.public_id)
        assert event.data["entry_number"] == "CE-00001"
        assert event.data["total_debit"] == "10.00"
        assert [ln["account_code"] for ln in event.data["lines"]] == ["110505", "3105"]

    def test_auto_entry_is_created_posted(self, company, accounts):
        entry = create_auto_entry(
            company.id,
            date=date(2026, 2, 1),
            description="Venta - Factura F-1",
            source=JournalEntry.Source.INVOICE_SALE,
            lines=_lines(accounts, ("130505", "119", "0"), ("413505", "0", "100"), ("240805", "0", "19")),
        )

        assert entry.status == JournalEntry.Status.POSTED
        assert entry.posted_at is not None
        assert BusinessEvent.objects.filter(
            company=company,
            event_type=EventTypes.JOURNAL_ENTRY_POSTED,
            aggregate_id=str(entry.public_id),
        ).exists()

    def test_ambient_tenant_is_used_when_none_given(self, company, accounts):
        with tenant_context(company.id):
            entry = create_journal_entry(
                None,
                date=date(2026, 1, 1),
                description="Contexto",
                lines=_lines(accounts, ("110505", "10", "0"), ("3105", "0", "10")),
            )

        assert entry.company_id == company.id

    def test_missing_tenant_raises(self, accounts):
        with pytest.raises(NoTenantContextError):
            create_journal_entry(
                None,
                date=date(2026, 1, 1),
                description="Sin empresa",
                lines=_lines(accounts, ("110505", "10", "0"), ("3105", "0", "10")),
            )


# =============================================================================
# State machine
# =============================================================================

@pytest.mark.django_db
class TestPostAndVoid:

    def test_post_draft(self, company, post_entry):
        entry = post_entry(
            date(2026, 1, 5),
            [("110505", "50", "0"), ("413505", "0", "50")],
            status=JournalEntry.Status.DRAFT,
        )

        posted = post_journal_entry(company.id, entry.pk)

        assert posted.status == JournalEntry.Status.POSTED
        assert posted.posted_at is not None

    def test_cannot_post_twice(self, company, post_entry):
        entry = post_entry(date(2026, 1, 5), [("110505", "50", "0"), ("413505", "0", "50")])

        with pytest.raises(InvalidStateError) as exc:
            post_journal_entry(company.id, entry.pk)

        assert exc.value.current_status == JournalEntry.Status.POSTED

    def test_void_posted(self, company, post_entry):
        entry = post_entry(date(2026, 1, 5), [("110505", "50", "0"), ("413505", "0", "50")])

        voided = void_journal_entry(company.id, entry.pk, "Error de digitacion")

        assert voided.status == JournalEntry.Status.VOIDED
        assert voided.void_reason == "Error de digitacion"
        assert voided.voided_at is not None
        assert BusinessEvent.objects.filter(
            company=company,
            event_type=EventTypes.JOURNAL_ENTRY_VOIDED,
        ).count() == 1

    def test_void_requires_reason(self, company, post_entry):
        entry = post_entry(date(2026, 1, 5), [("110505", "50", "0"), ("413505", "0", "50")])

        with pytest.raises(InvalidStateError, match="reason"):
            void_journal_entry(company.id, entry.pk, "   ")

    def test_cannot_void_draft(self, company, post_entry):
        entry = post_entry(
            date(2026, 1, 5),
            [("110505", "50", "0"), ("413505", "0", "50")],
            status=JournalEntry.Status.DRAFT,
        )

        with pytest.raises(InvalidStateError):
            void_journal_entry(company.id, entry.pk, "No aplica")

    def test_voided_is_terminal(self, company, post_entry):
        entry = post_entry(date(2026, 1, 5), [("110505", "50", "0"), ("413505", "0", "50")])
        void_journal_entry(company.id, entry.pk, "Anulado")

        with pytest.raises(InvalidStateError):
            post_journal_entry(company.id, entry.pk)
        with pytest.raises(InvalidStateError):
            void_journal_entry(company.id, entry.pk, "Otra vez")

    def test_other_tenant_cannot_touch_entry(self, company, post_entry, second_company):
        entry = post_entry(date(2026, 1, 5), [("110505", "50", "0"), ("413505", "0", "50")])

        with pytest.raises(NotFoundError):
            void_journal_entry(second_company.id, entry.pk, "Intruso")


# =============================================================================
# Lookups
# =============================================================================

@pytest.mark.django_db
class TestLookups:

    def test_get_unknown_entry(self, company, chart):
        with pytest.raises(NotFoundError):
            get_journal_entry(company.id, 999999)

    def test_list_filters(self, company, post_entry):
        january = post_entry(date(2026, 1, 5), [("110505", "50", "0"), ("413505", "0", "50")])
        draft = post_entry(
            date(2026, 2, 5),
            [("110505", "20", "0"), ("413505", "0", "20")],
            status=JournalEntry.Status.DRAFT,
        )

        posted = list_journal_entries(company.id, status=JournalEntry.Status.POSTED)
        february = list_journal_entries(company.id, from_date=date(2026, 2, 1), to_date=date(2026, 2, 28))
        everything = list_journal_entries(company.id)

        assert [e.pk for e in posted] == [january.pk]
        assert [e.pk for e in february] == [draft.pk]
        assert [e.pk for e in everything] == [draft.pk, january.pk]
