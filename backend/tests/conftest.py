# tests/conftest.py
"""
Pytest fixtures for the ledger tests.

Most tests run against a company seeded with the PUC chart of accounts
(setup_chart_of_accounts). Journal rows are always written through the
journal service so the write barrier stays meaningful.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from django.contrib.auth import get_user_model

from accounts.models import Company
from accounting.chart import setup_chart_of_accounts
from accounting.commands import create_journal_entry, post_journal_entry
from accounting.models import Account, AccountingConfig, JournalEntry
from accounting.write_barrier import bootstrap_writes_allowed
from commerce.models import Customer, Supplier


User = get_user_model()


@pytest.fixture(autouse=True)
def _testing_settings(settings):
    """Test-only settings: write barrier bypass and in-process dispatch."""
    settings.TESTING = True
    settings.EVENTS_SYNC = True
    settings.DISABLE_EVENT_VALIDATION = False


# =============================================================================
# Company & User Fixtures
# =============================================================================

@pytest.fixture
def company(db):
    """Create a test company."""
    return Company.objects.create(
        name="Tienda Test",
        slug=f"tienda-{uuid4().hex[:8]}",
        nit="900123456-7",
    )


@pytest.fixture
def second_company(db):
    """Create a second company for multi-tenant tests."""
    return Company.objects.create(
        name="Otra Tienda",
        slug=f"otra-{uuid4().hex[:8]}",
    )


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email="contador@test.com",
        password="testpass123",
        name="Contador",
    )


# =============================================================================
# Chart of Accounts Fixtures
# =============================================================================

@pytest.fixture
def chart(company):
    """PUC chart for the company; returns the default AccountingConfig."""
    return setup_chart_of_accounts(company.id)


@pytest.fixture
def accounts(chart, company):
    """Accounts of the seeded chart keyed by PUC code."""
    return {a.code: a for a in Account.objects.filter(company=company)}


@pytest.fixture
def auto_config(chart):
    """AccountingConfig with automatic entries switched on."""
    chart.auto_generate_entries = True
    with bootstrap_writes_allowed():
        chart.save(update_fields=["auto_generate_entries", "updated_at"])
    return chart


@pytest.fixture
def second_chart(second_company):
    return setup_chart_of_accounts(second_company.id)


# =============================================================================
# Commerce Fixtures
# =============================================================================

@pytest.fixture
def customer(company):
    return Customer.objects.create(
        company=company,
        document_type="NIT",
        document_number="800111222",
        name="Cliente Uno",
    )


@pytest.fixture
def supplier(company):
    return Supplier.objects.create(
        company=company,
        document_number="900555666",
        name="Proveedor Mayorista",
        payment_terms=Supplier.PaymentTerms.NET_30,
    )


# =============================================================================
# Journal Helpers
# =============================================================================

@pytest.fixture
def post_entry(company, chart):
    """
    Factory posting a balanced entry.

    Usage:
        post_entry(date(2026, 1, 5), [("110505", "100", "0"), ("413505", "0", "100")])
    """

    def _post(entry_date: date, lines, description="Asiento de prueba", status=JournalEntry.Status.POSTED):
        by_code = {a.code: a.pk for a in Account.objects.filter(company=company)}
        entry = create_journal_entry(
            company.id,
            date=entry_date,
            description=description,
            lines=[
                {
                    "account_id": by_code[code],
                    "debit": Decimal(str(debit)),
                    "credit": Decimal(str(credit)),
                    "description": "",
                }
                for code, debit, credit in lines
            ],
        )
        if status == JournalEntry.Status.POSTED:
            entry = post_journal_entry(company.id, entry.pk)
        return entry

    return _post
