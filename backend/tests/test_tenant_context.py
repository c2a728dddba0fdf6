# tests/test_tenant_context.py
"""
Tests for tenant resolution and cross-tenant isolation of the ledger.
"""

import pytest
from datetime import date

from accounting.reports.trial_balance import trial_balance
from tenant.context import (
    NoTenantContextError,
    clear_tenant_context,
    get_current_tenant_id,
    require_tenant_id,
    set_tenant_context,
    tenant_context,
)


class TestRequireTenantId:

    def test_explicit_id_wins(self):
        with tenant_context(7):
            assert require_tenant_id(3) == 3

    def test_ambient_context(self):
        with tenant_context(7):
            assert require_tenant_id() == 7
        assert get_current_tenant_id() is None

    def test_no_tenant_raises(self):
        with pytest.raises(NoTenantContextError):
            require_tenant_id(None)

    def test_nested_contexts_restore(self):
        with tenant_context(1):
            with tenant_context(2):
                assert get_current_tenant_id() == 2
            assert get_current_tenant_id() == 1

    def test_set_and_clear(self):
        set_tenant_context(5)
        try:
            assert require_tenant_id() == 5
        finally:
            clear_tenant_context()
        assert get_current_tenant_id() is None


@pytest.mark.django_db
class TestReportIsolation:

    def test_reports_only_see_their_tenant(self, company, post_entry, second_company, second_chart):
        post_entry(date(2026, 1, 5), [("110505", "10", "0"), ("3105", "0", "10")])

        with tenant_context(second_company.id):
            report = trial_balance(None, date(2026, 12, 31))

        assert report.accounts == []

    def test_reports_need_a_tenant(self, db):
        with pytest.raises(NoTenantContextError):
            trial_balance(None, date(2026, 12, 31))
