# tests/test_chart_setup.py
"""
Tests for the PUC chart of accounts bootstrap and its management command.
"""

import pytest
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError

from accounting.chart import DEFAULT_MAPPINGS, PUC_ACCOUNTS, setup_chart_of_accounts
from accounting.exceptions import NotFoundError, StateError
from accounting.models import Account, AccountingConfig


@pytest.mark.django_db
class TestSetupChartOfAccounts:

    def test_creates_all_accounts(self, company):
        setup_chart_of_accounts(company.id)

        assert Account.objects.filter(company=company).count() == len(PUC_ACCOUNTS)
        assert not Account.objects.filter(company=company, is_system_account=False).exists()

    def test_hierarchy_and_levels(self, company, accounts):
        cash = accounts["110505"]

        assert cash.parent.code == "1105"
        assert cash.parent.parent.code == "11"
        assert cash.level == 4
        assert accounts["1"].parent is None
        assert accounts["1"].level == 1
        assert accounts["1105"].level == 3
        assert accounts["111005"].is_bank_account

    def test_natures(self, accounts):
        assert accounts["110505"].nature == Account.Nature.DEBIT
        assert accounts["413505"].nature == Account.Nature.CREDIT
        assert accounts["3610"].nature == Account.Nature.DEBIT
        assert accounts["613505"].account_type == Account.AccountType.COGS

    def test_default_config(self, company, chart):
        assert chart.auto_generate_entries is False
        for mapping, code in DEFAULT_MAPPINGS.items():
            account = getattr(chart, mapping)
            assert account.code == code
            assert account.company_id == company.id

    def test_second_run_is_rejected(self, company, chart):
        with pytest.raises(StateError):
            setup_chart_of_accounts(company.id)

        assert AccountingConfig.objects.filter(company=company).count() == 1

    def test_unknown_company(self, db):
        with pytest.raises(NotFoundError):
            setup_chart_of_accounts(999999)

    def test_charts_are_per_company(self, company, chart, second_company, second_chart):
        assert second_chart.cash_account.company_id == second_company.id
        assert Account.objects.filter(company=second_company).count() == len(PUC_ACCOUNTS)


@pytest.mark.django_db
class TestSetupAccountingCommand:

    def test_command_seeds_company(self, company):
        out = StringIO()

        call_command("setup_accounting", "--company", str(company.id), stdout=out)

        assert "Done!" in out.getvalue()
        assert AccountingConfig.objects.get(company=company).auto_generate_entries is False

    def test_enable_auto_entries(self, company):
        call_command(
            "setup_accounting", "--company", str(company.id), "--enable-auto-entries",
            stdout=StringIO(),
        )

        assert AccountingConfig.objects.get(company=company).auto_generate_entries is True

    def test_already_configured(self, company, chart):
        with pytest.raises(CommandError):
            call_command("setup_accounting", "--company", str(company.id), stdout=StringIO())
