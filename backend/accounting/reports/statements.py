# accounting/reports/statements.py
"""
Financial statements: balance sheet and income statement.

Both partition balance engine output by account type. The balance sheet
folds the period result into equity as a synthetic row that is never
stored as an account.
"""

import logging
from datetime import date

from accounting.balances import ZERO, calculate_balances, check_date_range
from accounting.models import Account
from accounting.reports.dto import (
    AccountBalance,
    BalanceSheetReport,
    IncomeStatementReport,
    StatementSection,
)
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)

NET_INCOME_ROW_NAME = "Utilidad del ejercicio"


def _section(title: str, balances: list[AccountBalance], account_type: str) -> StatementSection:
    accounts = [b for b in balances if b.type == account_type]
    return StatementSection(
        title=title,
        accounts=accounts,
        total=sum((a.balance for a in accounts), ZERO),
    )


def _net_income_row(net_income) -> AccountBalance:
    return AccountBalance(
        account_id=None,
        code="",
        name=NET_INCOME_ROW_NAME,
        type=Account.AccountType.EQUITY,
        nature=Account.Nature.CREDIT,
        level=4,
        total_debit=ZERO,
        total_credit=ZERO,
        balance=net_income,
    )


def balance_sheet(tenant_id: int | None, as_of_date: date) -> BalanceSheetReport:
    tenant_id = require_tenant_id(tenant_id)
    balances = calculate_balances(tenant_id, as_of_date)

    assets = _section("Activos", balances, Account.AccountType.ASSET)
    liabilities = _section("Pasivos", balances, Account.AccountType.LIABILITY)
    equity = _section("Patrimonio", balances, Account.AccountType.EQUITY)

    revenue = _section("", balances, Account.AccountType.REVENUE).total
    cogs = _section("", balances, Account.AccountType.COGS).total
    expenses = _section("", balances, Account.AccountType.EXPENSE).total
    net_income = revenue - cogs - expenses

    equity.accounts.append(_net_income_row(net_income))
    equity.total += net_income

    total_liabilities_and_equity = liabilities.total + equity.total
    is_balanced = assets.total == total_liabilities_and_equity
    if not is_balanced:
        logger.warning(
            f"Balance sheet for company {tenant_id} as of {as_of_date} does not "
            f"balance: assets={assets.total} liabilities+equity={total_liabilities_and_equity}"
        )

    return BalanceSheetReport(
        as_of_date=as_of_date,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        net_income=net_income,
        total_assets=assets.total,
        total_liabilities_and_equity=total_liabilities_and_equity,
        is_balanced=is_balanced,
    )


def income_statement(tenant_id: int | None, from_date: date, to_date: date) -> IncomeStatementReport:
    """Result of the period: balances over [from_date, to_date] only."""
    tenant_id = require_tenant_id(tenant_id)
    check_date_range(from_date, to_date)
    balances = calculate_balances(tenant_id, to_date, from_date)

    revenue = _section("Ingresos", balances, Account.AccountType.REVENUE)
    cogs = _section("Costo de Ventas", balances, Account.AccountType.COGS)
    expenses = _section("Gastos", balances, Account.AccountType.EXPENSE)

    gross_profit = revenue.total - cogs.total
    net_income = gross_profit - expenses.total

    logger.debug(
        f"Income statement for company {tenant_id} {from_date}..{to_date}: "
        f"net_income={net_income}"
    )
    return IncomeStatementReport(
        from_date=from_date,
        to_date=to_date,
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        expenses=expenses,
        net_income=net_income,
    )
