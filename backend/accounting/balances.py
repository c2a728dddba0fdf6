# accounting/balances.py
"""
Balance engine.

Every report derives account balances from ``calculate_balances``; none
computes them on its own. Balances are recomputed from POSTED lines on
every call and never cached.
"""

import logging
from datetime import date
from decimal import Decimal

from django.db.models import Sum

from accounting.exceptions import InvalidDateRangeError
from accounting.models import Account, JournalEntry, JournalLine
from accounting.reports.dto import AccountBalance
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def signed_balance(nature: str, debit: Decimal, credit: Decimal) -> Decimal:
    """Balance in the account's own orientation."""
    if nature == Account.Nature.DEBIT:
        return debit - credit
    return credit - debit


def posted_lines(tenant_id: int, as_of_date: date, from_date: date | None = None):
    """Lines of POSTED entries dated within [from_date, as_of_date]."""
    qs = JournalLine.objects.filter(
        company_id=tenant_id,
        entry__company_id=tenant_id,
        entry__status=JournalEntry.Status.POSTED,
        entry__date__lte=as_of_date,
    )
    if from_date is not None:
        qs = qs.filter(entry__date__gte=from_date)
    return qs


def check_date_range(from_date: date | None, to_date: date) -> None:
    if from_date is not None and from_date > to_date:
        raise InvalidDateRangeError(
            f"from_date {from_date} is after {to_date}."
        )


def calculate_balances(
    tenant_id: int | None,
    as_of_date: date,
    from_date: date | None = None,
) -> list[AccountBalance]:
    """
    Per-account debit/credit totals and signed balance.

    Only active accounts with activity in the window are returned, ordered
    by code. Accounts whose debit and credit totals are both zero are left
    out, so reports never list dormant accounts.

    Raises:
        InvalidDateRangeError: from_date is after as_of_date
    """
    tenant_id = require_tenant_id(tenant_id)
    check_date_range(from_date, as_of_date)

    totals = {
        row["account_id"]: (row["total_debit"] or ZERO, row["total_credit"] or ZERO)
        for row in (
            posted_lines(tenant_id, as_of_date, from_date)
            .order_by()
            .values("account_id")
            .annotate(total_debit=Sum("debit"), total_credit=Sum("credit"))
        )
    }

    balances = []
    for account in Account.objects.filter(company_id=tenant_id, is_active=True).order_by("code"):
        debit, credit = totals.get(account.pk, (ZERO, ZERO))
        if debit == 0 and credit == 0:
            continue
        balances.append(AccountBalance(
            account_id=account.pk,
            code=account.code,
            name=account.name,
            type=account.account_type,
            nature=account.nature,
            level=account.level,
            total_debit=debit,
            total_credit=credit,
            balance=signed_balance(account.nature, debit, credit),
        ))

    logger.debug(
        f"Balances for company {tenant_id} as of {as_of_date} "
        f"(from {from_date}): {len(balances)} accounts"
    )
    return balances
