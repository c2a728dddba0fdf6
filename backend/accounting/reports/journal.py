# accounting/reports/journal.py
"""
General journal and general ledger.

The journal lists POSTED entries chronologically with their lines; the
ledger regroups the same lines per account with opening balance and a
running balance.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta

from django.db.models import Prefetch

from accounting.balances import ZERO, calculate_balances, check_date_range, posted_lines
from accounting.exceptions import NotFoundError
from accounting.models import Account, JournalEntry, JournalLine
from accounting.reports.dto import (
    GeneralJournalLine,
    GeneralJournalReport,
    GeneralJournalRow,
    GeneralLedgerReport,
    LedgerAccountSection,
    LedgerMovement,
)
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)


def general_journal(tenant_id: int | None, from_date: date, to_date: date) -> GeneralJournalReport:
    """
    POSTED entries dated within [from_date, to_date], oldest first.

    Lines are listed debits first (debit descending).
    """
    tenant_id = require_tenant_id(tenant_id)
    check_date_range(from_date, to_date)

    entries = (
        JournalEntry.objects.filter(
            company_id=tenant_id,
            status=JournalEntry.Status.POSTED,
            date__gte=from_date,
            date__lte=to_date,
        )
        .order_by("date", "id")
        .prefetch_related(
            Prefetch(
                "lines",
                queryset=JournalLine.objects.select_related("account").order_by("-debit", "line_no"),
            )
        )
    )

    rows = []
    for entry in entries:
        rows.append(GeneralJournalRow(
            entry_id=entry.pk,
            entry_number=entry.entry_number,
            date=entry.date,
            description=entry.description,
            source=entry.source,
            lines=[
                GeneralJournalLine(
                    account_code=line.account.code,
                    account_name=line.account.name,
                    description=line.description,
                    debit=line.debit,
                    credit=line.credit,
                )
                for line in entry.lines.all()
            ],
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
        ))

    return GeneralJournalReport(
        from_date=from_date,
        to_date=to_date,
        entries=rows,
        total_debit=sum((r.total_debit for r in rows), ZERO),
        total_credit=sum((r.total_credit for r in rows), ZERO),
    )


def general_ledger(
    tenant_id: int | None,
    from_date: date,
    to_date: date,
    account_id: int | None = None,
) -> GeneralLedgerReport:
    """
    Per-account movements with opening, running and closing balances.

    Opening balances are everything POSTED through the day before
    from_date. Accounts without movements in the window are omitted,
    except the one requested through ``account_id``, which is always
    returned.

    Raises:
        InvalidDateRangeError: from_date is after to_date
        NotFoundError: account_id is not an active account of the tenant
    """
    tenant_id = require_tenant_id(tenant_id)
    check_date_range(from_date, to_date)

    accounts = Account.objects.filter(company_id=tenant_id, is_active=True).order_by("code")
    if account_id is not None:
        accounts = accounts.filter(pk=account_id)
        if not accounts.exists():
            raise NotFoundError(f"Account {account_id} not found.")

    # Nothing can be dated before date.min.
    opening = {}
    if from_date > date.min:
        opening = {
            b.account_id: b.balance
            for b in calculate_balances(tenant_id, from_date - timedelta(days=1))
        }

    lines = (
        posted_lines(tenant_id, to_date, from_date)
        .select_related("entry")
        .order_by("entry__date", "entry__id", "line_no")
    )
    if account_id is not None:
        lines = lines.filter(account_id=account_id)

    lines_by_account = defaultdict(list)
    for line in lines:
        lines_by_account[line.account_id].append(line)

    sections = []
    for account in accounts:
        account_lines = lines_by_account.get(account.pk, [])
        if not account_lines and account_id is None:
            continue

        opening_balance = opening.get(account.pk, ZERO)
        running = opening_balance
        movements = []
        for line in account_lines:
            if account.nature == Account.Nature.DEBIT:
                running += line.debit - line.credit
            else:
                running += line.credit - line.debit
            movements.append(LedgerMovement(
                entry_id=line.entry_id,
                entry_number=line.entry.entry_number,
                date=line.entry.date,
                description=line.description or line.entry.description,
                debit=line.debit,
                credit=line.credit,
                running_balance=running,
            ))

        sections.append(LedgerAccountSection(
            account_id=account.pk,
            code=account.code,
            name=account.name,
            type=account.account_type,
            nature=account.nature,
            opening_balance=opening_balance,
            movements=movements,
            closing_balance=running,
        ))

    logger.debug(
        f"General ledger for company {tenant_id} {from_date}..{to_date}: "
        f"{len(sections)} accounts"
    )
    return GeneralLedgerReport(from_date=from_date, to_date=to_date, accounts=sections)
