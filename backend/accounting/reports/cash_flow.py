# accounting/reports/cash_flow.py
import logging
from datetime import date

from django.conf import settings
from django.db.models import Sum

from accounting.balances import ZERO, check_date_range, posted_lines
from accounting.models import Account, JournalEntry, JournalLine
from accounting.reports.dto import CashFlowMovement, CashFlowReport
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)


def cash_flow(tenant_id: int | None, from_date: date, to_date: date) -> CashFlowReport:
    """
    Movements of cash and bank accounts over [from_date, to_date].

    Cash and bank accounts are the active accounts whose code starts with
    ACCOUNTING_CASH_CLASS_PREFIX. With none configured the report is all
    zeros.
    """
    tenant_id = require_tenant_id(tenant_id)
    check_date_range(from_date, to_date)

    prefix = getattr(settings, "ACCOUNTING_CASH_CLASS_PREFIX", "11")
    cash_account_ids = list(
        Account.objects.filter(
            company_id=tenant_id,
            is_active=True,
            code__startswith=prefix,
        ).values_list("id", flat=True)
    )
    if not cash_account_ids:
        return CashFlowReport(from_date=from_date, to_date=to_date)

    prior = JournalLine.objects.filter(
        company_id=tenant_id,
        account_id__in=cash_account_ids,
        entry__status=JournalEntry.Status.POSTED,
        entry__date__lt=from_date,
    ).aggregate(debit=Sum("debit"), credit=Sum("credit"))
    opening_balance = (prior["debit"] or ZERO) - (prior["credit"] or ZERO)

    lines = (
        posted_lines(tenant_id, to_date, from_date)
        .filter(account_id__in=cash_account_ids)
        .select_related("entry")
        .order_by("entry__date", "entry__id", "line_no")
    )
    movements = [
        CashFlowMovement(
            date=line.entry.date,
            description=line.entry.description,
            entry_number=line.entry.entry_number,
            inflow=line.debit,
            outflow=line.credit,
        )
        for line in lines
    ]

    total_inflows = sum((m.inflow for m in movements), ZERO)
    total_outflows = sum((m.outflow for m in movements), ZERO)
    net_change = total_inflows - total_outflows

    logger.debug(
        f"Cash flow for company {tenant_id} {from_date}..{to_date}: "
        f"opening={opening_balance} net={net_change}"
    )
    return CashFlowReport(
        from_date=from_date,
        to_date=to_date,
        opening_balance=opening_balance,
        movements=movements,
        total_inflows=total_inflows,
        total_outflows=total_outflows,
        net_change=net_change,
        closing_balance=opening_balance + net_change,
    )
