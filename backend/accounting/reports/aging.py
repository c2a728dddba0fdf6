# accounting/reports/aging.py
"""
Receivables and payables aging.

Open balances (document total minus payments applied) are bucketed by
days overdue as of a date and summed per customer or supplier.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal

from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from accounting.reports.dto import AgingTotals, APAgingReport, APAgingRow, ARAgingReport, ARAgingRow
from accounting.tax_constants import terms_days
from commerce.models import Invoice, PaymentStatus, PurchaseOrder
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)

UNKNOWN_CUSTOMER_KEY = "unknown"
UNKNOWN_CUSTOMER_NAME = "Sin cliente"


def _paid_sum(relation: str):
    return Coalesce(
        Sum(f"{relation}__amount"),
        Value(Decimal("0.00")),
        output_field=DecimalField(max_digits=18, decimal_places=2),
    )


def _sorted_with_totals(rows_by_key: dict) -> tuple[list, AgingTotals]:
    rows = sorted(rows_by_key.values(), key=lambda r: r.total_balance, reverse=True)
    totals = AgingTotals()
    for row in rows:
        totals.accumulate(row)
    return rows, totals


def ar_aging(tenant_id: int | None, as_of_date: date) -> ARAgingReport:
    """
    Outstanding customer invoices issued on or before as_of_date.

    Days overdue count from the due date, or the issue date when the
    invoice has none. Invoices without a customer are grouped together.
    """
    tenant_id = require_tenant_id(tenant_id)

    invoices = (
        Invoice.objects.filter(company_id=tenant_id, issue_date__lte=as_of_date)
        .exclude(payment_status=PaymentStatus.PAID)
        .exclude(status__in=Invoice.NOT_ISSUED)
        .select_related("customer")
        .annotate(paid=_paid_sum("payments"))
    )

    rows: dict[str, ARAgingRow] = {}
    for invoice in invoices:
        balance = invoice.total - invoice.paid
        if balance <= 0:
            continue

        due_date = invoice.due_date or invoice.issue_date
        days_overdue = (as_of_date - due_date).days

        customer = invoice.customer
        key = str(customer.pk) if customer else UNKNOWN_CUSTOMER_KEY
        row = rows.get(key)
        if row is None:
            row = rows[key] = ARAgingRow(
                customer_id=key,
                customer_name=customer.name if customer else UNKNOWN_CUSTOMER_NAME,
                customer_document=customer.document_number if customer else "",
            )
        row.add(balance, days_overdue)

    ordered, totals = _sorted_with_totals(rows)
    logger.debug(
        f"AR aging for company {tenant_id} as of {as_of_date}: "
        f"{len(ordered)} customers, balance={totals.total_balance}"
    )
    return ARAgingReport(as_of_date=as_of_date, rows=ordered, totals=totals)


def ap_aging(tenant_id: int | None, as_of_date: date) -> APAgingReport:
    """
    Outstanding RECEIVED purchase orders issued on or before as_of_date.

    The due date is the issue date plus the supplier's payment terms.
    """
    tenant_id = require_tenant_id(tenant_id)

    orders = (
        PurchaseOrder.objects.filter(
            company_id=tenant_id,
            status=PurchaseOrder.Status.RECEIVED,
            issue_date__lte=as_of_date,
        )
        .exclude(payment_status=PaymentStatus.PAID)
        .select_related("supplier")
        .annotate(paid=_paid_sum("purchase_payments"))
    )

    rows: dict[str, APAgingRow] = {}
    for order in orders:
        balance = order.total - order.paid
        if balance <= 0:
            continue

        supplier = order.supplier
        due_date = order.issue_date + timedelta(days=terms_days(supplier.payment_terms))
        days_overdue = (as_of_date - due_date).days

        key = str(supplier.pk)
        row = rows.get(key)
        if row is None:
            row = rows[key] = APAgingRow(
                supplier_id=key,
                supplier_name=supplier.name,
                supplier_document=supplier.document_number,
            )
        row.add(balance, days_overdue)

    ordered, totals = _sorted_with_totals(rows)
    logger.debug(
        f"AP aging for company {tenant_id} as of {as_of_date}: "
        f"{len(ordered)} suppliers, balance={totals.total_balance}"
    )
    return APAgingReport(as_of_date=as_of_date, rows=ordered, totals=totals)
