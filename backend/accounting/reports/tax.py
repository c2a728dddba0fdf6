# accounting/reports/tax.py
"""
Colombian tax reports: bimonthly IVA declaration, monthly ReteFuente
summary and the year-to-date tax summary.

These read invoices and purchase orders directly; none of them goes
through the balance engine.
"""

import logging
from datetime import date
from decimal import Decimal

from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from accounting.balances import ZERO
from accounting.exceptions import InvalidDateRangeError
from accounting.reports.dto import (
    IvaDeclarationReport,
    IvaExemptSummary,
    IvaRateBreakdown,
    ReteFuenteSummaryReport,
    ReteFuenteSupplierRow,
    YtdTaxSummary,
)
from accounting.tax_constants import (
    MONTH_NAMES,
    RETE_FUENTE_MIN_BASE,
    RETE_FUENTE_RATE,
    bimonthly_range,
    month_range,
    rete_fuente_withholding,
)
from commerce.models import (
    Invoice,
    InvoiceItem,
    PurchaseOrder,
    PurchaseOrderItem,
    TaxCategory,
    WithholdingCertificate,
)
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)

EXEMPT_CATEGORIES = (TaxCategory.EXENTO, TaxCategory.EXCLUIDO)
RENTA = "RENTA"


def _bucket_items(items, document_field: str):
    """
    Split line items into per-rate and exempt buckets.

    Each bucket counts the distinct documents contributing to it. Taxed
    items with a zero rate fall in neither.
    """
    by_rate: dict[Decimal, IvaRateBreakdown] = {}
    exempt: dict[str, IvaExemptSummary] = {}
    seen = set()

    for item in items:
        document_id = getattr(item, document_field)
        if item.tax_category in EXEMPT_CATEGORIES:
            key = item.tax_category
            bucket = exempt.setdefault(key, IvaExemptSummary(category=key))
            bucket.taxable_base += item.subtotal
        elif item.tax_rate > 0:
            key = item.tax_rate
            bucket = by_rate.setdefault(key, IvaRateBreakdown(tax_rate=key))
            bucket.taxable_base += item.subtotal
            bucket.tax_amount += item.tax
        else:
            continue

        if (document_id, key) not in seen:
            seen.add((document_id, key))
            bucket.invoice_count += 1

    rates = sorted(by_rate.values(), key=lambda b: b.tax_rate, reverse=True)
    return rates, list(exempt.values())


def iva_declaration(tenant_id: int | None, year: int, bimonthly_period: int) -> IvaDeclarationReport:
    """
    IVA generated on sales and deductible on purchases for one of the six
    bimonthly periods of the year.

    Raises:
        InvalidDateRangeError: bimonthly_period is outside 1..6
    """
    tenant_id = require_tenant_id(tenant_id)
    if not 1 <= bimonthly_period <= 6:
        raise InvalidDateRangeError(f"Bimonthly period must be 1-6, got {bimonthly_period}.")
    from_date, to_date, label = bimonthly_range(year, bimonthly_period)

    sales_items = (
        InvoiceItem.objects.filter(
            invoice__company_id=tenant_id,
            invoice__issue_date__gte=from_date,
            invoice__issue_date__lte=to_date,
        )
        .exclude(invoice__status__in=Invoice.NOT_ISSUED)
        .only("invoice_id", "tax_rate", "tax_category", "subtotal", "tax")
    )
    purchase_items = PurchaseOrderItem.objects.filter(
        purchase_order__company_id=tenant_id,
        purchase_order__status=PurchaseOrder.Status.RECEIVED,
        purchase_order__issue_date__gte=from_date,
        purchase_order__issue_date__lte=to_date,
    ).only("purchase_order_id", "tax_rate", "tax_category", "subtotal", "tax")

    sales_by_rate, sales_exempt = _bucket_items(sales_items, "invoice_id")
    purchases_by_rate, purchases_exempt = _bucket_items(purchase_items, "purchase_order_id")

    total_sales_base = sum((b.taxable_base for b in sales_by_rate + sales_exempt), ZERO)
    total_iva_generado = sum((b.tax_amount for b in sales_by_rate), ZERO)
    total_purchases_base = sum((b.taxable_base for b in purchases_by_rate + purchases_exempt), ZERO)
    total_iva_descontable = sum((b.tax_amount for b in purchases_by_rate), ZERO)

    logger.debug(
        f"IVA declaration {year}-{bimonthly_period} for company {tenant_id}: "
        f"generado={total_iva_generado} descontable={total_iva_descontable}"
    )
    return IvaDeclarationReport(
        year=year,
        bimonthly_period=bimonthly_period,
        period_label=label,
        from_date=from_date,
        to_date=to_date,
        sales_by_rate=sales_by_rate,
        sales_exempt=sales_exempt,
        total_sales_base=total_sales_base,
        total_iva_generado=total_iva_generado,
        purchases_by_rate=purchases_by_rate,
        purchases_exempt=purchases_exempt,
        total_purchases_base=total_purchases_base,
        total_iva_descontable=total_iva_descontable,
        net_iva_payable=total_iva_generado - total_iva_descontable,
    )


def rete_fuente_summary(tenant_id: int | None, year: int, month: int) -> ReteFuenteSummaryReport:
    """
    Withholding owed per supplier on the month's received purchases.

    Only purchases whose subtotal exceeds RETE_FUENTE_MIN_BASE withhold.
    Each row carries the supplier's RENTA certificate for the year, if
    one has been issued.

    Raises:
        InvalidDateRangeError: month is outside 1..12
    """
    tenant_id = require_tenant_id(tenant_id)
    if not 1 <= month <= 12:
        raise InvalidDateRangeError(f"Month must be 1-12, got {month}.")
    from_date, to_date = month_range(year, month)

    orders = (
        PurchaseOrder.objects.filter(
            company_id=tenant_id,
            status=PurchaseOrder.Status.RECEIVED,
            issue_date__gte=from_date,
            issue_date__lte=to_date,
            subtotal__gt=RETE_FUENTE_MIN_BASE,
        )
        .select_related("supplier")
        .order_by("issue_date", "id")
    )

    rows: dict[int, ReteFuenteSupplierRow] = {}
    for order in orders:
        supplier = order.supplier
        row = rows.get(supplier.pk)
        if row is None:
            row = rows[supplier.pk] = ReteFuenteSupplierRow(
                supplier_id=supplier.pk,
                supplier_name=supplier.name,
                supplier_nit=supplier.document_number,
                withholding_rate=RETE_FUENTE_RATE * 100,
            )
        row.total_base += order.subtotal
        row.total_withheld += rete_fuente_withholding(order.subtotal)
        row.purchase_count += 1

    certificates = WithholdingCertificate.objects.filter(
        company_id=tenant_id,
        year=year,
        withholding_type=RENTA,
        supplier_id__in=list(rows),
    )
    for certificate in certificates:
        row = rows[certificate.supplier_id]
        row.certificate_id = certificate.pk
        row.certificate_number = certificate.certificate_number

    ordered = sorted(rows.values(), key=lambda r: r.total_withheld, reverse=True)
    return ReteFuenteSummaryReport(
        year=year,
        month=month,
        month_label=f"{MONTH_NAMES[month - 1]} {year}",
        from_date=from_date,
        to_date=to_date,
        rows=ordered,
        total_base=sum((r.total_base for r in ordered), ZERO),
        total_withheld=sum((r.total_withheld for r in ordered), ZERO),
    )


def _money_sum(field: str):
    return Coalesce(
        Sum(field),
        Value(Decimal("0.00")),
        output_field=DecimalField(max_digits=18, decimal_places=2),
    )


def ytd_tax_summary(tenant_id: int | None, year: int) -> YtdTaxSummary:
    """Calendar-year totals from invoice and purchase order headers."""
    tenant_id = require_tenant_id(tenant_id)
    from_date, to_date = date(year, 1, 1), date(year, 12, 31)

    iva_generado = (
        Invoice.objects.filter(
            company_id=tenant_id,
            issue_date__gte=from_date,
            issue_date__lte=to_date,
        )
        .exclude(status__in=Invoice.NOT_ISSUED)
        .aggregate(total=_money_sum("tax"))["total"]
    )

    received = PurchaseOrder.objects.filter(
        company_id=tenant_id,
        status=PurchaseOrder.Status.RECEIVED,
        issue_date__gte=from_date,
        issue_date__lte=to_date,
    )
    iva_descontable = received.aggregate(total=_money_sum("tax"))["total"]

    rete_base = ZERO
    rete_withheld = ZERO
    for subtotal in received.filter(subtotal__gt=RETE_FUENTE_MIN_BASE).values_list("subtotal", flat=True):
        rete_base += subtotal
        rete_withheld += rete_fuente_withholding(subtotal)

    return YtdTaxSummary(
        year=year,
        iva_generado_ytd=iva_generado,
        iva_descontable_ytd=iva_descontable,
        net_iva_ytd=iva_generado - iva_descontable,
        rete_fuente_base_ytd=rete_base,
        rete_fuente_withheld_ytd=rete_withheld,
    )
