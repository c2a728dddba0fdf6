# commerce/commands.py
"""
Business operations that publish to the outbox.

Each operation persists its rows (if any) and emits its event in the same
transaction. The accounting bridge picks the event up after commit; a
failure there never reaches the caller.

Stock adjustments, payroll approval and DIAN notes are owned by other
modules; here they only publish their event.
"""

import logging
from datetime import date as date_type
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Sum

from accounting.exceptions import InvalidLineError, InvalidStateError, NotFoundError
from accounts.models import Company
from commerce.models import (
    Customer,
    Invoice,
    InvoiceItem,
    Payment,
    PaymentStatus,
    PurchaseOrder,
    PurchaseOrderItem,
    Supplier,
    TaxCategory,
)
from events.emitter import emit_event
from events.types import (
    CreditNoteIssuedData,
    DebitNoteIssuedData,
    EventTypes,
    InvoiceCancelledData,
    InvoiceCreatedData,
    PaymentReceivedData,
    PayrollApprovedData,
    PurchaseOrderReceivedData,
    SaleItemData,
    StockAdjustedData,
)
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
EXEMPT_CATEGORIES = (TaxCategory.EXENTO, TaxCategory.EXCLUIDO)


def _get_company(tenant_id: int) -> Company:
    try:
        return Company.objects.get(pk=tenant_id)
    except Company.DoesNotExist:
        raise NotFoundError(f"Company {tenant_id} not found.")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _price_item(item: dict, price_key: str) -> dict:
    """Compute subtotal, tax and total of one line item."""
    quantity = Decimal(str(item.get("quantity", 1)))
    price = _money(item[price_key])
    category = item.get("tax_category", TaxCategory.GRAVADO)
    rate = Decimal(str(item.get("tax_rate", "19")))
    if category in EXEMPT_CATEGORIES:
        rate = Decimal("0")
    if quantity <= 0 or price < 0:
        raise InvalidLineError(f"Invalid quantity or price on item {item.get('description', '')!r}.")

    subtotal = _money(quantity * price)
    tax = _money(subtotal * rate / 100)
    return {
        "quantity": quantity,
        "price": price,
        "tax_rate": rate,
        "tax_category": category,
        "subtotal": subtotal,
        "tax": tax,
        "total": subtotal + tax,
    }


def _sale_items(invoice: Invoice) -> list[dict]:
    return [
        SaleItemData(
            description=item.description,
            quantity=str(item.quantity),
            cost_price=str(item.cost_price) if item.cost_price is not None else None,
            product_sku=item.product_sku,
        ).to_dict()
        for item in invoice.items.all()
    ]


# =============================================================================
# Sales
# =============================================================================

@transaction.atomic
def create_invoice(
    tenant_id: int | None,
    *,
    invoice_number: str,
    issue_date: date_type,
    items: list,
    customer_id: int | None = None,
    due_date: date_type | None = None,
    status: str = Invoice.Status.PENDING,
    is_pos_immediate: bool = False,
    user=None,
) -> Invoice:
    """
    Create an invoice with its items and publish ``invoice.created``.

    Items: [{"description", "quantity", "unit_price", "cost_price"?,
    "tax_rate"?, "tax_category"?, "product_sku"?}, ...]
    """
    tenant_id = require_tenant_id(tenant_id)
    company = _get_company(tenant_id)
    if not items:
        raise InvalidLineError("An invoice needs at least one item.")

    customer = None
    if customer_id is not None:
        try:
            customer = Customer.objects.get(pk=customer_id, company=company)
        except Customer.DoesNotExist:
            raise NotFoundError(f"Customer {customer_id} not found.")

    priced = [(item, _price_item(item, "unit_price")) for item in items]
    subtotal = sum((p["subtotal"] for _, p in priced), Decimal("0.00"))
    tax = sum((p["tax"] for _, p in priced), Decimal("0.00"))

    invoice = Invoice.objects.create(
        company=company,
        customer=customer,
        invoice_number=invoice_number,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        issue_date=issue_date,
        due_date=due_date,
        status=status,
        payment_status=PaymentStatus.PAID if is_pos_immediate else PaymentStatus.UNPAID,
        is_pos_immediate=is_pos_immediate,
    )
    InvoiceItem.objects.bulk_create([
        InvoiceItem(
            invoice=invoice,
            company=company,
            product_sku=item.get("product_sku", ""),
            description=item.get("description", ""),
            quantity=p["quantity"],
            unit_price=p["price"],
            cost_price=_money(item["cost_price"]) if item.get("cost_price") is not None else None,
            tax_rate=p["tax_rate"],
            tax_category=p["tax_category"],
            subtotal=p["subtotal"],
            tax=p["tax"],
            total=p["total"],
        )
        for item, p in priced
    ])

    if status != Invoice.Status.DRAFT:
        emit_event(
            company=company,
            event_type=EventTypes.INVOICE_CREATED,
            aggregate_type="Invoice",
            aggregate_id=invoice.public_id,
            idempotency_key=f"invoice.created:{invoice.public_id}",
            caused_by_user=user,
            data=InvoiceCreatedData(
                invoice_id=invoice.pk,
                invoice_number=invoice.invoice_number,
                issue_date=issue_date.isoformat(),
                subtotal=str(invoice.subtotal),
                tax=str(invoice.tax),
                total=str(invoice.total),
                items=_sale_items(invoice),
                customer_id=customer.pk if customer else None,
                is_pos_immediate=is_pos_immediate,
            ).to_dict(),
        )

    logger.info(
        f"Invoice created: {invoice.invoice_number} total={invoice.total}",
        extra={"tenant_id": tenant_id},
    )
    return invoice


@transaction.atomic
def cancel_invoice(
    tenant_id: int | None,
    invoice_id: int,
    *,
    date: date_type,
    reason: str = "",
    user=None,
) -> Invoice:
    """Cancel an issued invoice and publish ``invoice.cancelled``."""
    tenant_id = require_tenant_id(tenant_id)
    try:
        invoice = Invoice.objects.select_for_update().get(pk=invoice_id, company_id=tenant_id)
    except Invoice.DoesNotExist:
        raise NotFoundError(f"Invoice {invoice_id} not found.")

    if invoice.status in Invoice.NOT_ISSUED:
        raise InvalidStateError(
            f"Only issued invoices can be cancelled (invoice is {invoice.status}).",
            invoice.status,
        )

    invoice.status = Invoice.Status.CANCELLED
    invoice.save(update_fields=["status"])

    emit_event(
        company=invoice.company,
        event_type=EventTypes.INVOICE_CANCELLED,
        aggregate_type="Invoice",
        aggregate_id=invoice.public_id,
        idempotency_key=f"invoice.cancelled:{invoice.public_id}",
        caused_by_user=user,
        data=InvoiceCancelledData(
            invoice_id=invoice.pk,
            invoice_number=invoice.invoice_number,
            date=date.isoformat(),
            subtotal=str(invoice.subtotal),
            tax=str(invoice.tax),
            total=str(invoice.total),
            items=_sale_items(invoice),
            is_pos_immediate=invoice.is_pos_immediate,
            reason=reason,
        ).to_dict(),
    )

    logger.info(f"Invoice cancelled: {invoice.invoice_number}", extra={"tenant_id": tenant_id})
    return invoice


@transaction.atomic
def record_payment(
    tenant_id: int | None,
    invoice_id: int,
    *,
    amount,
    method: str,
    payment_date: date_type,
    reference: str = "",
    user=None,
) -> Payment:
    """Apply a customer payment, update the payment status and publish ``payment.received``."""
    tenant_id = require_tenant_id(tenant_id)
    try:
        invoice = Invoice.objects.select_for_update().get(pk=invoice_id, company_id=tenant_id)
    except Invoice.DoesNotExist:
        raise NotFoundError(f"Invoice {invoice_id} not found.")

    if invoice.status in Invoice.NOT_ISSUED:
        raise InvalidStateError(
            f"Payments cannot be applied to a {invoice.status} invoice.",
            invoice.status,
        )
    amount = _money(amount)
    if amount <= 0:
        raise InvalidLineError("Payment amount must be positive.")

    payment = Payment.objects.create(
        company_id=tenant_id,
        invoice=invoice,
        amount=amount,
        method=method,
        reference=reference,
        payment_date=payment_date,
    )

    paid = invoice.payments.aggregate(total=Sum("amount"))["total"] or Decimal("0.00")
    invoice.payment_status = (
        PaymentStatus.PAID if paid >= invoice.total else PaymentStatus.PARTIALLY_PAID
    )
    invoice.save(update_fields=["payment_status"])

    emit_event(
        company=invoice.company,
        event_type=EventTypes.PAYMENT_RECEIVED,
        aggregate_type="Payment",
        aggregate_id=payment.public_id,
        idempotency_key=f"payment.received:{payment.public_id}",
        caused_by_user=user,
        data=PaymentReceivedData(
            payment_id=payment.pk,
            invoice_id=invoice.pk,
            invoice_number=invoice.invoice_number,
            amount=str(amount),
            method=method,
            payment_date=payment_date.isoformat(),
        ).to_dict(),
    )

    logger.info(
        f"Payment of {amount} recorded on invoice {invoice.invoice_number}",
        extra={"tenant_id": tenant_id},
    )
    return payment


# =============================================================================
# Purchases
# =============================================================================

@transaction.atomic
def create_purchase_order(
    tenant_id: int | None,
    *,
    supplier_id: int,
    order_number: str,
    issue_date: date_type,
    items: list,
) -> PurchaseOrder:
    """
    Create a CONFIRMED purchase order with its items.

    Items: [{"description", "quantity", "unit_cost", "tax_rate"?, "tax_category"?}, ...]
    Nothing is published until the goods are received.
    """
    tenant_id = require_tenant_id(tenant_id)
    company = _get_company(tenant_id)
    try:
        supplier = Supplier.objects.get(pk=supplier_id, company=company)
    except Supplier.DoesNotExist:
        raise NotFoundError(f"Supplier {supplier_id} not found.")
    if not items:
        raise InvalidLineError("A purchase order needs at least one item.")

    priced = [(item, _price_item(item, "unit_cost")) for item in items]
    subtotal = sum((p["subtotal"] for _, p in priced), Decimal("0.00"))
    tax = sum((p["tax"] for _, p in priced), Decimal("0.00"))

    order = PurchaseOrder.objects.create(
        company=company,
        supplier=supplier,
        order_number=order_number,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        issue_date=issue_date,
        status=PurchaseOrder.Status.CONFIRMED,
    )
    PurchaseOrderItem.objects.bulk_create([
        PurchaseOrderItem(
            purchase_order=order,
            company=company,
            description=item.get("description", ""),
            quantity=p["quantity"],
            unit_cost=p["price"],
            tax_rate=p["tax_rate"],
            tax_category=p["tax_category"],
            subtotal=p["subtotal"],
            tax=p["tax"],
            total=p["total"],
        )
        for item, p in priced
    ])
    return order


@transaction.atomic
def receive_purchase_order(
    tenant_id: int | None,
    purchase_order_id: int,
    *,
    received_date: date_type,
    user=None,
) -> PurchaseOrder:
    """Mark a purchase order RECEIVED and publish ``purchase_order.received``."""
    tenant_id = require_tenant_id(tenant_id)
    try:
        order = PurchaseOrder.objects.select_for_update().get(
            pk=purchase_order_id, company_id=tenant_id,
        )
    except PurchaseOrder.DoesNotExist:
        raise NotFoundError(f"Purchase order {purchase_order_id} not found.")

    if order.status in (PurchaseOrder.Status.RECEIVED, PurchaseOrder.Status.CANCELLED):
        raise InvalidStateError(
            f"Purchase order {order.order_number} cannot be received (it is {order.status}).",
            order.status,
        )

    order.status = PurchaseOrder.Status.RECEIVED
    order.received_date = received_date
    order.save(update_fields=["status", "received_date"])

    emit_event(
        company=order.company,
        event_type=EventTypes.PURCHASE_ORDER_RECEIVED,
        aggregate_type="PurchaseOrder",
        aggregate_id=order.public_id,
        idempotency_key=f"purchase_order.received:{order.public_id}",
        caused_by_user=user,
        data=PurchaseOrderReceivedData(
            purchase_order_id=order.pk,
            order_number=order.order_number,
            supplier_id=order.supplier_id,
            received_date=received_date.isoformat(),
            subtotal=str(order.subtotal),
            tax=str(order.tax),
            total=str(order.total),
        ).to_dict(),
    )

    logger.info(f"Purchase order received: {order.order_number}", extra={"tenant_id": tenant_id})
    return order


# =============================================================================
# Publish-only operations
# =============================================================================

@transaction.atomic
def record_stock_adjustment(
    tenant_id: int | None,
    *,
    stock_movement_id: str,
    product_sku: str,
    quantity,
    cost_price,
    date: date_type,
    reason: str = "",
    user=None,
):
    """Publish ``stock.adjusted``. Positive quantity is a surplus, negative a shortage."""
    tenant_id = require_tenant_id(tenant_id)
    return emit_event(
        company=_get_company(tenant_id),
        event_type=EventTypes.STOCK_ADJUSTED,
        aggregate_type="StockMovement",
        aggregate_id=stock_movement_id,
        idempotency_key=f"stock.adjusted:{stock_movement_id}",
        caused_by_user=user,
        data=StockAdjustedData(
            stock_movement_id=str(stock_movement_id),
            product_sku=product_sku,
            quantity=str(quantity),
            cost_price=str(cost_price),
            date=date.isoformat(),
            reason=reason,
        ).to_dict(),
    )


@transaction.atomic
def approve_payroll(
    tenant_id: int | None,
    *,
    payroll_period_id: str,
    period_label: str,
    date: date_type,
    totals: dict,
    user=None,
):
    """
    Publish ``payroll.approved``.

    ``totals`` holds the period aggregates computed by the payroll module
    (devengados, neto, retencion_fuente, employer and employee
    contributions, provisions).
    """
    tenant_id = require_tenant_id(tenant_id)
    return emit_event(
        company=_get_company(tenant_id),
        event_type=EventTypes.PAYROLL_APPROVED,
        aggregate_type="PayrollPeriod",
        aggregate_id=payroll_period_id,
        idempotency_key=f"payroll.approved:{payroll_period_id}",
        caused_by_user=user,
        data=PayrollApprovedData(
            payroll_period_id=str(payroll_period_id),
            period_label=period_label,
            date=date.isoformat(),
            totals={key: str(value) for key, value in totals.items()},
        ).to_dict(),
    )


def _get_invoice(tenant_id: int, invoice_id: int) -> Invoice:
    try:
        return Invoice.objects.get(pk=invoice_id, company_id=tenant_id)
    except Invoice.DoesNotExist:
        raise NotFoundError(f"Invoice {invoice_id} not found.")


@transaction.atomic
def issue_credit_note(
    tenant_id: int | None,
    *,
    dian_document_id: str,
    note_number: str,
    invoice_id: int,
    date: date_type,
    reason_code: str,
    subtotal,
    tax,
    total,
    items: list | None = None,
    user=None,
):
    """
    Publish ``credit_note.issued``.

    ``items`` are the returned goods ({"description", "quantity",
    "cost_price"}); they matter only for returns.
    """
    tenant_id = require_tenant_id(tenant_id)
    invoice = _get_invoice(tenant_id, invoice_id)
    return emit_event(
        company=invoice.company,
        event_type=EventTypes.CREDIT_NOTE_ISSUED,
        aggregate_type="DianDocument",
        aggregate_id=dian_document_id,
        idempotency_key=f"credit_note.issued:{dian_document_id}",
        caused_by_user=user,
        data=CreditNoteIssuedData(
            dian_document_id=str(dian_document_id),
            note_number=note_number,
            invoice_id=invoice.pk,
            invoice_number=invoice.invoice_number,
            date=date.isoformat(),
            reason_code=reason_code,
            subtotal=str(_money(subtotal)),
            tax=str(_money(tax)),
            total=str(_money(total)),
            items=[
                SaleItemData(
                    description=item.get("description", ""),
                    quantity=str(item.get("quantity", 1)),
                    cost_price=str(item["cost_price"]) if item.get("cost_price") is not None else None,
                    product_sku=item.get("product_sku", ""),
                ).to_dict()
                for item in (items or [])
            ],
        ).to_dict(),
    )


@transaction.atomic
def issue_debit_note(
    tenant_id: int | None,
    *,
    dian_document_id: str,
    note_number: str,
    invoice_id: int,
    date: date_type,
    subtotal,
    tax,
    total,
    reason_code: str = "",
    user=None,
):
    """Publish ``debit_note.issued``."""
    tenant_id = require_tenant_id(tenant_id)
    invoice = _get_invoice(tenant_id, invoice_id)
    return emit_event(
        company=invoice.company,
        event_type=EventTypes.DEBIT_NOTE_ISSUED,
        aggregate_type="DianDocument",
        aggregate_id=dian_document_id,
        idempotency_key=f"debit_note.issued:{dian_document_id}",
        caused_by_user=user,
        data=DebitNoteIssuedData(
            dian_document_id=str(dian_document_id),
            note_number=note_number,
            invoice_id=invoice.pk,
            invoice_number=invoice.invoice_number,
            date=date.isoformat(),
            subtotal=str(_money(subtotal)),
            tax=str(_money(tax)),
            total=str(_money(total)),
            reason_code=reason_code,
        ).to_dict(),
    )
