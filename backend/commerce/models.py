# commerce/models.py
"""
Commerce documents consumed by the ledger.

These are the business-side rows the accounting subsystem reads but does
not own: sales invoices and their payments, purchase orders and their
payments, and the withholding certificates issued to suppliers.

The aging and tax reports aggregate them directly; the accounting bridge
only ever sees them through outbox events (see commerce/commands.py).
"""

import uuid
from decimal import Decimal

from django.db import models

from accounts.models import Company


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CREDIT_CARD = "CREDIT_CARD", "Credit card"
    DEBIT_CARD = "DEBIT_CARD", "Debit card"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"
    PSE = "PSE", "PSE"
    NEQUI = "NEQUI", "Nequi"
    DAVIPLATA = "DAVIPLATA", "Daviplata"
    OTHER = "OTHER", "Other"


class PaymentStatus(models.TextChoices):
    UNPAID = "UNPAID", "Unpaid"
    PARTIALLY_PAID = "PARTIALLY_PAID", "Partially paid"
    PAID = "PAID", "Paid"


class TaxCategory(models.TextChoices):
    GRAVADO = "GRAVADO", "Taxed"
    EXENTO = "EXENTO", "Exempt"
    EXCLUIDO = "EXCLUIDO", "Excluded"


def _money(**kwargs):
    return models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"), **kwargs)


class Customer(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="customers")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    document_type = models.CharField(max_length=10, default="CC")
    document_number = models.CharField(max_length=30)
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["company", "document_number"], name="commerce_cu_company_0b7c1e_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.document_number})"


class Supplier(models.Model):
    class PaymentTerms(models.TextChoices):
        IMMEDIATE = "IMMEDIATE", "Immediate"
        NET_15 = "NET_15", "Net 15"
        NET_30 = "NET_30", "Net 30"
        NET_60 = "NET_60", "Net 60"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="suppliers")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    document_number = models.CharField(max_length=30, help_text="NIT")
    name = models.CharField(max_length=255)
    payment_terms = models.CharField(
        max_length=20,
        choices=PaymentTerms.choices,
        default=PaymentTerms.NET_30,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.document_number})"


class Invoice(models.Model):
    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        PENDING = "PENDING", "Pending"
        SENT = "SENT", "Sent"
        OVERDUE = "OVERDUE", "Overdue"
        CANCELLED = "CANCELLED", "Cancelled"
        VOID = "VOID", "Void"

    # Statuses that never count as issued sales.
    NOT_ISSUED = (Status.DRAFT, Status.CANCELLED, Status.VOID)

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="invoices")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    customer = models.ForeignKey(
        Customer,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="invoices",
    )
    invoice_number = models.CharField(max_length=30)
    subtotal = _money()
    tax = _money()
    discount = _money()
    total = _money()
    issue_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    # Immediate POS sale: paid on the spot and booked against cash.
    is_pos_immediate = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "invoice_number"],
                name="uniq_invoice_number_per_company",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "status", "issue_date"], name="commerce_in_company_4f1a2d_idx"),
            models.Index(fields=["company", "payment_status"], name="commerce_in_company_9c3e5b_idx"),
        ]

    def __str__(self):
        return self.invoice_number


class InvoiceItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    product_sku = models.CharField(max_length=60, blank=True, default="")
    description = models.CharField(max_length=255, blank=True, default="")
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("1"))
    unit_price = _money()
    cost_price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Unit cost at the time of sale (drives COGS)",
    )
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("19"))
    tax_category = models.CharField(
        max_length=10,
        choices=TaxCategory.choices,
        default=TaxCategory.GRAVADO,
    )
    subtotal = _money()
    tax = _money()
    total = _money()

    def __str__(self):
        return f"{self.invoice_id}:{self.product_sku or self.description}"


class Payment(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="payments")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="payments")
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    reference = models.CharField(max_length=100, blank=True, default="")
    payment_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.invoice_id}:{self.amount} ({self.method})"


class PurchaseOrder(models.Model):
    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        SENT = "SENT", "Sent"
        CONFIRMED = "CONFIRMED", "Confirmed"
        RECEIVED = "RECEIVED", "Received"
        CANCELLED = "CANCELLED", "Cancelled"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="purchase_orders")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="purchase_orders")
    order_number = models.CharField(max_length=30)
    subtotal = _money()
    tax = _money()
    total = _money()
    issue_date = models.DateField()
    received_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "order_number"],
                name="uniq_purchase_order_number_per_company",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "status", "issue_date"], name="commerce_pu_company_7d2b8e_idx"),
        ]

    def __str__(self):
        return self.order_number


class PurchaseOrderItem(models.Model):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name="items")
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    description = models.CharField(max_length=255, blank=True, default="")
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("1"))
    unit_cost = _money()
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("19"))
    tax_category = models.CharField(
        max_length=10,
        choices=TaxCategory.choices,
        default=TaxCategory.GRAVADO,
    )
    subtotal = _money()
    tax = _money()
    total = _money()


class PurchasePayment(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="purchase_payments")
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="purchase_payments",
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.BANK_TRANSFER)
    payment_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)


class WithholdingCertificate(models.Model):
    """Annual income-tax withholding certificate issued to a supplier."""

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="withholding_certificates")
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name="withholding_certificates")
    year = models.PositiveIntegerField()
    certificate_number = models.CharField(max_length=30)
    total_base = _money()
    total_withheld = _money()
    withholding_type = models.CharField(max_length=20, default="RENTA")
    generated_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "certificate_number"],
                name="uniq_withholding_certificate_number",
            ),
            models.UniqueConstraint(
                fields=["company", "supplier", "year", "withholding_type"],
                name="uniq_withholding_certificate_per_supplier_year",
            ),
        ]

    def __str__(self):
        return f"{self.certificate_number} ({self.year})"
