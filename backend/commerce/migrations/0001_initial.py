"""
Initial migration for commerce app.

Creates customers, suppliers, invoices (with items and payments),
purchase orders (with items and payments) and withholding certificates.
"""
import uuid
from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


def money():
    return models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)


TAX_CATEGORY_CHOICES = [("GRAVADO", "Taxed"), ("EXENTO", "Exempt"), ("EXCLUIDO", "Excluded")]
PAYMENT_STATUS_CHOICES = [("UNPAID", "Unpaid"), ("PARTIALLY_PAID", "Partially paid"), ("PAID", "Paid")]
PAYMENT_METHOD_CHOICES = [
    ("CASH", "Cash"),
    ("CREDIT_CARD", "Credit card"),
    ("DEBIT_CARD", "Debit card"),
    ("BANK_TRANSFER", "Bank transfer"),
    ("PSE", "PSE"),
    ("NEQUI", "Nequi"),
    ("DAVIPLATA", "Daviplata"),
    ("OTHER", "Other"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("document_type", models.CharField(default="CC", max_length=10)),
                ("document_number", models.CharField(max_length=30)),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="customers",
                        to="accounts.company",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["company", "document_number"], name="commerce_cu_company_0b7c1e_idx")],
            },
        ),
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("document_number", models.CharField(help_text="NIT", max_length=30)),
                ("name", models.CharField(max_length=255)),
                (
                    "payment_terms",
                    models.CharField(
                        choices=[
                            ("IMMEDIATE", "Immediate"),
                            ("NET_15", "Net 15"),
                            ("NET_30", "Net 30"),
                            ("NET_60", "Net 60"),
                        ],
                        default="NET_30",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="suppliers",
                        to="accounts.company",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("invoice_number", models.CharField(max_length=30)),
                ("subtotal", money()),
                ("tax", money()),
                ("discount", money()),
                ("total", money()),
                ("issue_date", models.DateField()),
                ("due_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("DRAFT", "Draft"),
                            ("PENDING", "Pending"),
                            ("SENT", "Sent"),
                            ("OVERDUE", "Overdue"),
                            ("CANCELLED", "Cancelled"),
                            ("VOID", "Void"),
                        ],
                        default="DRAFT",
                        max_length=20,
                    ),
                ),
                ("payment_status", models.CharField(choices=PAYMENT_STATUS_CHOICES, default="UNPAID", max_length=20)),
                ("is_pos_immediate", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invoices",
                        to="accounts.company",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="invoices",
                        to="commerce.customer",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "status", "issue_date"], name="commerce_in_company_4f1a2d_idx"),
                    models.Index(fields=["company", "payment_status"], name="commerce_in_company_9c3e5b_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "invoice_number"),
                        name="uniq_invoice_number_per_company",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_sku", models.CharField(blank=True, default="", max_length=60)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("quantity", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=12)),
                ("unit_price", money()),
                (
                    "cost_price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Unit cost at the time of sale (drives COGS)",
                        max_digits=18,
                        null=True,
                    ),
                ),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("19"), max_digits=5)),
                ("tax_category", models.CharField(choices=TAX_CATEGORY_CHOICES, default="GRAVADO", max_length=10)),
                ("subtotal", money()),
                ("tax", money()),
                ("total", money()),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="accounts.company",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="commerce.invoice",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("method", models.CharField(choices=PAYMENT_METHOD_CHOICES, default="CASH", max_length=20)),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("payment_date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="accounts.company",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="commerce.invoice",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("order_number", models.CharField(max_length=30)),
                ("subtotal", money()),
                ("tax", money()),
                ("total", money()),
                ("issue_date", models.DateField()),
                ("received_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("DRAFT", "Draft"),
                            ("SENT", "Sent"),
                            ("CONFIRMED", "Confirmed"),
                            ("RECEIVED", "Received"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="DRAFT",
                        max_length=20,
                    ),
                ),
                ("payment_status", models.CharField(choices=PAYMENT_STATUS_CHOICES, default="UNPAID", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="purchase_orders",
                        to="accounts.company",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_orders",
                        to="commerce.supplier",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "status", "issue_date"], name="commerce_pu_company_7d2b8e_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "order_number"),
                        name="uniq_purchase_order_number_per_company",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("quantity", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=12)),
                ("unit_cost", money()),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("19"), max_digits=5)),
                ("tax_category", models.CharField(choices=TAX_CATEGORY_CHOICES, default="GRAVADO", max_length=10)),
                ("subtotal", money()),
                ("tax", money()),
                ("total", money()),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="accounts.company",
                    ),
                ),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="commerce.purchaseorder",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="PurchasePayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("method", models.CharField(choices=PAYMENT_METHOD_CHOICES, default="BANK_TRANSFER", max_length=20)),
                ("payment_date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="purchase_payments",
                        to="accounts.company",
                    ),
                ),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="purchase_payments",
                        to="commerce.purchaseorder",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="WithholdingCertificate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.PositiveIntegerField()),
                ("certificate_number", models.CharField(max_length=30)),
                ("total_base", money()),
                ("total_withheld", money()),
                ("withholding_type", models.CharField(default="RENTA", max_length=20)),
                ("generated_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="withholding_certificates",
                        to="accounts.company",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="withholding_certificates",
                        to="commerce.supplier",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "certificate_number"),
                        name="uniq_withholding_certificate_number",
                    ),
                    models.UniqueConstraint(
                        fields=("company", "supplier", "year", "withholding_type"),
                        name="uniq_withholding_certificate_per_supplier_year",
                    ),
                ],
            },
        ),
    ]
