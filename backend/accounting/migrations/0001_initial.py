"""
Initial migration for accounting app.

Creates:
- CompanySequence: per-company counters (entry numbers)
- Account: chart of accounts
- JournalEntry / JournalLine: the journal, balanced by constraint
- AccountingConfig: account mappings for automatic entries
"""
import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def money():
    return models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)


def mapping():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to="accounting.account",
    )


MAPPING_FIELDS = (
    "cash_account",
    "bank_account",
    "accounts_receivable",
    "revenue_account",
    "iva_por_pagar",
    "iva_descontable",
    "cogs_account",
    "inventory_account",
    "accounts_payable",
    "rete_fuente_payable",
    "rete_fuente_received",
    "inventory_adjustment",
    "misc_revenue",
    "misc_expense",
    "payroll_expense",
    "payroll_payable",
    "payroll_retentions",
    "payroll_contributions",
    "payroll_provisions",
)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("commerce", "0001_initial"),
        ("events", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CompanySequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("next_value", models.BigIntegerField(default=1)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sequences",
                        to="accounts.company",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("company", "name"), name="uniq_company_sequence_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("code", models.CharField(max_length=20)),
                ("name", models.CharField(max_length=255)),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("ASSET", "Asset"),
                            ("LIABILITY", "Liability"),
                            ("EQUITY", "Equity"),
                            ("REVENUE", "Revenue"),
                            ("COGS", "Cost of goods sold"),
                            ("EXPENSE", "Expense"),
                        ],
                        db_column="type",
                        max_length=10,
                    ),
                ),
                ("nature", models.CharField(choices=[("DEBIT", "Debit"), ("CREDIT", "Credit")], max_length=6)),
                ("level", models.PositiveSmallIntegerField(default=1)),
                ("description", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("is_system_account", models.BooleanField(default=False)),
                ("is_bank_account", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="accounts",
                        to="accounts.company",
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="children",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["company", "account_type"], name="acct_company_type_idx"),
                    models.Index(fields=["company", "is_active"], name="acct_company_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "code"), name="uniq_account_code_per_company"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("entry_number", models.CharField(max_length=20)),
                ("date", models.DateField()),
                ("description", models.CharField(max_length=500)),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("MANUAL", "Manual"),
                            ("INVOICE_SALE", "Invoice sale"),
                            ("INVOICE_CANCEL", "Invoice cancellation"),
                            ("PAYMENT_RECEIVED", "Payment received"),
                            ("PURCHASE_RECEIVED", "Purchase received"),
                            ("STOCK_ADJUSTMENT", "Stock adjustment"),
                            ("PAYROLL_APPROVED", "Payroll approved"),
                            ("CREDIT_NOTE", "Credit note"),
                            ("DEBIT_NOTE", "Debit note"),
                        ],
                        default="MANUAL",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("DRAFT", "Draft"), ("POSTED", "Posted"), ("VOIDED", "Voided")],
                        default="DRAFT",
                        max_length=10,
                    ),
                ),
                ("total_debit", money()),
                ("total_credit", money()),
                ("stock_movement_id", models.CharField(blank=True, default="", max_length=64)),
                ("dian_document_id", models.CharField(blank=True, default="", max_length=64)),
                ("payroll_period_id", models.CharField(blank=True, default="", max_length=64)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.CharField(blank=True, default="", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="journal_entries",
                        to="accounts.company",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_journal_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="journal_entries",
                        to="commerce.invoice",
                    ),
                ),
                (
                    "payment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="journal_entries",
                        to="commerce.payment",
                    ),
                ),
                (
                    "purchase_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="journal_entries",
                        to="commerce.purchaseorder",
                    ),
                ),
                (
                    "origin_event",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="journal_entries",
                        to="events.businessevent",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["company", "status", "date"], name="je_company_status_date_idx"),
                    models.Index(fields=["company", "source"], name="je_company_source_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "entry_number"),
                        name="uniq_entry_number_per_company",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_debit", models.F("total_credit"))),
                        name="chk_entry_balanced",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField()),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("debit", money()),
                ("credit", money()),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="journal_lines",
                        to="accounting.account",
                    ),
                ),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="journal_lines",
                        to="accounts.company",
                    ),
                ),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "ordering": ["entry", "line_no"],
                "unique_together": {("entry", "line_no")},
                "indexes": [
                    models.Index(fields=["company", "account"], name="jl_company_account_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("debit__gte", 0), ("credit__gte", 0)),
                        name="chk_line_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AccountingConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("auto_generate_entries", models.BooleanField(default=False)),
                *[(name, mapping()) for name in MAPPING_FIELDS],
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="accounting_config",
                        to="accounts.company",
                    ),
                ),
            ],
        ),
    ]
