# accounting/models.py
"""
Ledger tables.

The journal service (accounting/commands.py) is the only writer of
journal data. Saves and deletes outside ``command_writes_allowed()`` or
``bootstrap_writes_allowed()`` raise, so a stray ``.save()`` in a report
or a view cannot alter the books.

Models:
- Account: Chart of Accounts (PUC codes)
- JournalEntry: Journal entry headers
- JournalLine: Journal entry lines
- CompanySequence: Per-company counters (entry numbers)
- AccountingConfig: Per-company account mappings for auto entries
"""

from decimal import Decimal
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q

from accounts.models import Company
from accounting.write_barrier import writes_permitted


LEDGER_WRITE_CONTEXTS = {"command", "bootstrap"}


def _guard(model_name: str, action: str) -> None:
    if not writes_permitted(LEDGER_WRITE_CONTEXTS):
        raise RuntimeError(
            f"{model_name} is owned by the journal service. "
            f"{action} is only allowed within command_writes_allowed()."
        )


class LedgerQuerySet(models.QuerySet):
    def create(self, **kwargs):
        _guard(self.model.__name__, "create")
        return super().create(**kwargs)

    def bulk_create(self, objs, *args, **kwargs):
        _guard(self.model.__name__, "bulk_create")
        return super().bulk_create(objs, *args, **kwargs)

    def update(self, **kwargs):
        _guard(self.model.__name__, "update")
        return super().update(**kwargs)

    def delete(self):
        _guard(self.model.__name__, "delete")
        return super().delete()


class LedgerModel(models.Model):
    objects = LedgerQuerySet.as_manager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        _guard(self.__class__.__name__, "save")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        _guard(self.__class__.__name__, "delete")
        return super().delete(*args, **kwargs)


class CompanySequence(LedgerModel):
    """
    Per-company counters for sequential identifiers.

    Allocated by commands under select_for_update.
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="sequences",
    )
    name = models.CharField(max_length=100)
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"],
                name="uniq_company_sequence_name",
            ),
        ]

    def __str__(self):
        return f"{self.company_id}:{self.name}={self.next_value}"


class Account(LedgerModel):
    """
    Chart of Accounts entry.

    ``nature`` decides the sign of the balance:
    DEBIT accounts report debit - credit, CREDIT accounts credit - debit.
    It is fixed at creation and never changed here.
    """

    class AccountType(models.TextChoices):
        ASSET = "ASSET", "Asset"
        LIABILITY = "LIABILITY", "Liability"
        EQUITY = "EQUITY", "Equity"
        REVENUE = "REVENUE", "Revenue"
        COGS = "COGS", "Cost of goods sold"
        EXPENSE = "EXPENSE", "Expense"

    class Nature(models.TextChoices):
        DEBIT = "DEBIT", "Debit"
        CREDIT = "CREDIT", "Credit"

    NATURE_MAP = {
        AccountType.ASSET: Nature.DEBIT,
        AccountType.LIABILITY: Nature.CREDIT,
        AccountType.EQUITY: Nature.CREDIT,
        AccountType.REVENUE: Nature.CREDIT,
        AccountType.COGS: Nature.DEBIT,
        AccountType.EXPENSE: Nature.DEBIT,
    }

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="accounts",
    )
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    code = models.CharField(max_length=20)
    name = models.CharField(max_length=255)
    account_type = models.CharField(
        max_length=10,
        choices=AccountType.choices,
        db_column="type",
    )
    nature = models.CharField(max_length=6, choices=Nature.choices)
    level = models.PositiveSmallIntegerField(default=1)

    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )
    description = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    is_system_account = models.BooleanField(default=False)
    is_bank_account = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_account_code_per_company",
            )
        ]
        ordering = ["code"]
        indexes = [
            models.Index(fields=["company", "account_type"], name="acct_company_type_idx"),
            models.Index(fields=["company", "is_active"], name="acct_company_active_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @staticmethod
    def level_for_code(code: str) -> int:
        """PUC level: class (1 digit), group (2), account (4), sub-account (6+)."""
        length = len(code)
        if length <= 1:
            return 1
        if length <= 2:
            return 2
        if length <= 4:
            return 3
        return 4

    def save(self, *args, **kwargs):
        if not self.nature:
            self.nature = self.NATURE_MAP.get(self.account_type, self.Nature.DEBIT)
        if self.code:
            self.level = self.level_for_code(self.code)
        super().save(*args, **kwargs)


class JournalEntry(LedgerModel):
    """
    Journal entry header.

    Workflow: DRAFT -> POSTED -> VOIDED
    - Auto-generated entries are created directly POSTED.
    - VOIDED is terminal; nothing returns to DRAFT.
    - Totals are fixed at creation and always balance.
    """

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        POSTED = "POSTED", "Posted"
        VOIDED = "VOIDED", "Voided"

    class Source(models.TextChoices):
        MANUAL = "MANUAL", "Manual"
        INVOICE_SALE = "INVOICE_SALE", "Invoice sale"
        INVOICE_CANCEL = "INVOICE_CANCEL", "Invoice cancellation"
        PAYMENT_RECEIVED = "PAYMENT_RECEIVED", "Payment received"
        PURCHASE_RECEIVED = "PURCHASE_RECEIVED", "Purchase received"
        STOCK_ADJUSTMENT = "STOCK_ADJUSTMENT", "Stock adjustment"
        PAYROLL_APPROVED = "PAYROLL_APPROVED", "Payroll approved"
        CREDIT_NOTE = "CREDIT_NOTE", "Credit note"
        DEBIT_NOTE = "DEBIT_NOTE", "Debit note"

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="journal_entries",
    )
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    entry_number = models.CharField(max_length=20)
    date = models.DateField()
    description = models.CharField(max_length=500)
    source = models.CharField(
        max_length=20,
        choices=Source.choices,
        default=Source.MANUAL,
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.DRAFT,
    )
    total_debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Traceability to the originating document
    invoice = models.ForeignKey(
        "commerce.Invoice",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="journal_entries",
    )
    payment = models.ForeignKey(
        "commerce.Payment",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="journal_entries",
    )
    purchase_order = models.ForeignKey(
        "commerce.PurchaseOrder",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="journal_entries",
    )
    stock_movement_id = models.CharField(max_length=64, blank=True, default="")
    dian_document_id = models.CharField(max_length=64, blank=True, default="")
    payroll_period_id = models.CharField(max_length=64, blank=True, default="")
    origin_event = models.ForeignKey(
        "events.BusinessEvent",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="journal_entries",
    )

    posted_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.CharField(max_length=500, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_journal_entries",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "entry_number"],
                name="uniq_entry_number_per_company",
            ),
            models.CheckConstraint(
                condition=Q(total_debit=models.F("total_credit")),
                name="chk_entry_balanced",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "status", "date"], name="je_company_status_date_idx"),
            models.Index(fields=["company", "source"], name="je_company_source_idx"),
        ]
        ordering = ["-date", "-id"]

    def __str__(self):
        return f"{self.entry_number} ({self.date}) {self.status}"

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class JournalLine(LedgerModel):
    """One debit or credit against one account."""

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="journal_lines",
    )
    line_no = models.PositiveIntegerField()
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )
    description = models.CharField(max_length=500, blank=True, default="")
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        unique_together = ("entry", "line_no")
        ordering = ["entry", "line_no"]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_line_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "account"], name="jl_company_account_idx"),
        ]

    def __str__(self):
        return f"{self.entry_id} L{self.line_no}"

    @property
    def amount(self) -> Decimal:
        return self.debit if self.debit > 0 else self.credit


class AccountingConfig(LedgerModel):
    """
    Per-company account mappings used by the accounting bridge.

    Auto entries are generated only when ``auto_generate_entries`` is on
    and the mappings a given handler needs are set.
    """

    company = models.OneToOneField(
        Company,
        on_delete=models.CASCADE,
        related_name="accounting_config",
    )
    auto_generate_entries = models.BooleanField(default=False)

    cash_account = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    bank_account = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    accounts_receivable = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    revenue_account = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    iva_por_pagar = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    iva_descontable = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    cogs_account = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    inventory_account = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    accounts_payable = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    rete_fuente_payable = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    rete_fuente_received = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    inventory_adjustment = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    misc_revenue = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    misc_expense = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    payroll_expense = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    payroll_payable = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    payroll_retentions = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    payroll_contributions = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    payroll_provisions = models.ForeignKey(Account, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    updated_at = models.DateTimeField(auto_now=True)

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

    def __str__(self):
        return f"AccountingConfig({self.company_id})"

    def account_id_for(self, mapping: str) -> int | None:
        return getattr(self, f"{mapping}_id")
