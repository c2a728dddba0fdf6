# accounting/commands.py
"""
Command layer for the journal.

Commands are the single point where journal data changes. Reports and the
accounting bridge read or call these; nothing else writes ledger rows.

Pattern:
1. Resolve the tenant (require_tenant_id)
2. Apply business policies (can_*), raising typed errors on failure
3. Perform the operation (model changes, inside command_writes_allowed)
4. Emit event (emit_event)
5. Return the entry

State machine: DRAFT -> POSTED -> VOIDED. Balance is checked when the
entry is created, never at posting time.
"""

import logging
from datetime import date as date_type
from decimal import Decimal, InvalidOperation

from django.db import transaction, IntegrityError, DatabaseError
from django.utils import timezone

from accounts.models import Company
from accounting.exceptions import (
    InvalidLineError,
    InvalidStateError,
    NotFoundError,
    StorageError,
    UnbalancedEntryError,
)
from accounting.models import Account, CompanySequence, JournalEntry, JournalLine
from accounting.policies import (
    can_post_entry,
    can_post_to_account,
    can_void_entry,
    validate_line_amounts,
)
from accounting.write_barrier import command_writes_allowed
from events.emitter import emit_event
from events.types import (
    EventTypes,
    JournalEntryCreatedData,
    JournalEntryPostedData,
    JournalEntryVoidedData,
    JournalLineData,
)
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

ENTRY_NUMBER_SEQUENCE = "journal_entry_number"
ENTRY_NUMBER_PREFIX = "CE-"


def _next_company_sequence(company, name: str) -> int:
    """
    Allocate the next sequence value for a company/name pair.
    Uses select_for_update to avoid concurrent duplicates.
    """
    with command_writes_allowed():
        try:
            seq = CompanySequence.objects.select_for_update().get(
                company=company,
                name=name,
            )
        except CompanySequence.DoesNotExist:
            try:
                with transaction.atomic():
                    seq = CompanySequence.objects.create(
                        company=company,
                        name=name,
                        next_value=1,
                    )
            except IntegrityError:
                seq = CompanySequence.objects.select_for_update().get(
                    company=company,
                    name=name,
                )

        value = seq.next_value
        seq.next_value = value + 1
        seq.save(update_fields=["next_value", "updated_at"])
        return value


def format_entry_number(value: int) -> str:
    return f"{ENTRY_NUMBER_PREFIX}{value:05d}"


def _get_company(tenant_id: int) -> Company:
    try:
        return Company.objects.get(pk=tenant_id)
    except Company.DoesNotExist:
        raise NotFoundError(f"Company {tenant_id} not found.")


def _to_amount(value, line_no: int) -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        amount = Decimal(str(value))
        rounded = amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidLineError(f"Invalid amount {value!r}.", line_no)
    # Amounts are whole cents; finer input is rejected, never rounded.
    if amount != rounded:
        raise InvalidLineError(f"Amount {value!r} has more than 2 decimal places.", line_no)
    return rounded


def _normalize_lines(lines: list) -> list[dict]:
    """
    Validate line shapes and convert amounts to Decimal.

    Each input line is a dict with ``account_id``, ``debit``, ``credit``
    and an optional ``description``.
    """
    if not lines or len(lines) < 2:
        raise InvalidLineError("Journal entry must have at least 2 lines.")

    normalized = []
    for idx, line in enumerate(lines, start=1):
        account_id = line.get("account_id")
        if account_id is None:
            raise InvalidLineError("account_id is required.", idx)

        debit = _to_amount(line.get("debit"), idx)
        credit = _to_amount(line.get("credit"), idx)
        allowed, reason = validate_line_amounts(debit, credit)
        if not allowed:
            raise InvalidLineError(reason, idx)

        normalized.append({
            "line_no": idx,
            "account_id": int(account_id),
            "description": line.get("description") or "",
            "debit": debit,
            "credit": credit,
        })
    return normalized


def _load_postable_accounts(tenant_id: int, account_ids: set[int]) -> dict[int, Account]:
    accounts = {
        a.pk: a for a in Account.objects.filter(company_id=tenant_id, pk__in=account_ids)
    }
    missing = sorted(account_ids - set(accounts))
    if missing:
        raise NotFoundError(
            f"Accounts not found for this company: {', '.join(str(m) for m in missing)}"
        )
    for account in accounts.values():
        allowed, reason = can_post_to_account(tenant_id, account)
        if not allowed:
            raise NotFoundError(reason)
    return accounts


def _lock_entry(tenant_id: int, entry_id: int) -> JournalEntry:
    try:
        return JournalEntry.objects.select_for_update().get(
            pk=entry_id,
            company_id=tenant_id,
        )
    except JournalEntry.DoesNotExist:
        raise NotFoundError(f"Journal entry {entry_id} not found.")


def _emit_posted(entry: JournalEntry, user=None) -> None:
    emit_event(
        company=entry.company,
        event_type=EventTypes.JOURNAL_ENTRY_POSTED,
        aggregate_type="JournalEntry",
        aggregate_id=entry.public_id,
        idempotency_key=f"journal_entry.posted:{entry.public_id}",
        caused_by_user=user,
        data=JournalEntryPostedData(
            entry_public_id=str(entry.public_id),
            entry_number=entry.entry_number,
            date=entry.date.isoformat(),
            posted_at=entry.posted_at.isoformat(),
            total_debit=str(entry.total_debit),
            total_credit=str(entry.total_credit),
        ).to_dict(),
    )


# =============================================================================
# Journal Entry Commands
# =============================================================================

def create_journal_entry(
    tenant_id: int | None,
    *,
    date: date_type,
    description: str,
    lines: list,
    created_by=None,
    source: str = JournalEntry.Source.MANUAL,
    invoice_id: int | None = None,
    payment_id: int | None = None,
    purchase_order_id: int | None = None,
    stock_movement_id: str = "",
    dian_document_id: str = "",
    payroll_period_id: str = "",
) -> JournalEntry:
    """
    Create a DRAFT journal entry with its lines.

    Posting is a separate step (post_journal_entry); only the accounting
    bridge creates entries already POSTED, through create_auto_entry.

    Args:
        tenant_id: Company primary key (None resolves the ambient tenant)
        date: Accounting date
        description: Entry description
        lines: [{"account_id", "debit", "credit", "description"?}, ...]
            Amounts are whole cents; more than 2 decimal places is rejected.
        created_by: Author (User) for manual entries
        source: One of JournalEntry.Source
        invoice_id/payment_id/purchase_order_id: Commerce traceability links
        stock_movement_id/dian_document_id/payroll_period_id: External document ids

    Returns:
        The persisted JournalEntry

    Raises:
        InvalidLineError: malformed lines or sub-cent amounts
        UnbalancedEntryError: sum(debit) != sum(credit)
        NotFoundError: unknown company, or account missing/inactive/foreign
        StorageError: the database rejected the write
    """
    return _create_entry(
        tenant_id,
        date=date,
        description=description,
        lines=lines,
        created_by=created_by,
        source=source,
        status=JournalEntry.Status.DRAFT,
        invoice_id=invoice_id,
        payment_id=payment_id,
        purchase_order_id=purchase_order_id,
        stock_movement_id=stock_movement_id,
        dian_document_id=dian_document_id,
        payroll_period_id=payroll_period_id,
    )


@transaction.atomic
def _create_entry(
    tenant_id: int | None,
    *,
    date: date_type,
    description: str,
    lines: list,
    status: str,
    created_by=None,
    source: str = JournalEntry.Source.MANUAL,
    invoice_id: int | None = None,
    payment_id: int | None = None,
    purchase_order_id: int | None = None,
    stock_movement_id: str = "",
    dian_document_id: str = "",
    payroll_period_id: str = "",
    origin_event=None,
) -> JournalEntry:
    tenant_id = require_tenant_id(tenant_id)
    company = _get_company(tenant_id)

    if status not in (JournalEntry.Status.DRAFT, JournalEntry.Status.POSTED):
        raise InvalidStateError(f"Entries cannot be created as {status}.", status)

    normalized = _normalize_lines(lines)

    total_debit = sum((ln["debit"] for ln in normalized), ZERO)
    total_credit = sum((ln["credit"] for ln in normalized), ZERO)
    if total_debit != total_credit:
        raise UnbalancedEntryError(total_debit, total_credit)

    accounts = _load_postable_accounts(tenant_id, {ln["account_id"] for ln in normalized})

    now = timezone.now()
    try:
        with command_writes_allowed():
            entry_number = format_entry_number(
                _next_company_sequence(company, ENTRY_NUMBER_SEQUENCE)
            )
            entry = JournalEntry.objects.create(
                company=company,
                entry_number=entry_number,
                date=date,
                description=description,
                source=source,
                status=status,
                total_debit=total_debit,
                total_credit=total_credit,
                invoice_id=invoice_id,
                payment_id=payment_id,
                purchase_order_id=purchase_order_id,
                stock_movement_id=stock_movement_id or "",
                dian_document_id=dian_document_id or "",
                payroll_period_id=payroll_period_id or "",
                origin_event=origin_event,
                posted_at=now if status == JournalEntry.Status.POSTED else None,
                created_by=created_by,
            )
            JournalLine.objects.bulk_create([
                JournalLine(
                    entry=entry,
                    company=company,
                    line_no=ln["line_no"],
                    account_id=ln["account_id"],
                    description=ln["description"],
                    debit=ln["debit"],
                    credit=ln["credit"],
                )
                for ln in normalized
            ])
    except DatabaseError as e:
        raise StorageError(f"Failed to persist journal entry: {e}") from e

    emit_event(
        company=company,
        event_type=EventTypes.JOURNAL_ENTRY_CREATED,
        aggregate_type="JournalEntry",
        aggregate_id=entry.public_id,
        idempotency_key=f"journal_entry.created:{entry.public_id}",
        caused_by_user=created_by,
        data=JournalEntryCreatedData(
            entry_public_id=str(entry.public_id),
            entry_number=entry.entry_number,
            date=entry.date.isoformat(),
            description=entry.description,
            source=entry.source,
            status=entry.status,
            total_debit=str(total_debit),
            total_credit=str(total_credit),
            created_by_id=created_by.pk if created_by else None,
            origin_event_id=str(origin_event.id) if origin_event else None,
            lines=[
                JournalLineData(
                    line_no=ln["line_no"],
                    account_id=ln["account_id"],
                    account_code=accounts[ln["account_id"]].code,
                    description=ln["description"],
                    debit=str(ln["debit"]),
                    credit=str(ln["credit"]),
                ).to_dict()
                for ln in normalized
            ],
        ).to_dict(),
    )
    if entry.status == JournalEntry.Status.POSTED:
        _emit_posted(entry, created_by)

    logger.info(
        f"Journal entry created: {entry.entry_number} ({entry.source}, {entry.status})",
        extra={"tenant_id": tenant_id},
    )
    return entry


def create_auto_entry(
    tenant_id: int | None,
    *,
    date: date_type,
    description: str,
    source: str,
    lines: list,
    invoice_id: int | None = None,
    payment_id: int | None = None,
    purchase_order_id: int | None = None,
    stock_movement_id: str = "",
    dian_document_id: str = "",
    payroll_period_id: str = "",
    origin_event=None,
) -> JournalEntry:
    """
    Create an entry directly POSTED on behalf of the accounting bridge.

    Same validation as create_journal_entry; business events are facts
    already settled, so there is no DRAFT stage.
    """
    return _create_entry(
        tenant_id,
        date=date,
        description=description,
        lines=lines,
        source=source,
        status=JournalEntry.Status.POSTED,
        invoice_id=invoice_id,
        payment_id=payment_id,
        purchase_order_id=purchase_order_id,
        stock_movement_id=stock_movement_id,
        dian_document_id=dian_document_id,
        payroll_period_id=payroll_period_id,
        origin_event=origin_event,
    )


@transaction.atomic
def post_journal_entry(tenant_id: int | None, entry_id: int, user=None) -> JournalEntry:
    """
    Post a DRAFT entry. Totals are not recomputed.

    Raises:
        NotFoundError: unknown entry for this tenant
        InvalidStateError: entry is not DRAFT
    """
    tenant_id = require_tenant_id(tenant_id)
    entry = _lock_entry(tenant_id, entry_id)

    allowed, reason = can_post_entry(tenant_id, entry)
    if not allowed:
        raise InvalidStateError(reason, entry.status)

    entry.status = JournalEntry.Status.POSTED
    entry.posted_at = timezone.now()
    with command_writes_allowed():
        entry.save(update_fields=["status", "posted_at", "updated_at"])

    _emit_posted(entry, user)

    logger.info(f"Journal entry posted: {entry.entry_number}", extra={"tenant_id": tenant_id})
    return entry


@transaction.atomic
def void_journal_entry(tenant_id: int | None, entry_id: int, reason: str, user=None) -> JournalEntry:
    """
    Void a POSTED entry.

    Lines are kept as they are; voided entries simply drop out of every
    report. Any compensating entry is the caller's responsibility.

    Raises:
        NotFoundError: unknown entry for this tenant
        InvalidStateError: entry is not POSTED, or no reason was given
    """
    tenant_id = require_tenant_id(tenant_id)
    entry = _lock_entry(tenant_id, entry_id)

    allowed, why = can_void_entry(tenant_id, entry, reason)
    if not allowed:
        raise InvalidStateError(why, entry.status)

    entry.status = JournalEntry.Status.VOIDED
    entry.voided_at = timezone.now()
    entry.void_reason = reason.strip()
    with command_writes_allowed():
        entry.save(update_fields=["status", "voided_at", "void_reason", "updated_at"])

    emit_event(
        company=entry.company,
        event_type=EventTypes.JOURNAL_ENTRY_VOIDED,
        aggregate_type="JournalEntry",
        aggregate_id=entry.public_id,
        idempotency_key=f"journal_entry.voided:{entry.public_id}",
        caused_by_user=user,
        data=JournalEntryVoidedData(
            entry_public_id=str(entry.public_id),
            entry_number=entry.entry_number,
            voided_at=entry.voided_at.isoformat(),
            reason=entry.void_reason,
        ).to_dict(),
    )

    logger.info(
        f"Journal entry voided: {entry.entry_number} ({entry.void_reason})",
        extra={"tenant_id": tenant_id},
    )
    return entry


# =============================================================================
# Lookups
# =============================================================================

def get_journal_entry(tenant_id: int | None, entry_id: int) -> JournalEntry:
    tenant_id = require_tenant_id(tenant_id)
    try:
        return (
            JournalEntry.objects
            .prefetch_related("lines__account")
            .get(pk=entry_id, company_id=tenant_id)
        )
    except JournalEntry.DoesNotExist:
        raise NotFoundError(f"Journal entry {entry_id} not found.")


def list_journal_entries(
    tenant_id: int | None,
    source: str | None = None,
    status: str | None = None,
    from_date: date_type | None = None,
    to_date: date_type | None = None,
) -> list[JournalEntry]:
    """Entries of the tenant, newest first."""
    tenant_id = require_tenant_id(tenant_id)
    qs = JournalEntry.objects.filter(company_id=tenant_id)
    if source:
        qs = qs.filter(source=source)
    if status:
        qs = qs.filter(status=status)
    if from_date:
        qs = qs.filter(date__gte=from_date)
    if to_date:
        qs = qs.filter(date__lte=to_date)
    return list(qs.order_by("-date", "-id"))
