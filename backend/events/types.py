# events/types.py
"""
Event type definitions.

This module defines THE CANONICAL SCHEMA for every outbox payload.
Emission validates the data dict against the registered dataclass.

Naming Convention: {aggregate}.{action}
Examples:
- invoice.created
- payment.received
- journal_entry.posted

Events are a stable API:
- Adding optional fields with defaults is safe
- Removing, renaming or retyping fields breaks consumers
"""

from dataclasses import dataclass, asdict, field, fields as dataclass_fields, MISSING
from typing import Optional, List, Dict, Any, get_type_hints, get_origin, get_args, Union
from decimal import Decimal, InvalidOperation
from datetime import date, datetime


# =============================================================================
# Event Validation
# =============================================================================

class InvalidEventPayload(Exception):
    """
    Raised when an event payload fails validation.
    """
    def __init__(self, event_type: str, errors: List[str]):
        self.event_type = event_type
        self.errors = errors
        error_list = "\n  - ".join(errors)
        super().__init__(
            f"Invalid payload for event '{event_type}':\n  - {error_list}"
        )


def _is_optional_type(type_hint) -> bool:
    """Check if a type hint is Optional[X] (i.e., Union[X, None])."""
    origin = get_origin(type_hint)
    if origin is Union:
        return type(None) in get_args(type_hint)
    return False


def _get_inner_type(type_hint):
    """Get the inner type from Optional[X]."""
    if get_origin(type_hint) is Union:
        non_none_args = [a for a in get_args(type_hint) if a is not type(None)]
        if len(non_none_args) == 1:
            return non_none_args[0]
    return type_hint


# Amount fields are carried as decimal strings in payloads.
DECIMAL_FIELDS = {
    "subtotal",
    "tax",
    "total",
    "amount",
    "debit",
    "credit",
    "total_debit",
    "total_credit",
    "cost_price",
    "quantity",
}

DATE_FIELDS = {"date", "issue_date", "payment_date", "received_date"}


def validate_event_payload(event_type: str, data: Dict[str, Any]) -> None:
    """
    Validate that a data dict matches the expected schema for an event type.

    Checks required fields, rejects unexpected ones, and does basic type
    checks plus decimal/date string checks for amount and date fields.

    Raises:
        InvalidEventPayload: If validation fails
        ValueError: If event_type has no registered schema
    """
    data_class = EVENT_DATA_CLASSES.get(event_type)
    if data_class is None:
        raise ValueError(
            f"No schema registered for event type '{event_type}'. "
            f"Add a dataclass to EVENT_DATA_CLASSES."
        )

    errors = []
    dc_fields = {f.name: f for f in dataclass_fields(data_class)}
    type_hints = get_type_hints(data_class)

    for field_name, field_info in dc_fields.items():
        required = (
            field_info.default is MISSING and
            field_info.default_factory is MISSING
        )
        if required and field_name not in data:
            errors.append(f"Missing required field: '{field_name}'")

    unexpected = set(data.keys()) - set(dc_fields.keys())
    if unexpected:
        errors.append(
            f"Unexpected fields: {sorted(unexpected)}. "
            f"Expected: {sorted(dc_fields.keys())}"
        )

    for field_name, value in data.items():
        if field_name not in dc_fields:
            continue

        type_hint = type_hints.get(field_name)
        if value is None:
            if not _is_optional_type(type_hint):
                errors.append(f"Field '{field_name}' cannot be None (type: {type_hint})")
            continue

        check_type = _get_inner_type(type_hint)
        origin = get_origin(check_type)

        if origin is list or check_type is list:
            if not isinstance(value, list):
                errors.append(f"Field '{field_name}' must be a list, got {type(value).__name__}")
            else:
                for idx, item in enumerate(value):
                    if not isinstance(item, dict):
                        errors.append(
                            f"Field '{field_name}[{idx}]' must be a dict, got {type(item).__name__}"
                        )
        elif origin is dict or check_type is dict:
            if not isinstance(value, dict):
                errors.append(f"Field '{field_name}' must be a dict, got {type(value).__name__}")
        elif check_type is str:
            if not isinstance(value, str):
                errors.append(f"Field '{field_name}' must be a string, got {type(value).__name__}")
        elif check_type is int:
            if not isinstance(value, int) or isinstance(value, bool):
                errors.append(f"Field '{field_name}' must be an int, got {type(value).__name__}")
        elif check_type is bool:
            if not isinstance(value, bool):
                errors.append(f"Field '{field_name}' must be a bool, got {type(value).__name__}")

    def _validate_scalar(name: str, value: Any) -> None:
        if value is None or isinstance(value, (dict, list)):
            return
        if name in DECIMAL_FIELDS:
            if isinstance(value, bool) or not isinstance(value, (int, Decimal, str)):
                errors.append(f"Field '{name}' must be a decimal string, got {type(value).__name__}")
            else:
                try:
                    Decimal(str(value))
                except InvalidOperation:
                    errors.append(f"Field '{name}' must be a decimal string, got {value!r}")
        if name in DATE_FIELDS:
            if not isinstance(value, str):
                errors.append(f"Field '{name}' must be an ISO date string, got {type(value).__name__}")
            else:
                try:
                    date.fromisoformat(value)
                except ValueError:
                    errors.append(f"Field '{name}' must be an ISO date string, got {value!r}")

    def _walk(name: str, value: Any) -> None:
        _validate_scalar(name, value)
        if isinstance(value, dict):
            for k, v in value.items():
                _walk(k, v)
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, (dict, list)):
                    _walk(name, item)

    for field_name, value in data.items():
        _walk(field_name, value)

    if errors:
        raise InvalidEventPayload(event_type, errors)


# =============================================================================
# Base Event Classes
# =============================================================================

def _json_value(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, list):
        return [_json_value(item) for item in value]
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    return value


@dataclass
class BaseEventData:
    """Base class for all event data."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage."""
        return {key: _json_value(value) for key, value in asdict(self).items()}


# =============================================================================
# Commerce Events (consumed by the accounting bridge)
# =============================================================================

@dataclass
class SaleItemData:
    """Invoice item embedded in sale-type events."""
    description: str
    quantity: str
    cost_price: Optional[str] = None
    product_sku: str = ""

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "cost_price": self.cost_price,
            "product_sku": self.product_sku,
        }


@dataclass
class InvoiceCreatedData(BaseEventData):
    """Data for invoice.created event."""
    invoice_id: int
    invoice_number: str
    issue_date: str
    subtotal: str
    tax: str
    total: str
    items: List[dict] = field(default_factory=list)
    customer_id: Optional[int] = None
    is_pos_immediate: bool = False


@dataclass
class InvoiceCancelledData(BaseEventData):
    """Data for invoice.cancelled event."""
    invoice_id: int
    invoice_number: str
    date: str
    subtotal: str
    tax: str
    total: str
    items: List[dict] = field(default_factory=list)
    is_pos_immediate: bool = False
    reason: str = ""


@dataclass
class PaymentReceivedData(BaseEventData):
    """Data for payment.received event."""
    payment_id: int
    invoice_id: int
    invoice_number: str
    amount: str
    method: str
    payment_date: str


@dataclass
class PurchaseOrderReceivedData(BaseEventData):
    """Data for purchase_order.received event."""
    purchase_order_id: int
    order_number: str
    supplier_id: int
    received_date: str
    subtotal: str
    tax: str
    total: str


@dataclass
class StockAdjustedData(BaseEventData):
    """Data for stock.adjusted event. Quantity is signed: surplus > 0."""
    stock_movement_id: str
    product_sku: str
    quantity: str
    cost_price: str
    date: str
    reason: str = ""


@dataclass
class PayrollApprovedData(BaseEventData):
    """Data for payroll.approved event (approved totals, already computed)."""
    payroll_period_id: str
    period_label: str
    date: str
    totals: Dict[str, str]


@dataclass
class CreditNoteIssuedData(BaseEventData):
    """Data for credit_note.issued event."""
    dian_document_id: str
    note_number: str
    invoice_id: int
    invoice_number: str
    date: str
    reason_code: str
    subtotal: str
    tax: str
    total: str
    items: List[dict] = field(default_factory=list)


@dataclass
class DebitNoteIssuedData(BaseEventData):
    """Data for debit_note.issued event."""
    dian_document_id: str
    note_number: str
    invoice_id: int
    invoice_number: str
    date: str
    subtotal: str
    tax: str
    total: str
    reason_code: str = ""


# =============================================================================
# Journal Entry Events (ledger audit trail)
# =============================================================================

@dataclass
class JournalLineData:
    """Journal line data for embedding in events."""
    line_no: int
    account_id: int
    account_code: str
    description: str
    debit: str  # String for JSON safety
    credit: str

    def to_dict(self) -> dict:
        return {
            "line_no": self.line_no,
            "account_id": self.account_id,
            "account_code": self.account_code,
            "description": self.description,
            "debit": self.debit,
            "credit": self.credit,
        }


@dataclass
class JournalEntryCreatedData(BaseEventData):
    """Data for journal_entry.created event."""
    entry_public_id: str
    entry_number: str
    date: str
    description: str
    source: str
    status: str
    total_debit: str
    total_credit: str
    lines: List[dict] = field(default_factory=list)
    created_by_id: Optional[int] = None
    origin_event_id: Optional[str] = None


@dataclass
class JournalEntryPostedData(BaseEventData):
    """Data for journal_entry.posted event."""
    entry_public_id: str
    entry_number: str
    date: str
    posted_at: str
    total_debit: str
    total_credit: str


@dataclass
class JournalEntryVoidedData(BaseEventData):
    """Data for journal_entry.voided event."""
    entry_public_id: str
    entry_number: str
    voided_at: str
    reason: str


# =============================================================================
# Event Type Registry
# =============================================================================

class EventTypes:
    """
    Registry of all event types.

    Naming convention: {aggregate}.{past_tense_verb}
    """

    # Commerce events
    INVOICE_CREATED = "invoice.created"
    INVOICE_CANCELLED = "invoice.cancelled"
    PAYMENT_RECEIVED = "payment.received"
    PURCHASE_ORDER_RECEIVED = "purchase_order.received"
    STOCK_ADJUSTED = "stock.adjusted"
    PAYROLL_APPROVED = "payroll.approved"
    CREDIT_NOTE_ISSUED = "credit_note.issued"
    DEBIT_NOTE_ISSUED = "debit_note.issued"

    # Journal entry events
    JOURNAL_ENTRY_CREATED = "journal_entry.created"
    JOURNAL_ENTRY_POSTED = "journal_entry.posted"
    JOURNAL_ENTRY_VOIDED = "journal_entry.voided"


EVENT_DATA_CLASSES = {
    EventTypes.INVOICE_CREATED: InvoiceCreatedData,
    EventTypes.INVOICE_CANCELLED: InvoiceCancelledData,
    EventTypes.PAYMENT_RECEIVED: PaymentReceivedData,
    EventTypes.PURCHASE_ORDER_RECEIVED: PurchaseOrderReceivedData,
    EventTypes.STOCK_ADJUSTED: StockAdjustedData,
    EventTypes.PAYROLL_APPROVED: PayrollApprovedData,
    EventTypes.CREDIT_NOTE_ISSUED: CreditNoteIssuedData,
    EventTypes.DEBIT_NOTE_ISSUED: DebitNoteIssuedData,

    EventTypes.JOURNAL_ENTRY_CREATED: JournalEntryCreatedData,
    EventTypes.JOURNAL_ENTRY_POSTED: JournalEntryPostedData,
    EventTypes.JOURNAL_ENTRY_VOIDED: JournalEntryVoidedData,
}
