# accounting/policies.py
"""
Business policy functions for the journal.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that's the command's job.

Usage:
    from accounting.policies import can_post_entry

    allowed, reason = can_post_entry(tenant_id, entry)
    if not allowed:
        raise InvalidStateError(reason, entry.status)

Design Principles:
1. Policies are pure functions (no side effects)
2. Policies return (bool, str) tuples for clear error messages
3. Policies check ONE thing conceptually
4. Commands compose policies and raise the matching exception
"""

from decimal import Decimal


def check_tenant_boundary(tenant_id: int, entity) -> bool:
    """Verify entity belongs to the tenant."""
    return getattr(entity, "company_id", None) == tenant_id


# =============================================================================
# Account Policies
# =============================================================================

def can_post_to_account(tenant_id: int, account) -> tuple[bool, str]:
    """
    Check if journal lines can be posted to this account.

    Rules:
    - Account must belong to the tenant
    - Account must be active
    """
    if not check_tenant_boundary(tenant_id, account):
        return False, f"Account {account.pk} does not belong to this company."

    if not account.is_active:
        return False, f"Cannot post to inactive account: {account.code}"

    return True, ""


# =============================================================================
# Journal Line Policies
# =============================================================================

def validate_line_amounts(debit: Decimal, credit: Decimal) -> tuple[bool, str]:
    """
    A line carries exactly one non-negative, non-zero side.
    """
    if debit < 0 or credit < 0:
        return False, "Debit/Credit cannot be negative."
    if debit > 0 and credit > 0:
        return False, "A line cannot have both debit and credit."
    if debit == 0 and credit == 0:
        return False, "A line cannot have both debit and credit = 0."
    return True, ""


# =============================================================================
# Journal Entry Policies
# =============================================================================

def can_post_entry(tenant_id: int, entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be posted.

    Rules:
    - Must belong to the tenant
    - Must be in DRAFT status
    """
    if not check_tenant_boundary(tenant_id, entry):
        return False, "Cross-company action denied."

    from accounting.models import JournalEntry

    if entry.status != JournalEntry.Status.DRAFT:
        return False, f"Only DRAFT entries can be posted (entry is {entry.status})."

    return True, ""


def can_void_entry(tenant_id: int, entry, reason: str) -> tuple[bool, str]:
    """
    Check if a journal entry can be voided.

    Rules:
    - Must belong to the tenant
    - Must be in POSTED status
    - A reason is required
    """
    if not check_tenant_boundary(tenant_id, entry):
        return False, "Cross-company action denied."

    from accounting.models import JournalEntry

    if entry.status != JournalEntry.Status.POSTED:
        return False, f"Only POSTED entries can be voided (entry is {entry.status})."

    if not reason or not reason.strip():
        return False, "A reason is required to void an entry."

    return True, ""
