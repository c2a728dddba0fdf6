"""
Tenant context using contextvars for async-safety.

Every entry point of the ledger (journal commands, balance engine,
reports, accounting bridge) takes the tenant id as an explicit argument
and resolves it through ``require_tenant_id``. The ambient context is only
a fallback for callers that sit behind a request/task boundary which has
already established the tenant.

Usage:
    # Explicit (preferred)
    trial_balance(company.id, date(2026, 3, 31))

    # Ambient, e.g. inside a worker that set the tenant first
    with tenant_context(company_id=company.id):
        trial_balance(None, date(2026, 3, 31))
"""
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, NamedTuple


class NoTenantContextError(Exception):
    """Raised when an operation needs a tenant and none can be resolved."""

    def __init__(self, message: str = "No tenant context is active for this operation."):
        super().__init__(message)


class TenantContext(NamedTuple):
    """Immutable tenant context for a unit of work."""

    company_id: int


# None means no tenant context (system operations)
_current_tenant: ContextVar[Optional[TenantContext]] = ContextVar(
    "current_tenant",
    default=None,
)


def get_current_tenant() -> Optional[TenantContext]:
    """Get the current tenant context, or None outside any tenant scope."""
    return _current_tenant.get()


def get_current_tenant_id() -> Optional[int]:
    ctx = _current_tenant.get()
    return ctx.company_id if ctx else None


def set_tenant_context(company_id: int) -> None:
    """
    Set the current tenant context.

    Prefer ``tenant_context()``; this variant leaves cleanup to the caller
    (``clear_tenant_context`` in a finally block).
    """
    _current_tenant.set(TenantContext(company_id=company_id))


def clear_tenant_context() -> None:
    _current_tenant.set(None)


@contextmanager
def tenant_context(company_id: int):
    """
    Context manager for setting tenant context.

    Automatically restores the previous context on exit (even on exception).
    """
    token = _current_tenant.set(TenantContext(company_id=company_id))
    try:
        yield
    finally:
        _current_tenant.reset(token)


def require_tenant_id(tenant_id: Optional[int] = None) -> int:
    """
    Resolve the tenant for an operation.

    An explicit ``tenant_id`` always wins. Without one, the ambient
    context is used.

    Raises:
        NoTenantContextError: if neither is available
    """
    if tenant_id is not None:
        return int(tenant_id)

    ctx = _current_tenant.get()
    if ctx is None:
        raise NoTenantContextError()
    return ctx.company_id
