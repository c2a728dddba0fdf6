# accounting/exceptions.py
"""
Error taxonomy for the ledger.

    AccountingError
    ├── ValidationError          rejected synchronously, never persisted
    │   ├── UnbalancedEntryError
    │   ├── InvalidLineError
    │   └── InvalidDateRangeError
    ├── StateError               wrong status for post/void
    │   └── InvalidStateError
    ├── NotFoundError            unknown entry/account/tenant
    ├── ConfigurationError       missing account mapping (bridge only)
    └── StorageError             persistence failure while writing an entry
"""

from decimal import Decimal


class AccountingError(Exception):
    """Base class for every error raised by the accounting subsystem."""

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)


class ValidationError(AccountingError):
    pass


class UnbalancedEntryError(ValidationError):
    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Entry is not balanced. Debit={total_debit} Credit={total_credit}"
        )


class InvalidLineError(ValidationError):
    def __init__(self, message: str, line_no: int | None = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"Line {line_no}: {message}"
        super().__init__(message)


class InvalidDateRangeError(ValidationError):
    pass


class StateError(AccountingError):
    pass


class InvalidStateError(StateError):
    def __init__(self, message: str, current_status: str | None = None):
        self.current_status = current_status
        super().__init__(message)


class NotFoundError(AccountingError):
    pass


class ConfigurationError(AccountingError):
    """An account mapping needed for auto-generation is missing."""

    def __init__(self, message: str, missing: list[str] | None = None):
        self.missing = missing or []
        super().__init__(message)


class StorageError(AccountingError):
    pass
