# daily_ledger/exceptions.py
"""
DAILY LEDGER ERRORS

Centralized domain errors for the ledger engine.

- DuplicateKeyError is an expected race outcome on day creation; creators
  treat it as success.
- LedgerValidationError is raised before any write.
- StorageError wraps database failures and is fatal for the operation.
"""


class LedgerError(Exception):
    """Base exception for all daily ledger failures."""


class LedgerValidationError(LedgerError):
    """Raised when input is rejected before any write."""


class LedgerNotFoundError(LedgerError):
    """Raised when a day that was explicitly requested does not exist."""


class DuplicateKeyError(LedgerError):
    """Raised when a ledger day already exists for (tenant, company, day)."""


class StorageError(LedgerError):
    """Raised on database failures other than a duplicate day."""


class ConcurrentUpdateError(StorageError):
    """Raised when a versioned save loses to a concurrent writer."""
