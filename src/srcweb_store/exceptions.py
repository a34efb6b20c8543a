"""Exceptions raised by the srcweb_store library."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from srcweb_store.validation.utils import ValidationIssue


class StoreError(Exception):
    """Base class for all storage-layer errors."""


class SchemaDeclarationError(StoreError):
    """Raised when the declared store set repeats a store or index name."""

    def __init__(self, message: str, store: str, index: str | None = None) -> None:
        self.store = store
        self.index = index
        super().__init__(message)


class OpenError(StoreError):
    """Raised when the underlying database cannot be opened or upgraded."""


class DatabaseClosedError(StoreError):
    """Raised when a table is used while the database handle is closed."""


class DatabaseBlockedError(StoreError):
    """Raised when deleting a database that another connection still holds."""


class ConstraintError(StoreError):
    """Raised when a write would violate a primary key or unique index."""


class TransactionError(StoreError):
    """Raised when a multi-table transaction fails; nothing was committed."""


class ValidationFailedError(StoreError):
    """Raised by ``validate_or_throw`` with every joined validation message."""

    def __init__(self, message: str, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(message)
