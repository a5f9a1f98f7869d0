"""Exception types raised by the write paths.

Read paths degrade instead of raising; see database.catalog.
"""


class StellixError(Exception):
    """Base class for all Stellix errors."""


class StoreError(StellixError):
    """Document store could not complete a read or write."""


class CatalogConflictError(StoreError):
    """Catalog version changed between read and write."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Catalog version conflict: expected {expected}, found {actual}")
        self.expected = expected
        self.actual = actual


class NotFoundError(StellixError, LookupError):
    """Target document or channel does not exist."""


class ValidationError(StellixError, ValueError):
    """Input rejected before any store mutation."""
