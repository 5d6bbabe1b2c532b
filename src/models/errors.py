# src/models/errors.py

"""Exception hierarchy for catalog reconciliation."""


class CatalogError(Exception):
    """Base class for every error raised by the reconciliation engine."""


class StorageError(CatalogError):
    """A storage operation failed."""


class StorageUnavailable(StorageError):
    """The database could not be reached, was locked, or timed out."""


class ValidationFailure(CatalogError):
    """An incoming listing is malformed and cannot be processed."""

    def __init__(self, listed_name: str, reason: str) -> None:
        super().__init__(f"{reason} (listed_name={listed_name!r})")
        self.listed_name = listed_name
        self.reason = reason
