"""Typed errors raised by the document store core.

Callers distinguish failures by exception class (or by the stable ``code``
attribute), never by message text. Adapters translate these into their own
envelopes at the edge (HTTP status, CLI result dictionaries).
"""


class StoreError(Exception):
    """Base class for all document store failures."""

    code = "UNKNOWN"

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path


class InvalidPathError(StoreError):
    """Path has the wrong number of segments or an empty segment."""

    code = "INVALID_ARGUMENT"


class NotFoundError(StoreError):
    """A collection or document on the path does not exist."""

    code = "NOT_FOUND"


class CollectionNotFoundError(NotFoundError):
    """A collection segment of the path does not exist."""


class DocumentNotFoundError(NotFoundError):
    """A document segment of the path does not exist."""


class PreconditionFailedError(StoreError):
    """A write declared an existence precondition that does not hold."""

    code = "FAILED_PRECONDITION"


__all__ = [
    "CollectionNotFoundError",
    "DocumentNotFoundError",
    "InvalidPathError",
    "NotFoundError",
    "PreconditionFailedError",
    "StoreError",
]
