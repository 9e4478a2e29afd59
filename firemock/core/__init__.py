"""Core domain logic for the firemock document store.

This package contains zero external dependencies and represents
the pure store and query logic of the application. Transports, fixture
loaders and the CLI are handled by the adapters package.
"""

from .errors import (
    CollectionNotFoundError,
    DocumentNotFoundError,
    InvalidPathError,
    NotFoundError,
    PreconditionFailedError,
    StoreError,
)
from .models import (
    BatchGetResult,
    CompositeFilter,
    CompositeOperator,
    Direction,
    DocumentSnapshot,
    FieldFilter,
    FieldOperator,
    OrderBy,
    StoreStats,
    StructuredQuery,
    UnaryFilter,
    UnaryOperator,
    Value,
    ValueType,
    Write,
    WriteResult,
)
from .store import Store

__all__ = [
    "BatchGetResult",
    "CollectionNotFoundError",
    "CompositeFilter",
    "CompositeOperator",
    "Direction",
    "DocumentNotFoundError",
    "DocumentSnapshot",
    "FieldFilter",
    "FieldOperator",
    "InvalidPathError",
    "NotFoundError",
    "OrderBy",
    "PreconditionFailedError",
    "Store",
    "StoreError",
    "StoreStats",
    "StructuredQuery",
    "UnaryFilter",
    "UnaryOperator",
    "Value",
    "ValueType",
    "Write",
    "WriteResult",
]
