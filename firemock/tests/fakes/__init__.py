"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow adapters to be tested without a real
store or files on disk:

- FakeDocumentStorePort: Canned documents, recorded writes and queries
- FakeFixtureSource: Prebuilt collections for bulk loading
"""

from .fixtures import FakeFixtureSource
from .store import FIXED_TIME, FakeDocumentStorePort

__all__ = [
    "FIXED_TIME",
    "FakeDocumentStorePort",
    "FakeFixtureSource",
]
