"""Fixture source adapters.

Implementations of FixtureSourcePort that parse an initial data set into
collections for bulk loading.
"""

from .json_file import FixtureError, JSONFixtureLoader, parse_fixture

__all__ = ["FixtureError", "JSONFixtureLoader", "parse_fixture"]
