"""JSON fixture loader.

Reads an initial data set shaped as::

    {
        "users": {
            "alice": {
                "age": 30,
                "joined": "2024-01-15T09:30:00Z",
                "avatar": "data:image/png;base64,iVBORw0KGgo=",
                "__collections__": {
                    "orders": {"o1": {"total": 12.5}}
                }
            }
        }
    }

Top-level keys are collections, their keys are document ids, and each
document is a field map. The reserved ``__collections__`` key of a document
holds its subcollections. Strings that parse as RFC 3339 timestamps become
TIMESTAMP values and ``data:...;base64,...`` URIs become BYTES values, at
any nesting depth.
"""

import base64
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from firemock.adapters.wire.codec import parse_rfc3339
from firemock.core.models import Value
from firemock.core.ports import FixtureSourcePort
from firemock.core.tree import Collection, Document

logger = logging.getLogger(__name__)

SUBCOLLECTIONS_KEY = "__collections__"


class FixtureError(ValueError):
    """Fixture data is not shaped as collections of documents."""


def coerce_value(obj: Any) -> Value:
    """Convert a decoded JSON value into a field value.

    Args:
        obj: Value produced by ``json.loads``.

    Returns:
        The field value, with timestamp strings and base64 data URIs
        recognized.

    Raises:
        FixtureError: If the value cannot be represented.
    """
    if isinstance(obj, str):
        return _coerce_string(obj)
    if isinstance(obj, Mapping):
        return Value.map({key: coerce_value(item) for key, item in obj.items()})
    if isinstance(obj, list):
        return Value.array([coerce_value(item) for item in obj])
    try:
        return Value.from_python(obj)
    except (TypeError, ValueError) as e:
        raise FixtureError(f"unsupported fixture value {obj!r}: {e}") from e


def _coerce_string(text: str) -> Value:
    try:
        return Value.timestamp(parse_rfc3339(text))
    except ValueError:
        pass

    if text.startswith("data:"):
        prefix, separator, data = text.partition(",")
        if separator and prefix.endswith(";base64"):
            try:
                return Value.binary(base64.b64decode(data, validate=True))
            except ValueError:
                logger.debug(f"Keeping malformed data URI as a string: {prefix}")

    return Value.string(text)


def _parse_collection(path: str, data: Any) -> Collection:
    if not isinstance(data, Mapping):
        raise FixtureError(f"collection {path} data is not an object: {data!r}")
    collection = Collection(path=path)
    for document_id, document_data in data.items():
        collection.documents[document_id] = _parse_document(f"{path}/{document_id}", document_id, document_data)
    return collection


def _parse_document(path: str, document_id: str, data: Any) -> Document:
    if not isinstance(data, Mapping):
        raise FixtureError(f"document {path} data is not an object: {data!r}")

    document = Document(id=document_id, path=path)
    for key, raw in data.items():
        if key != SUBCOLLECTIONS_KEY:
            document.fields[key] = coerce_value(raw)
            continue
        if not isinstance(raw, Mapping):
            raise FixtureError(f"subcollections of {path} are not an object: {raw!r}")
        for collection_id, collection_data in raw.items():
            document.subcollections[collection_id] = _parse_collection(f"{path}/{collection_id}", collection_data)
    return document


def parse_fixture(data: Any) -> dict[str, Collection]:
    """Build top-level collections from decoded fixture JSON.

    Args:
        data: Object mapping collection names to collection data.

    Returns:
        Mapping of collection name to Collection.

    Raises:
        FixtureError: If the data, a collection or a document is not an object.
    """
    if not isinstance(data, Mapping):
        raise FixtureError(f"fixture root must be an object, got {type(data).__name__}")
    return {name: _parse_collection(name, collection_data) for name, collection_data in data.items()}


class JSONFixtureLoader(FixtureSourcePort):
    """FixtureSourcePort reading a JSON file from disk."""

    def __init__(self, file_path: str | Path):
        self.file_path = Path(file_path)

    def load(self) -> dict[str, Collection]:
        """Read and parse the fixture file.

        Raises:
            OSError: If the file cannot be read.
            FixtureError: If the file is not valid JSON or is misshapen.
        """
        text = self.file_path.read_text(encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise FixtureError(f"invalid JSON in {self.file_path}: {e}") from e

        collections = parse_fixture(data)
        logger.info(
            f"Parsed fixture {self.file_path}",
            extra={"file_path": str(self.file_path), "collections": sorted(collections)},
        )
        return collections


__all__ = ["FixtureError", "JSONFixtureLoader", "coerce_value", "parse_fixture"]
