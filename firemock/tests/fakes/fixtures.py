"""Fake FixtureSourcePort implementation for testing."""

from firemock.core.models import Value
from firemock.core.ports import FixtureSourcePort
from firemock.core.tree import Collection, Document


class FakeFixtureSource(FixtureSourcePort):
    """Fixture source serving prebuilt collections.

    ``documents`` maps top-level document paths ("users/alice") to plain
    field data; every call to ``load`` builds fresh Collection objects.
    """

    def __init__(self, documents: dict[str, dict] | None = None):
        self.documents = documents or {}
        self.load_call_count = 0

    def load(self) -> dict[str, Collection]:
        self.load_call_count += 1
        collections: dict[str, Collection] = {}
        for path, data in self.documents.items():
            collection_id, document_id = path.split("/")
            collection = collections.setdefault(collection_id, Collection(path=collection_id))
            collection.documents[document_id] = Document(
                id=document_id,
                path=path,
                fields={name: Value.from_python(raw) for name, raw in data.items()},
            )
        return collections
