"""
In-Memory Adapters

DocumentStore and IndexRepository kept in process memory. Used for
session-only operation and in tests.
"""
import itertools
from typing import Iterable, Optional

from ..core.domain import CorpusFingerprint, Document, InvertedIndex
from ..core.ports import DocumentStore, IndexRepository


class InMemoryDocumentStore(DocumentStore):
    """Corpus held in a dict; every replace bumps the revision"""

    def __init__(self, documents: Iterable[Document] = ()):
        self._revisions = itertools.count(1)
        self._documents: dict[str, Document] = {}
        self._revision = 0
        self.replace_documents(documents)

    def get_all_documents(self) -> list[Document]:
        return list(self._documents.values())

    def get_documents(self, ids: Iterable[str]) -> dict[str, Document]:
        return {doc_id: self._documents[doc_id] for doc_id in ids if doc_id in self._documents}

    def get_corpus_fingerprint(self) -> CorpusFingerprint:
        return CorpusFingerprint(
            document_count=len(self._documents),
            last_modified=f"rev-{self._revision}",
        )

    def replace_documents(self, documents: Iterable[Document]) -> None:
        self._documents = {d.id: d for d in documents}
        self._revision = next(self._revisions)


class InMemoryIndexRepository(IndexRepository):
    """Holds the last saved index"""

    def __init__(self, index: Optional[InvertedIndex] = None):
        self._index = index
        self.saves = 0

    def load_index(self) -> Optional[InvertedIndex]:
        return self._index

    def save_index(self, index: InvertedIndex) -> None:
        self._index = index
        self.saves += 1

    def clear(self) -> None:
        self._index = None
