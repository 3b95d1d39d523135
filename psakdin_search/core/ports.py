"""
Ports - Interfaces for external dependencies

These define HOW the core interacts with the outside world,
but NOT the implementation details.
"""
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from .domain import CorpusFingerprint, Document, InvertedIndex


class DocumentStore(ABC):
    """Port for the ruling corpus (source of truth for re-indexing)"""

    @abstractmethod
    def get_all_documents(self) -> list[Document]:
        """Return every document in the corpus"""
        pass

    @abstractmethod
    def get_documents(self, ids: Iterable[str]) -> dict[str, Document]:
        """Return the documents with the given ids that exist, keyed by id"""
        pass

    @abstractmethod
    def get_corpus_fingerprint(self) -> CorpusFingerprint:
        """Return a comparable marker of the corpus state"""
        pass

    @abstractmethod
    def replace_documents(self, documents: Iterable[Document]) -> None:
        """Replace the whole corpus"""
        pass


class IndexRepository(ABC):
    """Port for index persistence; save must replace atomically"""

    @abstractmethod
    def load_index(self) -> Optional[InvertedIndex]:
        """Load the persisted index, or None if there is none"""
        pass

    @abstractmethod
    def save_index(self, index: InvertedIndex) -> None:
        """Persist index, replacing the previous one (raises PersistenceUnavailable)"""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the persisted index"""
        pass


class SourceTextProvider(ABC):
    """Port for upstream canonical text and lexicon lookups"""

    @abstractmethod
    def get_text(self, ref: str) -> dict[str, Any]:
        """Get source text for a structured reference (e.g. "Bava_Kamma.2a")"""
        pass

    @abstractmethod
    def lookup_word(self, word: str, lookup_ref: Optional[str] = None) -> dict[str, Any]:
        """Get dictionary entries for a word"""
        pass
