"""
Index building and maintenance

build_index() turns a corpus into an InvertedIndex. IndexMaintainer owns the
current index snapshot: it decides when the snapshot is stale, rebuilds and
persists it, and falls back to the last good snapshot when a rebuild fails.
"""
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from .domain import CorpusFingerprint, Document, DocumentSummary, IndexStatus, InvertedIndex
from .errors import DocumentStoreUnavailable, IndexBuildFailed, IndexStale, PersistenceUnavailable
from .ports import DocumentStore, IndexRepository
from .text import index_terms, tokenize

logger = logging.getLogger(__name__)

# Bump whenever normalization or the index layout changes
SCHEMA_VERSION = 2

DEFAULT_MAX_AGE = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def indexed_text(document: Document) -> str:
    """The text a document is indexed by"""
    return "\n".join((document.title, document.summary, document.full_text))


def build_index(
    documents: Iterable[Document],
    fingerprint: Optional[CorpusFingerprint] = None,
    now: Optional[datetime] = None,
) -> InvertedIndex:
    """Build a complete inverted index from a corpus"""
    postings: dict[str, set[str]] = defaultdict(set)
    summaries: dict[str, DocumentSummary] = {}
    total_words = 0

    for document in documents:
        summaries[document.id] = DocumentSummary.of(document)

        words = set(tokenize(indexed_text(document)))
        total_words += len(words)
        for word in words:
            for term in index_terms(word):
                postings[term].add(document.id)

    return InvertedIndex(
        word_to_document_ids={term: frozenset(ids) for term, ids in postings.items()},
        document_summaries=summaries,
        total_words=total_words,
        last_updated=now or _utcnow(),
        schema_version=SCHEMA_VERSION,
        corpus_fingerprint=fingerprint,
    )


@dataclass(frozen=True)
class IndexSnapshot:
    """An index handed to a reader, plus how it was obtained"""
    index: InvertedIndex
    rebuilt: bool = False
    degraded: bool = False
    warning: Optional[str] = None


class IndexMaintainer:
    """Keeps the inverted index consistent with the document store"""

    def __init__(
        self,
        store: DocumentStore,
        repository: IndexRepository,
        max_age: Optional[timedelta] = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.repository = repository
        self.max_age = max_age
        self.clock = clock
        self._current: Optional[InvertedIndex] = None
        self._loaded = False
        self._rebuild_lock = threading.Lock()

    @property
    def current(self) -> Optional[InvertedIndex]:
        """The last good index held in memory (may be None)"""
        return self._current

    def build(self, documents: Optional[Iterable[Document]] = None) -> InvertedIndex:
        """
        Build an index stamped with the store's fingerprint.

        The fingerprint is read before the documents. A corpus replaced in
        between then leaves the new index stale instead of marking old
        contents as current. Without documents the whole store is indexed.
        """
        fingerprint = self.store.get_corpus_fingerprint()
        if documents is None:
            documents = self.store.get_all_documents()
        return build_index(list(documents), fingerprint=fingerprint, now=self.clock())

    def stale_reason(
        self,
        index: InvertedIndex,
        documents: Optional[Iterable[Document]] = None,
    ) -> Optional[str]:
        """Why index no longer reflects the corpus, or None when it is fresh"""
        if index.schema_version != SCHEMA_VERSION:
            return f"schema version {index.schema_version} != {SCHEMA_VERSION}"

        if documents is not None:
            ids = {d.id for d in documents}
            if ids != set(index.document_summaries):
                return f"corpus has {len(ids)} documents, index has {index.document_count}"
        else:
            fingerprint = self.store.get_corpus_fingerprint()
            if index.corpus_fingerprint != fingerprint:
                return "corpus changed since the index was built"

        if self.max_age is not None and self.clock() - index.last_updated > self.max_age:
            return f"index is older than {self.max_age}"

        return None

    def is_stale(
        self,
        index: InvertedIndex,
        documents: Optional[Iterable[Document]] = None,
    ) -> bool:
        return self.stale_reason(index, documents) is not None

    def verify(
        self,
        index: InvertedIndex,
        documents: Optional[Iterable[Document]] = None,
    ) -> None:
        """Raise IndexStale when index no longer reflects the corpus"""
        reason = self.stale_reason(index, documents)
        if reason is not None:
            raise IndexStale(reason)

    def _load_persisted(self) -> Optional[InvertedIndex]:
        try:
            return self.repository.load_index()
        except PersistenceUnavailable as e:
            logger.warning(f"Could not load persisted index, continuing in memory: {e}")
            return None

    def refresh(self, index: Optional[InvertedIndex] = None, force: bool = False) -> IndexSnapshot:
        """
        Return a fresh snapshot, rebuilding when needed.

        A failed rebuild falls back to the last good index (degraded). With no
        index to fall back on, IndexBuildFailed is raised.
        """
        if index is None:
            if not self._loaded and self._current is None:
                self._current = self._load_persisted()
                self._loaded = True
            index = self._current

        try:
            if not force and index is not None:
                self.verify(index)
                return IndexSnapshot(index=index)
            reason = "forced rebuild" if force else "no index"
        except IndexStale as e:
            reason = e.reason
        except DocumentStoreUnavailable as e:
            return self._fallback(index, f"cannot check corpus: {e}")

        with self._rebuild_lock:
            # Another caller may have rebuilt while we waited
            latest = self._current
            if not force and latest is not None and latest is not index:
                try:
                    if self.stale_reason(latest) is None:
                        return IndexSnapshot(index=latest)
                except DocumentStoreUnavailable:
                    pass  # the rebuild below reports it

            return self._rebuild(reason, fallback=index)

    def _rebuild(self, reason: str, fallback: Optional[InvertedIndex]) -> IndexSnapshot:
        logger.info(f"Rebuilding search index ({reason})")
        try:
            new_index = self.build()
        except DocumentStoreUnavailable as e:
            return self._fallback(fallback, f"index rebuild failed: {e}")

        warning = None
        try:
            self.repository.save_index(new_index)
        except PersistenceUnavailable as e:
            warning = f"index not persisted, using it in memory only: {e}"
            logger.warning(warning)

        self._current = new_index
        logger.info(
            f"Search index built: {new_index.document_count} documents, "
            f"{new_index.unique_words} unique words"
        )
        return IndexSnapshot(index=new_index, rebuilt=True, warning=warning)

    def _fallback(self, index: Optional[InvertedIndex], message: str) -> IndexSnapshot:
        if index is None:
            logger.error(message)
            raise IndexBuildFailed(message)
        logger.warning(f"{message}; serving last good index")
        return IndexSnapshot(index=index, degraded=True, warning=message)

    def ensure_fresh(self, index: Optional[InvertedIndex] = None) -> InvertedIndex:
        """Return index unchanged when fresh, otherwise rebuild, persist and return"""
        return self.refresh(index).index

    def rebuild(self, force: bool = True) -> IndexSnapshot:
        return self.refresh(force=force)

    def status(self) -> IndexStatus:
        """Describe the current index without rebuilding it"""
        index = self._current if self._current is not None else self._load_persisted()
        if index is None:
            return IndexStatus(exists=False, stale=True, reason="no index")

        try:
            reason = self.stale_reason(index)
        except DocumentStoreUnavailable as e:
            reason = f"cannot check corpus: {e}"

        return IndexStatus(
            exists=True,
            stale=reason is not None,
            reason=reason,
            schema_version=index.schema_version,
            document_count=index.document_count,
            unique_words=index.unique_words,
            total_words=index.total_words,
            last_updated=index.last_updated,
        )

    def clear(self) -> None:
        """Drop the in-memory and persisted index"""
        self._current = None
        self._loaded = True
        self.repository.clear()
