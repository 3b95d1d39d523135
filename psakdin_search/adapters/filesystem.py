"""
Filesystem Adapters

Implements DocumentStore and IndexRepository ports with JSON files. Writes go
to a temporary file in the same directory and are swapped in with
os.replace, so readers see either the old file or the new one.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Optional

from ..core.domain import CorpusFingerprint, Document, InvertedIndex
from ..core.errors import DocumentStoreUnavailable, PersistenceUnavailable
from ..core.ports import DocumentStore, IndexRepository

logger = logging.getLogger(__name__)


def _atomic_write_json(path: Path, data: Any) -> None:
    """Write JSON to path via a temp file + os.replace"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FilesystemDocumentStore(DocumentStore):
    """Corpus kept as a JSON array in a single file"""

    def __init__(self, corpus_path: str | Path):
        self.corpus_path = Path(corpus_path)
        self._cache: Optional[dict[str, Document]] = None
        self._cache_mtime: Optional[str] = None

    def _mtime(self) -> Optional[str]:
        """Modification marker: mtime plus inode (every replace writes a new inode)"""
        try:
            stat = self.corpus_path.stat()
            return f"{stat.st_mtime_ns}-{stat.st_ino}"
        except FileNotFoundError:
            return None
        except OSError as e:
            raise DocumentStoreUnavailable(f"Cannot stat {self.corpus_path}: {e}") from e

    def _load(self) -> dict[str, Document]:
        """Load (or reuse) the corpus, keyed by id in file order"""
        mtime = self._mtime()
        if mtime is None:
            return {}
        if self._cache is not None and self._cache_mtime == mtime:
            return self._cache

        try:
            records = json.loads(self.corpus_path.read_text(encoding="utf-8"))
            documents = {}
            for record in records:
                document = Document.from_dict(record)
                documents[document.id] = document
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise DocumentStoreUnavailable(f"Cannot read corpus {self.corpus_path}: {e}") from e

        self._cache = documents
        self._cache_mtime = mtime
        return documents

    def get_all_documents(self) -> list[Document]:
        return list(self._load().values())

    def get_documents(self, ids: Iterable[str]) -> dict[str, Document]:
        documents = self._load()
        return {doc_id: documents[doc_id] for doc_id in ids if doc_id in documents}

    def get_corpus_fingerprint(self) -> CorpusFingerprint:
        mtime = self._mtime()
        if mtime is None:
            return CorpusFingerprint(document_count=0)
        return CorpusFingerprint(document_count=len(self._load()), last_modified=mtime)

    def replace_documents(self, documents: Iterable[Document]) -> None:
        records = [d.to_dict() for d in documents]
        try:
            _atomic_write_json(self.corpus_path, records)
        except OSError as e:
            raise DocumentStoreUnavailable(f"Cannot write corpus {self.corpus_path}: {e}") from e
        self._cache = None
        logger.info(f"Corpus replaced: {len(records)} documents at {self.corpus_path}")


class FilesystemIndexRepository(IndexRepository):
    """Inverted index persisted as one JSON file"""

    def __init__(self, index_path: str | Path):
        self.index_path = Path(index_path)

    def load_index(self) -> Optional[InvertedIndex]:
        try:
            raw = self.index_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceUnavailable(f"Cannot read index {self.index_path}: {e}") from e

        try:
            return InvertedIndex.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # A damaged index is as good as none: it will be rebuilt
            logger.warning(f"Ignoring unreadable index {self.index_path}: {e}")
            return None

    def save_index(self, index: InvertedIndex) -> None:
        try:
            _atomic_write_json(self.index_path, index.to_dict())
        except OSError as e:
            raise PersistenceUnavailable(f"Cannot write index {self.index_path}: {e}") from e

    def clear(self) -> None:
        try:
            self.index_path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceUnavailable(f"Cannot remove index {self.index_path}: {e}") from e
