"""
Domain Models - Pure business entities

No external dependencies. These represent the core business concepts.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .text import MIN_WORD_LENGTH, normalize

SUMMARY_MAX_CHARS = 500

DEFAULT_SUGGESTIONS = 10


@dataclass(frozen=True)
class Document:
    """A ruling (psak din) in the corpus"""
    id: str
    title: str
    court: str
    year: int
    full_text: str
    summary: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """Build from a stored record (accepts full_text or fullText)"""
        full_text = data.get("full_text")
        if full_text is None:
            full_text = data.get("fullText", "")
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            court=data.get("court") or "",
            year=int(data.get("year") or 0),
            full_text=full_text or "",
            summary=data.get("summary") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "court": self.court,
            "year": self.year,
            "full_text": self.full_text,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class DocumentSummary:
    """Display metadata kept inside the index"""
    title: str
    court: str
    year: int
    summary: str

    @classmethod
    def of(cls, document: Document) -> "DocumentSummary":
        return cls(
            title=document.title,
            court=document.court,
            year=document.year,
            summary=document.summary[:SUMMARY_MAX_CHARS],
        )


@dataclass(frozen=True)
class CorpusFingerprint:
    """Comparable marker of the corpus state (count + last modification)"""
    document_count: int
    last_modified: Optional[str] = None


@dataclass(frozen=True)
class InvertedIndex:
    """
    Normalized word -> ids of the documents containing it.

    Never mutated after construction; a rebuild produces a new instance.
    """
    word_to_document_ids: dict[str, frozenset[str]]
    document_summaries: dict[str, DocumentSummary]
    total_words: int
    last_updated: datetime
    schema_version: int
    corpus_fingerprint: Optional[CorpusFingerprint] = None

    def lookup(self, word: str) -> frozenset[str]:
        """Ids of documents containing a normalized word"""
        return self.word_to_document_ids.get(word, frozenset())

    def suggest(self, prefix: str, limit: int = DEFAULT_SUGGESTIONS) -> list[str]:
        """
        Indexed words starting with prefix, most widespread first.

        Words found in more rulings rank higher, then alphabetically.
        Prefixes shorter than two characters suggest nothing.
        """
        needle = normalize(prefix or "").strip()
        if len(needle) < MIN_WORD_LENGTH or limit <= 0:
            return []
        words = [w for w in self.word_to_document_ids if w.startswith(needle)]
        words.sort(key=lambda w: (-len(self.word_to_document_ids[w]), w))
        return words[:limit]

    @property
    def document_count(self) -> int:
        return len(self.document_summaries)

    @property
    def unique_words(self) -> int:
        return len(self.word_to_document_ids)

    def to_dict(self) -> dict[str, Any]:
        fingerprint = None
        if self.corpus_fingerprint is not None:
            fingerprint = {
                "document_count": self.corpus_fingerprint.document_count,
                "last_modified": self.corpus_fingerprint.last_modified,
            }
        return {
            "schema_version": self.schema_version,
            "last_updated": self.last_updated.isoformat(),
            "total_words": self.total_words,
            "corpus_fingerprint": fingerprint,
            "document_summaries": {
                doc_id: {
                    "title": s.title,
                    "court": s.court,
                    "year": s.year,
                    "summary": s.summary,
                }
                for doc_id, s in self.document_summaries.items()
            },
            "word_to_document_ids": {
                word: sorted(ids) for word, ids in self.word_to_document_ids.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InvertedIndex":
        """Inverse of to_dict; raises KeyError/ValueError/TypeError on bad data"""
        fingerprint_data = data.get("corpus_fingerprint")
        fingerprint = None
        if fingerprint_data:
            fingerprint = CorpusFingerprint(
                document_count=int(fingerprint_data["document_count"]),
                last_modified=fingerprint_data.get("last_modified"),
            )

        last_updated = datetime.fromisoformat(data["last_updated"])
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)

        return cls(
            word_to_document_ids={
                word: frozenset(ids) for word, ids in data["word_to_document_ids"].items()
            },
            document_summaries={
                doc_id: DocumentSummary(
                    title=s["title"],
                    court=s["court"],
                    year=int(s["year"]),
                    summary=s["summary"],
                )
                for doc_id, s in data["document_summaries"].items()
            },
            total_words=int(data["total_words"]),
            last_updated=last_updated,
            schema_version=int(data["schema_version"]),
            corpus_fingerprint=fingerprint,
        )


@dataclass(frozen=True)
class MatchRecord:
    """A line of a document that contains query words, with its neighbours"""
    line_before: str
    matched_line: str
    line_after: str
    highlighted_line: str
    line_number: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_before": self.line_before,
            "matched_line": self.matched_line,
            "line_after": self.line_after,
            "highlighted_line": self.highlighted_line,
            "line_number": self.line_number,
        }


@dataclass(frozen=True)
class SearchResult:
    """A ranked ruling with its matching lines"""
    id: str
    title: str
    court: str
    year: int
    score: float
    matches: tuple[MatchRecord, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "court": self.court,
            "year": self.year,
            "score": self.score,
            "matches": [m.to_dict() for m in self.matches],
        }


@dataclass
class SearchOutcome:
    """What a search returns: results, or a renderable failure"""
    results: list[SearchResult] = field(default_factory=list)
    degraded: bool = False
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class IndexStatus:
    """Index metadata and freshness"""
    exists: bool
    stale: bool
    reason: Optional[str] = None
    schema_version: Optional[int] = None
    document_count: int = 0
    unique_words: int = 0
    total_words: int = 0
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class SharedSearch:
    """A search decoded from a share link"""
    text: Optional[str] = None
    filter_rules: Optional[dict[str, Any]] = None
    warnings: tuple[str, ...] = ()
