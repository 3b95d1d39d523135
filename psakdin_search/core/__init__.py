"""
Core - Domain logic and ports

This package contains:
- domain.py: Pure domain models
- conditions.py: Search conditions and filter rules
- text.py: Normalization shared by indexing, querying and highlighting
- indexing.py: Index building and the index maintainer
- query.py, context.py, assembler.py: Query evaluation, match lines, results
- ports.py: Port interfaces (abstractions for external dependencies)
- services.py: Application services (use cases)
"""
from .domain import (
    Document,
    DocumentSummary,
    CorpusFingerprint,
    InvertedIndex,
    MatchRecord,
    SearchResult,
    SearchOutcome,
    IndexStatus,
    SharedSearch,
)
from .conditions import SearchCondition, FilterRules, Field, Operator, Combinator
from .errors import (
    SearchEngineError,
    IndexStale,
    IndexBuildFailed,
    MalformedQuery,
    PersistenceUnavailable,
    DocumentStoreUnavailable,
    UpstreamError,
)
from .indexing import IndexMaintainer, IndexSnapshot, build_index, SCHEMA_VERSION
from .ports import DocumentStore, IndexRepository, SourceTextProvider
from .services import (
    SearchService,
    ListRulingsService,
    BuildIndexService,
    IndexStatusService,
    ImportCorpusService,
    SourceLookupService,
    SuggestWordsService,
)

__all__ = [
    # Domain models
    "Document",
    "DocumentSummary",
    "CorpusFingerprint",
    "InvertedIndex",
    "MatchRecord",
    "SearchResult",
    "SearchOutcome",
    "IndexStatus",
    "SharedSearch",
    # Conditions
    "SearchCondition",
    "FilterRules",
    "Field",
    "Operator",
    "Combinator",
    # Errors
    "SearchEngineError",
    "IndexStale",
    "IndexBuildFailed",
    "MalformedQuery",
    "PersistenceUnavailable",
    "DocumentStoreUnavailable",
    "UpstreamError",
    # Indexing
    "IndexMaintainer",
    "IndexSnapshot",
    "build_index",
    "SCHEMA_VERSION",
    # Ports
    "DocumentStore",
    "IndexRepository",
    "SourceTextProvider",
    # Services
    "SearchService",
    "ListRulingsService",
    "BuildIndexService",
    "IndexStatusService",
    "ImportCorpusService",
    "SourceLookupService",
    "SuggestWordsService",
]
