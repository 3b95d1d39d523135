"""
Errors - Typed failures raised by the core

Every public surface (services, MCP handlers, CLI) converts these into a
renderable outcome; none of them reaches the caller as an unhandled fault.
"""
from typing import Optional


class SearchEngineError(Exception):
    """Base class for search engine failures"""


class IndexStale(SearchEngineError):
    """The index no longer reflects the corpus and must be rebuilt"""

    def __init__(self, reason: str):
        super().__init__(f"Index is stale: {reason}")
        self.reason = reason


class IndexBuildFailed(SearchEngineError):
    """Rebuilding the index failed and no usable index is available"""


class MalformedQuery(SearchEngineError, ValueError):
    """A search condition or filter rule could not be parsed or validated"""


class PersistenceUnavailable(SearchEngineError):
    """The index could not be read from or written to storage"""


class DocumentStoreUnavailable(SearchEngineError):
    """The document corpus could not be read"""


class UpstreamError(SearchEngineError):
    """An upstream text/lexicon provider failed"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
