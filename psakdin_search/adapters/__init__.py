"""
Adapters - External implementations of ports

This package contains implementations of the core ports:
- filesystem.py: JSON-file corpus store and index repository
- memory.py: In-memory corpus store and index repository
- sefaria.py: Sefaria API source text / lexicon provider
"""
from .filesystem import FilesystemDocumentStore, FilesystemIndexRepository
from .memory import InMemoryDocumentStore, InMemoryIndexRepository
from .sefaria import SefariaAdapter

__all__ = [
    "FilesystemDocumentStore",
    "FilesystemIndexRepository",
    "InMemoryDocumentStore",
    "InMemoryIndexRepository",
    "SefariaAdapter",
]
