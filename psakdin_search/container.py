"""
Dependency Injection Container

Wires together the hexagonal architecture by creating and injecting dependencies.
"""
from datetime import timedelta
from pathlib import Path
from typing import Optional

from .adapters import FilesystemDocumentStore, FilesystemIndexRepository, SefariaAdapter
from .config import DEFAULT_SEFARIA_BASE_URL, DEFAULT_SHARE_BASE_URL
from .core import (
    IndexMaintainer,
    SearchService,
    ListRulingsService,
    BuildIndexService,
    IndexStatusService,
    ImportCorpusService,
    SourceLookupService,
    SuggestWordsService,
)
from .core.assembler import ResultAssembler
from .core.context import ContextExtractor
from .core.indexing import DEFAULT_MAX_AGE
from .core.query import QueryEvaluator


class Container:
    """Dependency injection container for the application"""

    def __init__(
        self,
        data_dir: str | Path,
        max_age: Optional[timedelta] = DEFAULT_MAX_AGE,
        sefaria_base_url: str = DEFAULT_SEFARIA_BASE_URL,
        share_base_url: str = DEFAULT_SHARE_BASE_URL,
    ):
        self.data_dir = Path(data_dir)
        self.share_base_url = share_base_url

        # Adapters (infrastructure)
        self.documents = FilesystemDocumentStore(self.data_dir / "corpus.json")
        self.index_repository = FilesystemIndexRepository(self.data_dir / "index.json")
        self.source_provider = SefariaAdapter(base_url=sefaria_base_url)

        # Engine
        self.maintainer = IndexMaintainer(
            store=self.documents,
            repository=self.index_repository,
            max_age=max_age
        )
        evaluator = QueryEvaluator()
        assembler = ResultAssembler(ContextExtractor())

        # Services (use cases)
        self.search = SearchService(
            maintainer=self.maintainer,
            store=self.documents,
            evaluator=evaluator,
            assembler=assembler
        )

        self.list_rulings = ListRulingsService(
            maintainer=self.maintainer,
            evaluator=evaluator
        )

        self.build_index = BuildIndexService(maintainer=self.maintainer)
        self.index_status = IndexStatusService(maintainer=self.maintainer)
        self.suggest_words = SuggestWordsService(maintainer=self.maintainer)

        self.import_corpus = ImportCorpusService(
            store=self.documents,
            maintainer=self.maintainer
        )

        self.sources = SourceLookupService(provider=self.source_provider)
