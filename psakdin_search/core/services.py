"""
Application Services - Use cases that orchestrate domain logic

These are the entry points to the core. They coordinate between
domain models and ports, but contain no infrastructure concerns.
"""
import logging
from typing import Any, Iterable, Optional, Union

from .assembler import ResultAssembler
from .conditions import FilterRules
from .context import ContextExtractor
from .domain import DEFAULT_SUGGESTIONS, Document, IndexStatus, SearchOutcome, SearchResult
from .errors import DocumentStoreUnavailable, IndexBuildFailed, MalformedQuery
from .indexing import IndexMaintainer, IndexSnapshot
from .ports import DocumentStore, SourceTextProvider
from .query import QueryEvaluator
from .text import query_words

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def parse_filter_rules(
    filter_rules: Union[FilterRules, dict, list, None],
    warnings: list[str],
) -> Optional[FilterRules]:
    """Parse untyped rules; malformed rules are dropped with a warning"""
    if filter_rules is None or isinstance(filter_rules, FilterRules):
        return filter_rules
    try:
        return FilterRules.from_dict(filter_rules)
    except MalformedQuery as e:
        message = f"Ignoring malformed filter rules: {e}"
        logger.warning(message)
        warnings.append(message)
        return None


def check_limit(
    limit: Optional[int],
    warnings: list[str],
    default: Optional[int] = DEFAULT_LIMIT,
) -> Optional[int]:
    """A negative limit is replaced by default with a warning (None means no limit)"""
    if limit is not None and limit < 0:
        warnings.append(f"Ignoring negative limit {limit}")
        return default
    return limit


class SearchService:
    """Use case: Search rulings by free text and/or filter rules"""

    def __init__(
        self,
        maintainer: IndexMaintainer,
        store: DocumentStore,
        evaluator: QueryEvaluator,
        assembler: ResultAssembler,
    ):
        self.maintainer = maintainer
        self.store = store
        self.evaluator = evaluator
        self.assembler = assembler

    def execute(
        self,
        free_text: Optional[str] = None,
        filter_rules: Union[FilterRules, dict, list, None] = None,
        limit: Optional[int] = DEFAULT_LIMIT,
    ) -> SearchOutcome:
        """
        Search the corpus.

        Never raises for bad input or a broken index: the outcome carries
        warnings, a degraded flag, or an error message instead. An empty
        query returns no results.
        """
        warnings: list[str] = []
        limit = check_limit(limit, warnings)
        rules = parse_filter_rules(filter_rules, warnings)
        words = query_words(free_text)

        if not words and (rules is None or rules.is_empty()):
            return SearchOutcome(warnings=warnings)

        try:
            snapshot = self.maintainer.refresh()
        except IndexBuildFailed as e:
            return SearchOutcome(degraded=True, warnings=warnings, error=str(e))
        if snapshot.warning:
            warnings.append(snapshot.warning)

        index = snapshot.index
        degraded = snapshot.degraded
        try:
            candidate_ids = self.evaluator.candidates(index, words, rules, self.store.get_documents)
        except DocumentStoreUnavailable as e:
            message = f"Ruling texts unavailable, proximity rules only check that both words occur: {e}"
            logger.warning(message)
            warnings.append(message)
            candidate_ids = self.evaluator.candidates(index, words, rules)
            degraded = True

        try:
            documents = self.store.get_documents(candidate_ids) if candidate_ids else {}
        except DocumentStoreUnavailable as e:
            message = f"Ruling texts unavailable, showing results without context: {e}"
            logger.warning(message)
            warnings.append(message)
            documents = {}
            degraded = True

        ranked = self.evaluator.rank(index, candidate_ids, words, documents)
        results = self.assembler.assemble(ranked, index, documents, words, limit)
        logger.info(f"search: {len(words)} words, {len(results)} results")

        return SearchOutcome(results=results, degraded=degraded, warnings=warnings)


class ListRulingsService:
    """Use case: List all indexed rulings (unscored, newest first)"""

    def __init__(self, maintainer: IndexMaintainer, evaluator: QueryEvaluator):
        self.maintainer = maintainer
        self.evaluator = evaluator

    def execute(self, limit: Optional[int] = None) -> SearchOutcome:
        warnings: list[str] = []
        limit = check_limit(limit, warnings, default=None)
        try:
            snapshot = self.maintainer.refresh()
        except IndexBuildFailed as e:
            return SearchOutcome(degraded=True, warnings=warnings, error=str(e))

        index = snapshot.index
        listed = self.evaluator.list_all(index)
        if limit is not None:
            listed = listed[:limit]

        results = []
        for candidate in listed:
            summary = index.document_summaries[candidate.document_id]
            results.append(SearchResult(
                id=candidate.document_id,
                title=summary.title,
                court=summary.court,
                year=summary.year,
                score=0.0,
            ))

        if snapshot.warning:
            warnings.append(snapshot.warning)
        return SearchOutcome(results=results, degraded=snapshot.degraded, warnings=warnings)


class BuildIndexService:
    """Use case: (Re)build the search index"""

    def __init__(self, maintainer: IndexMaintainer):
        self.maintainer = maintainer

    def execute(self, force: bool = True) -> IndexSnapshot:
        """Rebuild (or only refresh when force=False); raises IndexBuildFailed"""
        return self.maintainer.rebuild(force=force)


class IndexStatusService:
    """Use case: Report index metadata and freshness"""

    def __init__(self, maintainer: IndexMaintainer):
        self.maintainer = maintainer

    def execute(self) -> IndexStatus:
        return self.maintainer.status()


class ImportCorpusService:
    """Use case: Replace the corpus and rebuild the index"""

    def __init__(self, store: DocumentStore, maintainer: IndexMaintainer):
        self.store = store
        self.maintainer = maintainer

    def execute(self, records: Iterable[dict[str, Any]]) -> tuple[int, IndexSnapshot]:
        """
        Replace the corpus with records and rebuild.

        Returns (document_count, snapshot). Bad records raise MalformedQuery
        before anything is written.
        """
        documents = []
        for i, record in enumerate(records):
            try:
                documents.append(Document.from_dict(record))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise MalformedQuery(f"Record {i} is not a valid ruling: {e}") from None

        self.store.replace_documents(documents)
        return len(documents), self.maintainer.rebuild(force=True)


class SourceLookupService:
    """Use case: Look up canonical source text and lexicon entries"""

    def __init__(self, provider: SourceTextProvider):
        self.provider = provider

    def get_text(self, ref: str) -> dict[str, Any]:
        return self.provider.get_text(ref)

    def lookup_word(self, word: str, lookup_ref: Optional[str] = None) -> dict[str, Any]:
        return self.provider.lookup_word(word, lookup_ref)


class SuggestWordsService:
    """Use case: Complete a partly typed word from the index vocabulary"""

    def __init__(self, maintainer: IndexMaintainer):
        self.maintainer = maintainer

    def execute(self, prefix: str, limit: int = DEFAULT_SUGGESTIONS) -> list[tuple[str, int]]:
        """(word, ruling count) pairs, most widespread first; raises IndexBuildFailed"""
        index = self.maintainer.refresh().index
        return [(word, len(index.lookup(word))) for word in index.suggest(prefix, limit)]
