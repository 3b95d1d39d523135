"""
Shared fixtures: small corpora and an engine wired to in-memory adapters.
"""
from datetime import datetime, timedelta, timezone

import pytest

from psakdin_search.adapters import InMemoryDocumentStore, InMemoryIndexRepository
from psakdin_search.core import Document, IndexMaintainer, SearchService
from psakdin_search.core.assembler import ResultAssembler
from psakdin_search.core.context import ContextExtractor
from psakdin_search.core.query import QueryEvaluator


def make_document(doc_id, full_text, title="", court="", year=2000, summary=""):
    return Document(
        id=doc_id,
        title=title,
        court=court,
        year=year,
        full_text=full_text,
        summary=summary,
    )


class FakeClock:
    """Controllable replacement for datetime.now(timezone.utc)"""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class Engine:
    """Everything a search needs, over in-memory adapters"""

    def __init__(self, documents=(), index=None, max_age=timedelta(hours=24)):
        self.clock = FakeClock()
        self.store = InMemoryDocumentStore(documents)
        self.repository = InMemoryIndexRepository(index)
        self.maintainer = IndexMaintainer(
            store=self.store,
            repository=self.repository,
            max_age=max_age,
            clock=self.clock,
        )
        self.evaluator = QueryEvaluator()
        self.search = SearchService(
            maintainer=self.maintainer,
            store=self.store,
            evaluator=self.evaluator,
            assembler=ResultAssembler(ContextExtractor()),
        )


@pytest.fixture
def ox_corpus():
    """The two-ruling corpus: an ox that gored a cow, and a donkey"""
    return [
        make_document("1", "שור שנגח את הפרה", title="שור שנגח", court="בית הדין הרבני", year=2010),
        make_document("2", "חמור שנגח חמור", title="חמור", court="בית משפט השלום", year=2015),
    ]


@pytest.fixture
def engine(ox_corpus):
    return Engine(ox_corpus)


@pytest.fixture
def clock():
    return FakeClock()
