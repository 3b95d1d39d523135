"""
Unit tests for index building and the index maintainer
"""
import dataclasses
from datetime import timedelta

import pytest

from psakdin_search.adapters import InMemoryDocumentStore, InMemoryIndexRepository
from psakdin_search.core import (
    DocumentStoreUnavailable,
    IndexBuildFailed,
    IndexMaintainer,
    IndexStale,
    PersistenceUnavailable,
    SCHEMA_VERSION,
    build_index,
)
from psakdin_search.core.indexing import indexed_text
from psakdin_search.core.text import tokenize

from conftest import Engine, FakeClock, make_document


class FlakyStore(InMemoryDocumentStore):
    """A store that can be switched off"""

    broken = False

    def _check(self):
        if self.broken:
            raise DocumentStoreUnavailable("disk on fire")

    def get_all_documents(self):
        self._check()
        return super().get_all_documents()

    def get_documents(self, ids):
        self._check()
        return super().get_documents(ids)

    def get_corpus_fingerprint(self):
        self._check()
        return super().get_corpus_fingerprint()


class RacingStore(InMemoryDocumentStore):
    """A store whose corpus is replaced by another writer while it is being read"""

    pending = None

    def get_all_documents(self):
        documents = super().get_all_documents()
        if self.pending is not None:
            self.replace_documents(self.pending)
            self.pending = None
        return documents


class ReadOnlyRepository(InMemoryIndexRepository):
    """A repository whose writes always fail"""

    def save_index(self, index):
        raise PersistenceUnavailable("read-only storage")


class TestBuildIndex:
    """Test building an index from a corpus."""

    def test_every_word_maps_back_to_its_document(self, ox_corpus):
        """Each word of each document looks up to that document, and only to real documents."""
        index = build_index(ox_corpus)
        ids = {d.id for d in ox_corpus}

        for document in ox_corpus:
            for word in tokenize(indexed_text(document)):
                assert document.id in index.lookup(word)

        for doc_ids in index.word_to_document_ids.values():
            assert doc_ids <= ids

    def test_title_and_summary_are_indexed(self):
        """Metadata text is searchable too."""
        index = build_index([make_document("7", "גוף", title="גניבה", summary="השבת אבדה")])
        assert index.lookup("גניבה") == {"7"}
        assert index.lookup("אבדה") == {"7"}

    def test_court_is_not_indexed(self):
        """Court names are matched through court conditions, not free text."""
        index = build_index([make_document("7", "גוף", court="בית משפט השלום")])
        assert index.lookup("השלום") == frozenset()
        assert index.lookup("גוף") == {"7"}

    def test_prefixed_words_index_their_stems(self, ox_corpus):
        """'הפרה' is found by 'פרה'."""
        index = build_index(ox_corpus)
        assert index.lookup("פרה") == {"1"}

    def test_total_words_counts_distinct_words_per_document(self, ox_corpus):
        """'חמור' twice in one ruling counts once."""
        index = build_index(ox_corpus)
        # ruling 1: שור שנגח את הפרה; ruling 2: חמור שנגח (title חמור)
        assert index.total_words == 4 + 2

    def test_rebuild_is_idempotent(self, ox_corpus):
        """Two builds over the same corpus produce the same postings."""
        first = build_index(ox_corpus)
        second = build_index(list(reversed(ox_corpus)))
        assert first.word_to_document_ids == second.word_to_document_ids
        assert first.document_summaries == second.document_summaries

    def test_stamped_with_schema_version(self, ox_corpus):
        assert build_index(ox_corpus).schema_version == SCHEMA_VERSION

    def test_empty_corpus(self):
        index = build_index([])
        assert index.document_count == 0
        assert index.unique_words == 0


class TestStaleness:
    """Test when an index is considered stale."""

    def test_fresh_after_build(self, engine):
        index = engine.maintainer.refresh().index
        assert engine.maintainer.stale_reason(index) is None

    def test_schema_mismatch(self, engine):
        index = dataclasses.replace(engine.maintainer.refresh().index, schema_version=1)
        assert "schema version" in engine.maintainer.stale_reason(index)

    def test_corpus_change(self, engine):
        index = engine.maintainer.refresh().index
        engine.store.replace_documents([make_document("9", "חדש")])
        assert engine.maintainer.is_stale(index)

    def test_document_set_mismatch(self, engine, ox_corpus):
        """With documents given, the id sets are compared."""
        index = engine.maintainer.refresh().index
        assert engine.maintainer.stale_reason(index, ox_corpus) is None
        assert "documents" in engine.maintainer.stale_reason(index, ox_corpus[:1])

    def test_age(self, engine):
        index = engine.maintainer.refresh().index
        engine.clock.advance(hours=25)
        assert "older" in engine.maintainer.stale_reason(index)

    def test_age_check_disabled(self, ox_corpus):
        engine = Engine(ox_corpus, max_age=None)
        index = engine.maintainer.refresh().index
        engine.clock.advance(days=365)
        assert engine.maintainer.stale_reason(index) is None

    def test_verify_raises_index_stale(self, engine):
        """verify() reports the reason on the exception."""
        index = dataclasses.replace(engine.maintainer.refresh().index, schema_version=1)
        with pytest.raises(IndexStale) as excinfo:
            engine.maintainer.verify(index)
        assert "schema version" in excinfo.value.reason


class TestIndexMaintainer:
    """Test refresh, persistence and fallback."""

    def test_builds_when_missing(self, engine):
        snapshot = engine.maintainer.refresh()
        assert snapshot.rebuilt
        assert snapshot.index.document_count == 2
        assert engine.repository.saves == 1

    def test_reuses_fresh_index(self, engine):
        first = engine.maintainer.refresh()
        second = engine.maintainer.refresh()
        assert not second.rebuilt
        assert second.index is first.index
        assert engine.repository.saves == 1

    def test_loads_persisted_index(self, ox_corpus):
        """A fresh persisted index is used without rebuilding."""
        store = InMemoryDocumentStore(ox_corpus)
        clock = FakeClock()
        persisted = build_index(ox_corpus, fingerprint=store.get_corpus_fingerprint(), now=clock())
        repository = InMemoryIndexRepository(persisted)
        maintainer = IndexMaintainer(store, repository, clock=clock)

        snapshot = maintainer.refresh()
        assert not snapshot.rebuilt
        assert snapshot.index is persisted
        assert repository.saves == 0

    def test_rebuilds_on_corpus_change(self, engine):
        engine.maintainer.refresh()
        engine.store.replace_documents([make_document("9", "שור חדש")])
        snapshot = engine.maintainer.refresh()
        assert snapshot.rebuilt
        assert snapshot.index.lookup("שור") == {"9"}

    def test_corpus_replaced_during_build_leaves_index_stale(self, ox_corpus):
        """Old contents are never stamped with the newer corpus fingerprint."""
        store = RacingStore(ox_corpus)
        maintainer = IndexMaintainer(store, InMemoryIndexRepository(), max_age=None)
        store.pending = [*ox_corpus, make_document("9", "גמל שנגח")]

        index = maintainer.ensure_fresh()
        assert "9" not in index.document_summaries
        assert maintainer.is_stale(index)

        assert "9" in maintainer.ensure_fresh().document_summaries

    def test_ensure_fresh_returns_same_index_when_fresh(self, engine):
        index = engine.maintainer.refresh().index
        assert engine.maintainer.ensure_fresh(index) is index

    def test_ensure_fresh_rebuilds_stale_index(self, engine):
        index = engine.maintainer.refresh().index
        engine.clock.advance(hours=48)
        rebuilt = engine.maintainer.ensure_fresh(index)
        assert rebuilt is not index
        assert rebuilt.last_updated == engine.clock()

    def test_forced_rebuild(self, engine):
        engine.maintainer.refresh()
        snapshot = engine.maintainer.rebuild()
        assert snapshot.rebuilt
        assert engine.repository.saves == 2

    def test_persistence_failure_keeps_index_in_memory(self, ox_corpus):
        """An index that cannot be saved is still served, with a warning."""
        maintainer = IndexMaintainer(InMemoryDocumentStore(ox_corpus), ReadOnlyRepository())
        snapshot = maintainer.refresh()
        assert snapshot.rebuilt
        assert "in memory" in snapshot.warning
        assert maintainer.current is snapshot.index

    def test_failed_rebuild_serves_last_good_index(self, ox_corpus):
        store = FlakyStore(ox_corpus)
        maintainer = IndexMaintainer(store, InMemoryIndexRepository())
        good = maintainer.refresh().index

        store.broken = True
        snapshot = maintainer.rebuild()
        assert snapshot.degraded
        assert snapshot.index is good
        assert "disk on fire" in snapshot.warning

    def test_unreadable_corpus_serves_last_good_index(self, ox_corpus):
        """Staleness cannot be checked: keep serving what we have."""
        store = FlakyStore(ox_corpus)
        maintainer = IndexMaintainer(store, InMemoryIndexRepository())
        good = maintainer.refresh().index

        store.broken = True
        snapshot = maintainer.refresh()
        assert snapshot.degraded
        assert snapshot.index is good

    def test_failed_rebuild_without_fallback_raises(self, ox_corpus):
        store = FlakyStore(ox_corpus)
        store.broken = True
        maintainer = IndexMaintainer(store, InMemoryIndexRepository())
        with pytest.raises(IndexBuildFailed):
            maintainer.refresh()

    def test_status(self, engine):
        status = engine.maintainer.status()
        assert not status.exists
        assert status.stale

        engine.maintainer.refresh()
        status = engine.maintainer.status()
        assert status.exists
        assert not status.stale
        assert status.document_count == 2
        assert status.schema_version == SCHEMA_VERSION
        assert status.last_updated == engine.clock()

    def test_status_reports_staleness_reason(self, engine):
        engine.maintainer.refresh()
        engine.clock.advance(hours=30)
        status = engine.maintainer.status()
        assert status.stale
        assert "older" in status.reason

    def test_clear(self, engine):
        engine.maintainer.refresh()
        engine.maintainer.clear()
        assert engine.maintainer.current is None
        assert engine.repository.load_index() is None
        # Next refresh builds again
        assert engine.maintainer.refresh().rebuilt

    def test_max_age_default(self, ox_corpus):
        maintainer = IndexMaintainer(InMemoryDocumentStore(ox_corpus), InMemoryIndexRepository())
        assert maintainer.max_age == timedelta(hours=24)
