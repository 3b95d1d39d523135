"""
Unit tests for query evaluation and ranking
"""
import pytest

from psakdin_search.core import FilterRules, build_index
from psakdin_search.core.query import QueryEvaluator
from psakdin_search.core.text import normalize

from conftest import make_document


@pytest.fixture
def evaluator():
    return QueryEvaluator()


class TestCandidates:
    """Test candidate selection."""

    def test_all_words_must_match(self, evaluator, ox_corpus):
        """Words are AND-ed: 'חמור' alone has no 'פרה'."""
        index = build_index(ox_corpus)
        assert evaluator.candidates(index, ["שור", "פרה"]) == {"1"}
        assert evaluator.candidates(index, ["שנגח"]) == {"1", "2"}

    def test_unknown_word_matches_nothing(self, evaluator, ox_corpus):
        index = build_index(ox_corpus)
        assert evaluator.candidates(index, ["שנגח", "גמל"]) == set()

    def test_no_query_is_not_everything(self, evaluator, ox_corpus):
        """No words and no rules select nothing, never the corpus."""
        index = build_index(ox_corpus)
        assert evaluator.candidates(index, []) == set()
        assert evaluator.candidates(index, [], FilterRules()) == set()

    def test_rules_alone(self, evaluator, ox_corpus):
        index = build_index(ox_corpus)
        rules = FilterRules.from_dict([{"field": "year", "operator": "at_least", "value": 2012}])
        assert evaluator.candidates(index, [], rules) == {"2"}

    def test_words_and_rules_intersect(self, evaluator, ox_corpus):
        index = build_index(ox_corpus)
        rules = FilterRules.from_dict([{"field": "court", "operator": "contains", "value": "רבני"}])
        assert evaluator.candidates(index, ["שנגח"], rules) == {"1"}


class TestRanking:
    """Test scoring and ordering."""

    def test_ties_break_by_year_then_id(self, evaluator):
        """Equal scores: newest first, then id."""
        index = build_index([
            make_document("a", "שור", year=2010),
            make_document("c", "שור", year=2020),
            make_document("b", "שור", year=2020),
        ])
        ranked = evaluator.evaluate(index, "שור")
        assert [c.document_id for c in ranked] == ["b", "c", "a"]

    def test_score_counts_matched_words(self, evaluator, ox_corpus):
        index = build_index(ox_corpus)
        ranked = evaluator.evaluate(index, "שור פרה")
        assert ranked[0].score == 2.0

    def test_occurrences_weight_when_bodies_given(self, evaluator):
        """More occurrences rank higher, but stay below one extra word."""
        few = make_document("few", "שור", year=2020)
        many = make_document("many", "שור שור שור", year=2000)
        index = build_index([few, many])

        ranked = evaluator.evaluate(index, "שור", documents={"few": few, "many": many})

        assert [c.document_id for c in ranked] == ["many", "few"]
        assert ranked[0].score == pytest.approx(1 + 3 / 4)
        assert ranked[1].score == pytest.approx(1 + 1 / 2)

    def test_deterministic(self, evaluator, ox_corpus):
        """Same index, same query, same order."""
        index = build_index(ox_corpus)
        assert evaluator.evaluate(index, "שנגח") == evaluator.evaluate(index, "שנגח")

    def test_list_all_newest_first(self, evaluator, ox_corpus):
        index = build_index(ox_corpus)
        listed = evaluator.list_all(index)
        assert [c.document_id for c in listed] == ["2", "1"]
        assert all(c.score == 0.0 for c in listed)


class TestSuggest:
    """Test completing a prefix from the index vocabulary."""

    @pytest.fixture
    def index(self):
        return build_index([
            make_document("a", "שלום שלט"),
            make_document("b", "שלום שלב"),
            make_document("c", "שלב"),
        ])

    def test_most_widespread_first_then_alphabetical(self, index):
        assert index.suggest("של") == ["שלב", normalize("שלום"), "שלט"]

    def test_limit(self, index):
        assert index.suggest("של", 2) == ["שלב", normalize("שלום")]
        assert index.suggest("של", 0) == []

    def test_final_letters_and_nikud_are_folded(self, index):
        assert index.suggest("שָׁלום") == [normalize("שלום")]

    def test_short_prefix_suggests_nothing(self, index):
        assert index.suggest("ש") == []
        assert index.suggest("  ") == []

    def test_no_match(self, index):
        assert index.suggest("גמ") == []
