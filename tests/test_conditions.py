"""
Unit tests for search conditions and filter rules
"""
import pytest

from psakdin_search.core import (
    Combinator,
    Field,
    FilterRules,
    MalformedQuery,
    Operator,
    SearchCondition,
    build_index,
)
from psakdin_search.core.conditions import MAX_RULE_DEPTH, words_within

from conftest import make_document


@pytest.fixture
def documents():
    return {d.id: d for d in [
        make_document("d1", "שור שנגח את הפרה", title="שור שנגח", court="בית הדין הרבני", year=2010),
        make_document("d2", "חמור שנגח חמור", title="חמור", court="בית משפט השלום", year=2015),
        make_document("d3", "פרה אדומה", title="פרה אדומה", court="בית הדין הרבני הגדול", year=2020),
    ]}


@pytest.fixture
def index(documents):
    return build_index(list(documents.values()))


def condition(field, operator, value):
    return SearchCondition(field=field, operator=operator, value=value)


class TestSearchConditionValidation:
    """Test validation at construction."""

    def test_coerces_field_and_operator(self):
        """Plain strings become enum members."""
        c = condition("title", "contains", "שור")
        assert c.field is Field.TITLE
        assert c.operator is Operator.CONTAINS

    def test_unknown_field(self):
        """Unknown fields are rejected."""
        with pytest.raises(MalformedQuery, match="Unknown field"):
            condition("judge", "contains", "x")

    def test_unknown_operator(self):
        """Unknown operators are rejected."""
        with pytest.raises(MalformedQuery, match="Unknown operator"):
            condition("title", "like", "x")

    def test_operator_must_fit_field(self):
        """A string operator is not valid on the year field."""
        with pytest.raises(MalformedQuery, match="not valid"):
            condition("year", "contains", "2010")

    def test_year_must_be_numeric(self):
        """Years must be numbers (booleans are not)."""
        with pytest.raises(MalformedQuery):
            condition("year", "equals", "last year")
        with pytest.raises(MalformedQuery):
            condition("year", "equals", True)

    def test_between_needs_ordered_pair(self):
        """between takes [from, to] with from <= to."""
        assert condition("year", "between", [2000, "2010"]).value == (2000, 2010)
        with pytest.raises(MalformedQuery, match="reversed"):
            condition("year", "between", [2010, 2000])
        with pytest.raises(MalformedQuery):
            condition("year", "between", 2010)

    def test_text_needs_searchable_words(self):
        """Punctuation alone is not a text condition."""
        with pytest.raises(MalformedQuery, match="No searchable words"):
            condition("text", "contains_all", "!!")

    def test_string_field_needs_value(self):
        """Blank string values are rejected."""
        with pytest.raises(MalformedQuery):
            condition("court", "equals", "  ")

    def test_malformed_query_is_value_error(self):
        """Callers catching ValueError also catch MalformedQuery."""
        with pytest.raises(ValueError):
            condition("year", "at_least", None)

    def test_from_dict_missing_keys(self):
        """Missing keys are reported by name."""
        with pytest.raises(MalformedQuery, match="value"):
            SearchCondition.from_dict({"field": "year", "operator": "equals"})


    def test_proximity_value(self):
        """Two words and a positive distance."""
        c = condition("text", "proximity", ["שור", "הפרה", 3])
        assert c.value == ("שור", "הפרה", 3)
        for bad in (["שור", "פרה"], ["שור", "פרה", 0], ["שור", "פרה", True], ["שור", "...", 3], "שור פרה"):
            with pytest.raises(MalformedQuery):
                condition("text", "proximity", bad)

    def test_proximity_is_text_only(self):
        with pytest.raises(MalformedQuery, match="not valid"):
            condition("title", "proximity", ["שור", "פרה", 3])


class TestSearchConditionSelect:
    """Test condition evaluation against an index."""

    def test_year_at_least(self, index):
        assert condition("year", "at_least", 2015).select(index) == {"d2", "d3"}

    def test_year_between(self, index):
        assert condition("year", "between", [2010, 2015]).select(index) == {"d1", "d2"}

    def test_court_contains(self, index):
        assert condition("court", "contains", "רבני").select(index) == {"d1", "d3"}

    def test_court_not_contains(self, index):
        assert condition("court", "not_contains", "רבני").select(index) == {"d2"}

    def test_court_equals_is_exact(self, index):
        """equals does not match a longer court name."""
        assert condition("court", "equals", "בית הדין הרבני").select(index) == {"d1"}

    def test_court_starts_with(self, index):
        assert condition("court", "starts_with", "בית הדין").select(index) == {"d1", "d3"}

    def test_string_match_ignores_final_letters(self, index):
        """Metadata matching uses the same normalization as the index."""
        assert condition("court", "contains", "הדין").select(index) == {"d1", "d3"}

    def test_text_contains_all(self, index):
        assert condition("text", "contains_all", "שור פרה").select(index) == {"d1"}

    def test_text_contains_any(self, index):
        assert condition("text", "contains_any", "שור פרה").select(index) == {"d1", "d3"}

    def test_text_not_contains(self, index):
        assert condition("text", "not_contains", "שור").select(index) == {"d2", "d3"}


    def test_title_ends_with(self, index):
        assert condition("title", "ends_with", "שנגח").select(index) == {"d1"}

    def test_court_ends_with(self, index):
        assert condition("court", "ends_with", "הגדול").select(index) == {"d3"}

    def test_text_starts_with(self, index):
        """Any indexed word with the prefix."""
        assert condition("text", "starts_with", "שנ").select(index) == {"d1", "d2"}

    def test_text_ends_with(self, index):
        assert condition("text", "ends_with", "דומה").select(index) == {"d3"}

    def test_proximity_without_loader_needs_both_words(self, index):
        assert condition("text", "proximity", ["שור", "פרה", 1]).select(index) == {"d1"}

    def test_proximity_with_loader_measures_distance(self, index, documents):
        """In d1 שור and הפרה are three words apart."""
        def load(ids):
            return {i: documents[i] for i in ids}

        assert condition("text", "proximity", ["שור", "פרה", 3]).select(index, load) == {"d1"}
        assert condition("text", "proximity", ["שור", "פרה", 2]).select(index, load) == set()


class TestWordsWithin:
    """Test word distance within one text."""

    def test_distance_is_inclusive(self):
        assert words_within("שור שנגח את הפרה", "שור", "פרה", 3)
        assert not words_within("שור שנגח את הפרה", "שור", "פרה", 2)

    def test_order_does_not_matter(self):
        assert words_within("שור שנגח את הפרה", "פרה", "שור", 3)

    def test_same_word_needs_two_occurrences(self):
        assert words_within("חמור שנגח חמור", "חמור", "חמור", 2)
        assert not words_within("חמור שנגח", "חמור", "חמור", 5)

    def test_missing_word(self):
        assert not words_within("שור שנגח", "שור", "פרה", 10)


class TestFilterRules:
    """Test rule groups."""

    def test_empty_rules_match_everything(self, index):
        """No conditions selects the whole index."""
        assert FilterRules().select(index) == {"d1", "d2", "d3"}
        assert FilterRules().is_empty()

    def test_nested_empty_groups_are_empty(self):
        """A group of empty groups is still empty."""
        rules = FilterRules(conditions=(FilterRules(), FilterRules(combinator="any")))
        assert rules.is_empty()

    def test_all_intersects(self, index):
        rules = FilterRules.from_dict({
            "combinator": "all",
            "conditions": [
                {"field": "year", "operator": "at_least", "value": 2015},
                {"field": "court", "operator": "contains", "value": "רבני"},
            ],
        })
        assert rules.select(index) == {"d3"}

    def test_any_unions(self, index):
        rules = FilterRules.from_dict({
            "combinator": "any",
            "conditions": [
                {"field": "year", "operator": "equals", "value": 2015},
                {"field": "title", "operator": "starts_with", "value": "פרה"},
            ],
        })
        assert rules.select(index) == {"d2", "d3"}

    def test_nested_groups(self, index):
        """Groups nest: d1 or (after 2012 and rabbinical)."""
        rules = FilterRules.from_dict({
            "combinator": "any",
            "conditions": [
                {"field": "title", "operator": "equals", "value": "שור שנגח"},
                {"combinator": "all", "conditions": [
                    {"field": "year", "operator": "at_least", "value": 2012},
                    {"field": "court", "operator": "contains", "value": "רבני"},
                ]},
            ],
        })
        assert rules.select(index) == {"d1", "d3"}

    def test_list_is_all_of(self):
        """A bare list of conditions reads as an all-of group."""
        rules = FilterRules.from_dict([{"field": "year", "operator": "at_most", "value": 2010}])
        assert rules.combinator is Combinator.ALL
        assert len(rules.conditions) == 1

    def test_bad_combinator(self):
        with pytest.raises(MalformedQuery, match="combinator"):
            FilterRules.from_dict({"combinator": "xor", "conditions": []})

    def test_conditions_must_be_list(self):
        with pytest.raises(MalformedQuery):
            FilterRules.from_dict({"conditions": "year > 2000"})

    def test_to_dict_parses_back(self):
        """Serialized rules parse to equal rules."""
        rules = FilterRules.from_dict({
            "combinator": "any",
            "conditions": [{"field": "year", "operator": "between", "value": [2000, 2010]}],
        })
        assert FilterRules.from_dict(rules.to_dict()) == rules

    def test_not_excludes(self, index):
        rules = FilterRules.from_dict({
            "combinator": "not",
            "conditions": [
                {"field": "year", "operator": "at_least", "value": 2015},
            ],
        })
        assert rules.combinator is Combinator.NOT
        assert rules.select(index) == {"d1"}

    def test_not_inside_all(self, index):
        """Rabbinical courts, but not the great court."""
        rules = FilterRules.from_dict({
            "conditions": [
                {"field": "court", "operator": "contains", "value": "רבני"},
                {"combinator": "not", "conditions": [
                    {"field": "court", "operator": "ends_with", "value": "הגדול"},
                ]},
            ],
        })
        assert rules.select(index) == {"d1"}

    def test_unknown_keys_are_rejected(self):
        """A misspelt key is an error, not an empty filter."""
        with pytest.raises(MalformedQuery, match="conditons"):
            FilterRules.from_dict({"combinator": "all", "conditons": []})
        with pytest.raises(MalformedQuery, match="minWords"):
            FilterRules.from_dict({"minWords": 3})

    def test_unknown_keys_in_nested_group(self):
        with pytest.raises(MalformedQuery, match="minWords"):
            FilterRules.from_dict({"conditions": [{"conditions": [], "minWords": 3}]})

    def test_nesting_depth_limit(self):
        rules = {"conditions": [{"field": "year", "operator": "at_least", "value": 2015}]}
        for _ in range(MAX_RULE_DEPTH - 1):
            rules = {"combinator": "all", "conditions": [rules]}
        assert FilterRules.from_dict(rules).conditions

        with pytest.raises(MalformedQuery, match="nested deeper"):
            FilterRules.from_dict({"combinator": "all", "conditions": [rules]})

    def test_proximity_to_dict_parses_back(self):
        rules = FilterRules.from_dict({
            "combinator": "not",
            "conditions": [{"field": "text", "operator": "proximity", "value": ["שור", "פרה", 4]}],
        })
        assert rules.to_dict()["conditions"][0]["value"] == ["שור", "פרה", 4]
        assert FilterRules.from_dict(rules.to_dict()) == rules
