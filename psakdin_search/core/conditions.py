"""
Search conditions and filter rules

A SearchCondition is one validated predicate (field, operator, value). The
operator set is closed per field type and checked at construction, so a bad
condition surfaces as MalformedQuery at the boundary instead of failing
inside evaluation. FilterRules combine conditions (and nested rules) with
all-of / any-of / none-of.
"""
from bisect import bisect_left
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .domain import Document, DocumentSummary, InvertedIndex
from .errors import MalformedQuery
from .text import index_terms, normalize, query_words, tokenize

# Fetches ruling bodies by id; conditions that read full text need one
DocumentLoader = Callable[[Iterable[str]], Mapping[str, Document]]

# Deepest nesting of rule groups accepted from plain data
MAX_RULE_DEPTH = 32

RULE_KEYS = frozenset({"combinator", "conditions"})


class Field(str, Enum):
    TEXT = "text"
    TITLE = "title"
    COURT = "court"
    SUMMARY = "summary"
    YEAR = "year"


class Operator(str, Enum):
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    EQUALS = "equals"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    AT_LEAST = "at_least"
    AT_MOST = "at_most"
    BETWEEN = "between"
    CONTAINS_ALL = "contains_all"
    CONTAINS_ANY = "contains_any"
    PROXIMITY = "proximity"


class Combinator(str, Enum):
    ALL = "all"
    ANY = "any"
    NOT = "not"


_STRING_OPERATORS = frozenset({
    Operator.CONTAINS, Operator.NOT_CONTAINS, Operator.EQUALS,
    Operator.STARTS_WITH, Operator.ENDS_WITH,
})
_YEAR_OPERATORS = frozenset({
    Operator.EQUALS, Operator.AT_LEAST, Operator.AT_MOST, Operator.BETWEEN,
})
_TEXT_OPERATORS = frozenset({
    Operator.CONTAINS_ALL, Operator.CONTAINS_ANY, Operator.NOT_CONTAINS,
    Operator.STARTS_WITH, Operator.ENDS_WITH, Operator.PROXIMITY,
})

ALLOWED_OPERATORS = {
    Field.TEXT: _TEXT_OPERATORS,
    Field.TITLE: _STRING_OPERATORS,
    Field.COURT: _STRING_OPERATORS,
    Field.SUMMARY: _STRING_OPERATORS,
    Field.YEAR: _YEAR_OPERATORS,
}


def _to_year(value: Any) -> int:
    if isinstance(value, bool):
        raise MalformedQuery(f"Year must be a number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedQuery(f"Year must be a number, got {value!r}") from None


def _one_word(value: Any) -> str:
    words = query_words(value) if isinstance(value, str) else []
    if not words:
        raise MalformedQuery(f"No searchable word in {value!r}")
    return words[0]


def _proximity_value(value: Any) -> tuple[str, str, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise MalformedQuery(f"'proximity' needs [word, word, distance], got {value!r}")
    first, second, distance = value
    if isinstance(distance, bool) or not isinstance(distance, int) or distance < 1:
        raise MalformedQuery(f"Proximity distance must be a positive whole number, got {distance!r}")
    return (_one_word(first), _one_word(second), distance)


def _positions(tokens: Sequence[str], word: str) -> list[int]:
    return [i for i, token in enumerate(tokens) if word in index_terms(token)]


def words_within(text: str, first: str, second: str, distance: int) -> bool:
    """True when first and second occur at most distance words apart in text"""
    tokens = tokenize(text)
    second_positions = _positions(tokens, second)
    if not second_positions:
        return False
    for i in _positions(tokens, first):
        k = bisect_left(second_positions, i - distance)
        while k < len(second_positions) and second_positions[k] <= i + distance:
            if second_positions[k] != i:
                return True
            k += 1
    return False


@dataclass(frozen=True)
class SearchCondition:
    """One atomic predicate over a ruling"""
    field: Field
    operator: Operator
    value: Any

    def __post_init__(self):
        try:
            field = Field(self.field)
        except ValueError:
            raise MalformedQuery(f"Unknown field: {self.field!r}") from None
        try:
            operator = Operator(self.operator)
        except ValueError:
            raise MalformedQuery(f"Unknown operator: {self.operator!r}") from None

        if operator not in ALLOWED_OPERATORS[field]:
            raise MalformedQuery(
                f"Operator '{operator.value}' is not valid for field '{field.value}'"
            )

        object.__setattr__(self, "field", field)
        object.__setattr__(self, "operator", operator)
        object.__setattr__(self, "value", self._validated_value(field, operator, self.value))

    @staticmethod
    def _validated_value(field: Field, operator: Operator, value: Any) -> Any:
        if field is Field.YEAR:
            if operator is Operator.BETWEEN:
                if not isinstance(value, (list, tuple)) or len(value) != 2:
                    raise MalformedQuery(f"'between' needs [from, to], got {value!r}")
                low, high = _to_year(value[0]), _to_year(value[1])
                if low > high:
                    raise MalformedQuery(f"Year range is reversed: {low} > {high}")
                return (low, high)
            return _to_year(value)

        if operator is Operator.PROXIMITY:
            return _proximity_value(value)

        if not isinstance(value, str) or not value.strip():
            raise MalformedQuery(f"Field '{field.value}' needs a non-empty text value")
        if field is Field.TEXT and not query_words(value):
            raise MalformedQuery(f"No searchable words in {value!r}")
        return value

    @classmethod
    def from_dict(cls, data: Any) -> "SearchCondition":
        if not isinstance(data, dict):
            raise MalformedQuery(f"Condition must be an object, got {type(data).__name__}")
        missing = [key for key in ("field", "operator", "value") if key not in data]
        if missing:
            raise MalformedQuery(f"Condition is missing: {', '.join(missing)}")
        return cls(field=data["field"], operator=data["operator"], value=data["value"])

    def to_dict(self) -> dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"field": self.field.value, "operator": self.operator.value, "value": value}

    def select(self, index: InvertedIndex, load: Optional[DocumentLoader] = None) -> set[str]:
        """
        Ids of indexed documents satisfying this condition.

        Proximity reads ruling bodies through load; without one it narrows
        only to documents holding both words.
        """
        if self.field is Field.TEXT:
            if self.operator is Operator.PROXIMITY:
                return self._select_near(index, load)
            return self._select_words(index)
        return {
            doc_id
            for doc_id, summary in index.document_summaries.items()
            if self.matches_summary(summary)
        }

    def _select_words(self, index: InvertedIndex) -> set[str]:
        if self.operator in (Operator.STARTS_WITH, Operator.ENDS_WITH):
            affix = _one_word(self.value)
            if self.operator is Operator.STARTS_WITH:
                terms = (t for t in index.word_to_document_ids if t.startswith(affix))
            else:
                terms = (t for t in index.word_to_document_ids if t.endswith(affix))
            return set().union(*(index.lookup(t) for t in terms))

        id_sets = [index.lookup(word) for word in query_words(self.value)]
        if self.operator is Operator.CONTAINS_ALL:
            return set(reduce(frozenset.intersection, id_sets))
        present = set().union(*id_sets)
        if self.operator is Operator.CONTAINS_ANY:
            return present
        return set(index.document_summaries) - present

    def _select_near(self, index: InvertedIndex, load: Optional[DocumentLoader]) -> set[str]:
        first, second, distance = self.value
        both = set(index.lookup(first) & index.lookup(second))
        if load is None or not both:
            return both
        return {
            doc_id
            for doc_id, document in load(both).items()
            if any(
                words_within(part, first, second, distance)
                for part in (document.title, document.summary, document.full_text)
            )
        }

    def matches_summary(self, summary: DocumentSummary) -> bool:
        if self.field is Field.YEAR:
            year = summary.year
            if self.operator is Operator.EQUALS:
                return year == self.value
            if self.operator is Operator.AT_LEAST:
                return year >= self.value
            if self.operator is Operator.AT_MOST:
                return year <= self.value
            low, high = self.value
            return low <= year <= high

        haystack = normalize(getattr(summary, self.field.value)).strip()
        needle = normalize(self.value).strip()
        if self.operator is Operator.CONTAINS:
            return needle in haystack
        if self.operator is Operator.NOT_CONTAINS:
            return needle not in haystack
        if self.operator is Operator.EQUALS:
            return haystack == needle
        if self.operator is Operator.ENDS_WITH:
            return haystack.endswith(needle)
        return haystack.startswith(needle)


@dataclass(frozen=True)
class FilterRules:
    """
    Boolean combination of conditions; empty rules match every document.

    "not" matches the documents that satisfy none of its conditions.
    """
    combinator: Combinator = Combinator.ALL
    conditions: tuple[Union[SearchCondition, "FilterRules"], ...] = ()

    def __post_init__(self):
        try:
            object.__setattr__(self, "combinator", Combinator(self.combinator))
        except ValueError:
            raise MalformedQuery(f"Unknown combinator: {self.combinator!r}") from None
        object.__setattr__(self, "conditions", tuple(self.conditions))

    def is_empty(self) -> bool:
        return all(
            isinstance(c, FilterRules) and c.is_empty() for c in self.conditions
        )

    def select(self, index: InvertedIndex, load: Optional[DocumentLoader] = None) -> set[str]:
        """Ids of indexed documents satisfying the rules"""
        universe = set(index.document_summaries)
        active = [
            c for c in self.conditions
            if not (isinstance(c, FilterRules) and c.is_empty())
        ]
        if not active:
            return universe

        selected = [c.select(index, load) for c in active]
        if self.combinator is Combinator.ALL:
            return reduce(set.intersection, selected, universe)
        if self.combinator is Combinator.ANY:
            return set().union(*selected)
        return universe - set().union(*selected)

    @classmethod
    def from_dict(cls, data: Any, _depth: int = 1) -> "FilterRules":
        """
        Parse rules from plain data.

        Accepts {"combinator": "all"|"any"|"not", "conditions": [...]}
        (nested groups allowed, up to MAX_RULE_DEPTH) or a bare list of
        conditions, read as all-of. Any other key is an error.
        """
        if _depth > MAX_RULE_DEPTH:
            raise MalformedQuery(f"Filter rules are nested deeper than {MAX_RULE_DEPTH} levels")
        if data is None:
            return cls()
        if isinstance(data, list):
            data = {"combinator": Combinator.ALL.value, "conditions": data}
        if not isinstance(data, dict):
            raise MalformedQuery(f"Filter rules must be an object, got {type(data).__name__}")

        unknown = sorted(str(key) for key in data if key not in RULE_KEYS)
        if unknown:
            raise MalformedQuery(f"Unknown filter rule keys: {', '.join(unknown)}")

        raw_conditions = data.get("conditions", [])
        if not isinstance(raw_conditions, list):
            raise MalformedQuery("'conditions' must be a list")

        conditions = []
        for item in raw_conditions:
            if isinstance(item, list) or (isinstance(item, dict) and RULE_KEYS & item.keys()):
                conditions.append(cls.from_dict(item, _depth + 1))
            else:
                conditions.append(SearchCondition.from_dict(item))

        return cls(
            combinator=data.get("combinator", Combinator.ALL.value),
            conditions=tuple(conditions),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "combinator": self.combinator.value,
            "conditions": [c.to_dict() for c in self.conditions],
        }
