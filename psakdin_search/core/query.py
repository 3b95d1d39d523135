"""
Query evaluation

Turns free text and filter rules into an ordered list of scored candidate
document ids. Pure reads over one index snapshot.
"""
from dataclasses import dataclass
from functools import reduce
from typing import Mapping, Optional, Sequence

from .conditions import DocumentLoader, FilterRules
from .domain import Document, InvertedIndex
from .indexing import indexed_text
from .text import index_terms, query_words, tokenize


@dataclass(frozen=True)
class ScoredCandidate:
    """A document that satisfied the query, with its raw score"""
    document_id: str
    score: float
    year: int


def _rank_key(candidate: ScoredCandidate):
    # Highest score first, then newest, then id for determinism
    return (-candidate.score, -candidate.year, candidate.document_id)


class QueryEvaluator:
    """Free text (AND over words) intersected with filter rules"""

    def candidates(
        self,
        index: InvertedIndex,
        words: Sequence[str],
        rules: Optional[FilterRules] = None,
        load: Optional[DocumentLoader] = None,
    ) -> set[str]:
        """
        Candidate ids for the query.

        No words and no (non-empty) rules means no query: the result is
        empty, never the whole corpus. load fetches ruling bodies for
        conditions that read full text.
        """
        has_rules = rules is not None and not rules.is_empty()
        if not words and not has_rules:
            return set()

        selected = []
        if words:
            selected.append(reduce(frozenset.intersection, (index.lookup(w) for w in words)))
        if has_rules:
            selected.append(frozenset(rules.select(index, load)))
        return set(reduce(frozenset.intersection, selected))

    def rank(
        self,
        index: InvertedIndex,
        candidate_ids: set[str],
        words: Sequence[str],
        documents: Optional[Mapping[str, Document]] = None,
    ) -> list[ScoredCandidate]:
        """
        Score and order candidates.

        Score is the number of distinct query words in the document. When the
        document bodies are supplied it is weighted by how often those words
        occur: occurrences / (occurrences + 1), always below one, so word
        overlap dominates.
        """
        wanted = set(words)
        ranked = []
        for doc_id in candidate_ids:
            summary = index.document_summaries.get(doc_id)
            if summary is None:
                continue

            score = float(sum(1 for w in words if doc_id in index.lookup(w)))
            document = documents.get(doc_id) if documents else None
            if document is not None and wanted:
                occurrences = sum(
                    1 for token in tokenize(indexed_text(document))
                    if wanted.intersection(index_terms(token))
                )
                score += occurrences / (occurrences + 1)

            ranked.append(ScoredCandidate(document_id=doc_id, score=score, year=summary.year))

        ranked.sort(key=_rank_key)
        return ranked

    def evaluate(
        self,
        index: InvertedIndex,
        free_text: Optional[str] = None,
        rules: Optional[FilterRules] = None,
        documents: Optional[Mapping[str, Document]] = None,
    ) -> list[ScoredCandidate]:
        words = query_words(free_text)
        load = None
        if documents is not None:
            def load(ids):
                return {i: documents[i] for i in ids if i in documents}
        return self.rank(index, self.candidates(index, words, rules, load), words, documents)

    def list_all(self, index: InvertedIndex) -> list[ScoredCandidate]:
        """Every indexed document, unscored, newest first"""
        everything = [
            ScoredCandidate(document_id=doc_id, score=0.0, year=summary.year)
            for doc_id, summary in index.document_summaries.items()
        ]
        everything.sort(key=_rank_key)
        return everything
