"""
Result assembly

Merges ranked candidates with their extracted match lines into the
SearchResult list the delivery layer renders.
"""
from typing import Mapping, Optional, Sequence

from .context import ContextExtractor
from .domain import Document, InvertedIndex, SearchResult
from .query import ScoredCandidate


class ResultAssembler:
    """Keeps the evaluator's order; adds titles and match lines"""

    def __init__(self, extractor: ContextExtractor):
        self.extractor = extractor

    def assemble(
        self,
        ranked: Sequence[ScoredCandidate],
        index: InvertedIndex,
        documents: Mapping[str, Document],
        words: Sequence[str],
        limit: Optional[int] = None,
    ) -> list[SearchResult]:
        if limit is not None:
            ranked = ranked[:limit]

        results = []
        for candidate in ranked:
            document = documents.get(candidate.document_id)
            if document is not None:
                title, court, year = document.title, document.court, document.year
                matches = self.extractor.extract_matches(document, words)
            else:
                # Body unavailable: fall back to the summary kept in the index
                summary = index.document_summaries[candidate.document_id]
                title, court, year = summary.title, summary.court, summary.year
                matches = ()

            results.append(SearchResult(
                id=candidate.document_id,
                title=title,
                court=court,
                year=year,
                score=candidate.score,
                matches=matches,
            ))
        return results
