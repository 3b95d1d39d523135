"""
Context extraction and highlighting

Finds the lines of a ruling that contain query words (under the same
normalization as the index), with one line of context on each side, and
renders the matched line with every occurrence wrapped in <mark> tags.
"""
import html
from typing import Optional, Sequence

from .domain import Document, MatchRecord
from .text import fold_char, iter_token_spans, normalize_with_offsets, prefix_stems

HIGHLIGHT_OPEN = "<mark>"
HIGHLIGHT_CLOSE = "</mark>"


def split_lines(text: str) -> list[str]:
    """Natural lines of text; text without line breaks is a single line"""
    return text.splitlines()


def _token_match(token: str, words: Sequence[str]) -> Optional[tuple[int, int]]:
    """(offset, length) of the longest query word matching token, if any"""
    for word in words:
        if token == word:
            return 0, len(token)
        if word in prefix_stems(token):
            return len(token) - len(word), len(word)
    return None


def match_spans(line: str, words: Sequence[str]) -> list[tuple[int, int]]:
    """
    Character spans of line (original, un-normalized positions) covering
    query word occurrences. Spans are ordered and never overlap.
    """
    if not words:
        return []
    longest_first = sorted(set(words), key=lambda w: (-len(w), w))
    normalized, offsets = normalize_with_offsets(line)

    spans = []
    for start, _, token in iter_token_spans(normalized):
        found = _token_match(token, longest_first)
        if found is None:
            continue
        offset, length = found
        span_start = offsets[start + offset]
        span_end = offsets[start + offset + length - 1] + 1
        # Keep trailing nikud of the last letter inside the span
        while span_end < len(line) and fold_char(line[span_end]) == "":
            span_end += 1
        spans.append((span_start, span_end))
    return spans


def highlight(line: str, words: Sequence[str]) -> str:
    """HTML rendering of line with query words wrapped in <mark>"""
    parts = []
    position = 0
    for start, end in match_spans(line, words):
        parts.append(html.escape(line[position:start], quote=False))
        parts.append(HIGHLIGHT_OPEN + html.escape(line[start:end], quote=False) + HIGHLIGHT_CLOSE)
        position = end
    parts.append(html.escape(line[position:], quote=False))
    return "".join(parts)


class ContextExtractor:
    """Builds match records for one document"""

    def __init__(self, max_matches: Optional[int] = None):
        self.max_matches = max_matches

    def extract_matches(self, document: Document, words: Sequence[str]) -> tuple[MatchRecord, ...]:
        if not words:
            return ()

        lines = split_lines(document.full_text)
        records = []
        for i, line in enumerate(lines):
            if not match_spans(line, words):
                continue
            records.append(MatchRecord(
                line_before=lines[i - 1] if i > 0 else "",
                matched_line=line,
                line_after=lines[i + 1] if i + 1 < len(lines) else "",
                highlighted_line=highlight(line, words),
                line_number=i + 1,
            ))
            if self.max_matches is not None and len(records) >= self.max_matches:
                break
        return tuple(records)
