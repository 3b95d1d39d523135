"""
Text normalization

One set of rules shared by index building, query parsing and line
highlighting. Any change here changes what the index contains, so bump
SCHEMA_VERSION in indexing.py together with it.
"""
import re

# Hebrew points and cantillation marks
NIKUD_FIRST = 0x0591
NIKUD_LAST = 0x05C7

# maqaf, paseq, sof pasuq: marks in the nikud block that separate words
SEPARATOR_MARKS = frozenset("\u05be\u05c0\u05c3")

SOFIT_LETTERS = {"ך": "כ", "ם": "מ", "ן": "נ", "ף": "פ", "ץ": "צ"}

# One-letter particles that attach to the front of a Hebrew word (משה וכלב)
PREFIX_LETTERS = frozenset("והבכלמש")
MAX_PREFIX_LETTERS = 3

MIN_WORD_LENGTH = 2

_TOKEN_RE = re.compile(r"[^\W_]+")


def fold_char(char: str) -> str:
    """Normalize a single character (may return "" or more than one char)"""
    if char in SEPARATOR_MARKS:
        return " "
    if NIKUD_FIRST <= ord(char) <= NIKUD_LAST:
        return ""
    lowered = char.lower()
    return SOFIT_LETTERS.get(lowered, lowered)


def normalize(text: str) -> str:
    """Lower-case, strip nikud and fold final letters"""
    return "".join(fold_char(c) for c in text)


def normalize_with_offsets(text: str) -> tuple[str, list[int]]:
    """
    Normalize text and keep, for every normalized character, the index of
    the original character it came from.
    """
    chars = []
    offsets = []
    for i, char in enumerate(text):
        for folded in fold_char(char):
            chars.append(folded)
            offsets.append(i)
    return "".join(chars), offsets


def iter_token_spans(normalized: str):
    """Yield (start, end, token) for every word in already-normalized text"""
    for match in _TOKEN_RE.finditer(normalized):
        token = match.group()
        if len(token) >= MIN_WORD_LENGTH:
            yield match.start(), match.end(), token


def tokenize(text: str) -> list[str]:
    """Normalized words of text, in order, duplicates kept"""
    return [token for _, _, token in iter_token_spans(normalize(text))]


def query_words(text: str | None) -> list[str]:
    """Distinct normalized words of a free-text query, first occurrence order"""
    if not text:
        return []
    return list(dict.fromkeys(tokenize(text)))


def prefix_stems(token: str) -> list[str]:
    """
    Stems of a normalized token with leading prefix particles removed.

    "והפרה" -> ["הפרה", "פרה"]. Stems shorter than MIN_WORD_LENGTH are not
    produced. The token itself is not included.
    """
    stems = []
    for i in range(1, MAX_PREFIX_LETTERS + 1):
        if len(token) - i < MIN_WORD_LENGTH or token[i - 1] not in PREFIX_LETTERS:
            break
        stems.append(token[i:])
    return stems


def index_terms(token: str) -> list[str]:
    """Every term a document token is indexed under"""
    return [token, *prefix_stems(token)]
