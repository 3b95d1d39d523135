"""
BBG Lite formatters for MCP tool results

Format handler results as Bloomberg Terminal-inspired text output.
Used by both CLI and MCP adapters for consistent presentation.
"""

from typing import Any


def _error(result: dict[str, Any]) -> str:
    return f"ERROR: {result.get('error', 'Unknown error')}"


def _warning_lines(result: dict[str, Any]) -> list[str]:
    warnings = list(result.get('warnings') or [])
    if result.get('warning'):
        warnings.append(result['warning'])
    return [f"WARNING: {w}" for w in warnings]


def _ruling_header(ruling: dict[str, Any]) -> str:
    year = ruling.get('year') or "----"
    return f"{ruling['id']} | {year} | {ruling.get('court') or 'N/A'}"


def format_search_rulings(result: dict[str, Any]) -> str:
    """Format search_rulings result as BBG Lite text.

    Example output:
        SEARCH "שור שנגח" | 2 rulings

        ──────────────────────────────────────────────────────────────────────
        1. p-17 | 2019 | בית הדין הרבני הגדול         SCORE 2.67
           שור שנגח את הפרה
             12: ...line before...
           > 13: <mark>שור</mark> <mark>שנגח</mark> את הפרה
             14: ...line after...

        Try: share_search(text, filter_rules) | get_source_text("Bava_Kamma.2b")
    """
    if not result.get("success"):
        lines = [_error(result)]
        lines.extend(_warning_lines(result))
        return "\n".join(lines)

    query = result.get('query') or ""
    results = result['results']
    lines = []

    # Header
    label = f'SEARCH "{query}"' if query else "SEARCH (filters only)"
    if result.get('degraded'):
        label += " | DEGRADED"
    lines.append(f"{label} | {result['count']} rulings")
    lines.extend(_warning_lines(result))
    lines.append("")

    if not results:
        lines.append("NO MATCHES FOUND")
        lines.append("")
        lines.append("Try: Fewer words | Different spelling | list_rulings()")
        return "\n".join(lines)

    lines.append("─" * 70)
    for i, ruling in enumerate(results, 1):
        if i > 1:
            lines.append("")
        lines.append(f"{i}. {_ruling_header(ruling)}    SCORE {ruling['score']:.2f}")
        lines.append(f"   {ruling['title']}")

        for match in ruling.get('matches', []):
            line_num = match['line_number']
            if match['line_before']:
                lines.append(f"     {line_num - 1:>4}: {match['line_before']}")
            lines.append(f"   > {line_num:>4}: {match['highlighted_line']}")
            if match['line_after']:
                lines.append(f"     {line_num + 1:>4}: {match['line_after']}")

    lines.append("")
    if result['count'] >= result.get('limit', result['count'] + 1):
        lines.append(f"More: search_rulings(..., limit={result['limit'] * 2})")
    else:
        lines.append("Try: share_search(text, filter_rules) | search_rulings(..., filter_rules={...})")

    return "\n".join(lines)


def format_list_rulings(result: dict[str, Any]) -> str:
    """Format list_rulings result as BBG Lite text.

    Example output:
        INDEXED RULINGS (newest first)
        ──────────────────────────────────────────────────────────────────────
        ID          YEAR  COURT                     TITLE
        ──────────────────────────────────────────────────────────────────────
        p-17        2019  בית הדין הרבני הגדול       שור שנגח את הפרה
    """
    if not result.get("success"):
        return _error(result)

    lines = []
    lines.append("INDEXED RULINGS (newest first)")
    lines.extend(_warning_lines(result))
    lines.append("─" * 70)

    if result['count'] == 0:
        lines.append("")
        lines.append("No rulings indexed yet")
        lines.append("")
        lines.append("Try: psakdin-search import corpus.json")
        return "\n".join(lines)

    lines.append(f"{'ID':<10}  {'YEAR':<4}  {'COURT':<24}  TITLE")
    lines.append("─" * 70)
    for ruling in result['rulings']:
        court = ruling.get('court') or 'N/A'
        court = (court[:21] + '...') if len(court) > 24 else court
        year = str(ruling.get('year') or "----")
        lines.append(f"{ruling['id'][:10]:<10}  {year:<4}  {court:<24}  {ruling['title']}")

    lines.append("")
    lines.append(f"Showing {result['count']} rulings")
    lines.append('Try: search_rulings("WORDS") | index_status()')

    return "\n".join(lines)


def format_index_status(result: dict[str, Any]) -> str:
    """Format index_status result as BBG Lite text.

    Example output:
        SEARCH INDEX | FRESH

        DOCUMENTS:   1,204
        WORDS:       38,112 unique (912,330 total)
        SCHEMA:      v2
        BUILT:       2026-03-01T10:15:00+00:00

        DATA: /home/user/.psakdin-search
    """
    if not result.get("success"):
        return _error(result)

    lines = []
    if not result['exists']:
        state = "MISSING"
    elif result['stale']:
        state = "STALE"
    else:
        state = "FRESH"
    lines.append(f"SEARCH INDEX | {state}")
    if result.get('reason'):
        lines.append(f"REASON: {result['reason']}")
    lines.append("")

    if result['exists']:
        lines.append(f"DOCUMENTS:   {result['document_count']:,}")
        lines.append(f"WORDS:       {result['unique_words']:,} unique ({result['total_words']:,} total)")
        lines.append(f"SCHEMA:      v{result['schema_version']}")
        lines.append(f"BUILT:       {result['last_updated']}")
        lines.append("")

    lines.append(f"DATA: {result.get('data_dir', 'Unknown')}")
    if state != "FRESH":
        lines.append("Try: rebuild_index()")

    return "\n".join(lines)


def format_rebuild_index(result: dict[str, Any]) -> str:
    """Format rebuild_index (and import) result as BBG Lite text.

    Example output:
        SEARCH INDEX | REBUILT

        DOCUMENTS:   1,204
        WORDS:       38,112 unique (912,330 total)
        BUILT:       2026-03-01T10:15:00+00:00
    """
    if not result.get("success"):
        return _error(result)

    lines = []
    if result['degraded']:
        state = "DEGRADED (serving last good index)"
    elif result['rebuilt']:
        state = "REBUILT"
    else:
        state = "UP TO DATE"
    lines.append(f"SEARCH INDEX | {state}")
    lines.extend(_warning_lines(result))
    lines.append("")

    if 'imported' in result:
        lines.append(f"IMPORTED:    {result['imported']:,} rulings from {result['path']}")
    lines.append(f"DOCUMENTS:   {result['document_count']:,}")
    lines.append(f"WORDS:       {result['unique_words']:,} unique ({result['total_words']:,} total)")
    lines.append(f"BUILT:       {result['last_updated']}")

    return "\n".join(lines)


def format_suggest_words(result: dict[str, Any]) -> str:
    """Format suggest_words result as BBG Lite text."""
    if not result.get("success"):
        return _error(result)

    suggestions = result["suggestions"]
    lines = [f"SUGGEST \"{result['prefix']}\" | {len(suggestions)} words", ""]
    if not suggestions:
        lines.append("NO INDEXED WORDS START WITH THIS PREFIX")
        return "\n".join(lines)

    width = max(len(s["word"]) for s in suggestions)
    for s in suggestions:
        lines.append(f"  {s['word']:<{width}}  {s['rulings']:>6,} rulings")
    return "\n".join(lines)


def format_share_search(result: dict[str, Any]) -> str:
    """Format share_search result as BBG Lite text."""
    if not result.get("success"):
        return _error(result)

    lines = ["SHARE LINK", "─" * 70, result['url']]
    lines.extend(_warning_lines(result))
    lines.append("")
    lines.append('Try: search_rulings(shared="URL")')
    return "\n".join(lines)


def _flatten(text: Any) -> list[str]:
    """Sefaria text fields are strings or arbitrarily nested lists of strings"""
    if text is None:
        return []
    if isinstance(text, str):
        return [text] if text else []
    flat: list[str] = []
    for item in text:
        flat.extend(_flatten(item))
    return flat


def format_source_text(result: dict[str, Any]) -> str:
    """Format get_source_text result as BBG Lite text.

    Example output:
        Bava Kamma 2b | בבא קמא ב: | Talmud > Bavli

        HEBREW
        ──────────────────────────────────────────────────────────────────────
          1: ...

        ENGLISH
        ──────────────────────────────────────────────────────────────────────
          1: ...
    """
    if not result.get("success"):
        return _error(result)

    lines = []
    categories = " > ".join(result.get('categories') or [])
    header = f"{result.get('ref') or 'N/A'} | {result.get('he_ref') or ''}"
    if categories:
        header += f" | {categories}"
    lines.append(header)

    for title, segments in (("HEBREW", _flatten(result.get('he'))),
                            ("ENGLISH", _flatten(result.get('text')))):
        if not segments:
            continue
        lines.append("")
        lines.append(title)
        lines.append("─" * 70)
        for i, segment in enumerate(segments, 1):
            lines.append(f"  {i:>3}: {segment}")

    return "\n".join(lines)


def _sense_lines(senses: list[Any], depth: int = 1) -> list[str]:
    lines = []
    for sense in senses:
        if not isinstance(sense, dict):
            continue
        if sense.get('definition'):
            lines.append(f"{'  ' * depth}- {sense['definition']}")
        lines.extend(_sense_lines(sense.get('senses') or [], depth + 1))
    return lines


def format_lookup_word(result: dict[str, Any]) -> str:
    """Format lookup_word result as BBG Lite text."""
    if not result.get("success"):
        return _error(result)

    lines = [f"LEXICON \"{result['word']}\" | {len(result['entries'])} entries"]
    if not result['entries']:
        lines.append("")
        lines.append("NO ENTRIES FOUND")
        return "\n".join(lines)

    for entry in result['entries']:
        lines.append("")
        lines.append(f"{entry.get('headword') or result['word']}  ({entry.get('lexicon') or 'N/A'})")
        lines.extend(_sense_lines(entry.get('definitions') or []))

    return "\n".join(lines)


FORMATTERS = {
    "search_rulings": format_search_rulings,
    "list_rulings": format_list_rulings,
    "index_status": format_index_status,
    "rebuild_index": format_rebuild_index,
    "suggest_words": format_suggest_words,
    "share_search": format_share_search,
    "get_source_text": format_source_text,
    "lookup_word": format_lookup_word,
}
