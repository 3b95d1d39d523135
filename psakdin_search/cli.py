#!/usr/bin/env python3
"""
CLI for psakdin-search - run the search tools without an MCP client

Usage:
  psakdin-search list-tools                     # Show MCP tool definitions
  psakdin-search import rulings.json            # Replace corpus and rebuild index
  psakdin-search build-index                    # Rebuild the index if stale
  psakdin-search build-index --force            # Rebuild unconditionally
  psakdin-search status                         # Index metadata and freshness
  psakdin-search search "שור שנגח"              # Full-text search
  psakdin-search search --rules '{"conditions": [{"field": "year", "operator": "at_least", "value": 2015}]}'
  psakdin-search search --shared "http://.../advanced-search?search=..."
  psakdin-search list --limit 20                # Newest rulings
  psakdin-search suggest שנ                     # Words starting with a prefix
  psakdin-search share "שור" --rules '[...]'    # Build a share link
  psakdin-search text Bava_Kamma.2b             # Source text from Sefaria
  psakdin-search lexicon שור                    # Lexicon lookup

Uses the hexagonal core directly (no MCP layer)
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Awaitable, Callable

from .adapters.mcp import TOOL_SCHEMAS, MCPHandlers
from .config import (
    get_data_dir,
    get_index_max_age,
    get_sefaria_base_url,
    get_share_base_url,
)
from .container import Container
from .formatters import (
    format_index_status,
    format_list_rulings,
    format_lookup_word,
    format_rebuild_index,
    format_search_rulings,
    format_share_search,
    format_source_text,
    format_suggest_words,
)


async def list_tools_command() -> int:
    """Show MCP tool definitions"""
    print("=" * 80)
    print("MCP TOOL DEFINITIONS")
    print("=" * 80)
    print()

    for tool_schema in TOOL_SCHEMAS.values():
        print(f"Tool: {tool_schema['name']}")
        print(f"Claude sees: mcp__psakdin-search__{tool_schema['name']}")
        print()
        print("Description:")
        print(tool_schema['description'])
        print()
        print("Input Schema:")
        print(json.dumps(tool_schema['inputSchema'], indent=2, ensure_ascii=False))
        print()
        print("-" * 80)
        print()

    return 0


async def run_command(
    container: Container,
    call: Callable[[MCPHandlers], Awaitable[dict[str, Any]]],
    formatter: Callable[[dict[str, Any]], str],
) -> int:
    """Run one handler call and print its BBG Lite rendering"""
    try:
        handlers = MCPHandlers(container)
        result = await call(handlers)

        print(formatter(result))

        if not result["success"]:
            return 1

        return 0
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


def non_negative_int(value: str) -> int:
    """argparse type for --limit"""
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def build_container(args: argparse.Namespace) -> Container:
    return Container(
        data_dir=args.data_dir,
        max_age=get_index_max_age(),
        sefaria_base_url=get_sefaria_base_url(),
        share_base_url=get_share_base_url(),
    )


def main():
    parser = argparse.ArgumentParser(
        description="psakdin-search CLI - full-text search over rulings"
    )
    parser.add_argument(
        "--data-dir",
        default=str(get_data_dir()),
        help="Data directory holding corpus.json and index.json (default: $PSAKDIN_DATA_DIR or ~/.psakdin-search)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # list-tools command
    subparsers.add_parser("list-tools", help="Show MCP tool definitions")

    # import command
    import_parser = subparsers.add_parser("import", help="Replace the corpus with a JSON file of rulings")
    import_parser.add_argument("path", help="JSON array of {id, title, court, year, full_text, summary}")

    # build-index command
    build_parser = subparsers.add_parser("build-index", help="Build the search index")
    build_parser.add_argument("--force", action="store_true", help="Rebuild even when fresh")

    # status command
    subparsers.add_parser("status", help="Show index status")

    # search command
    search_parser = subparsers.add_parser("search", help="Search rulings")
    search_parser.add_argument("text", nargs="?", default=None, help="Free-text query")
    search_parser.add_argument("--rules", help="Filter rules as JSON")
    search_parser.add_argument("--shared", help="Share link (or its search= value) to run")
    search_parser.add_argument("--limit", type=non_negative_int, default=20, help="Max rulings (default: 20)")

    # list command
    list_parser = subparsers.add_parser("list", help="List rulings, newest first")
    list_parser.add_argument("--limit", type=non_negative_int, default=50, help="Max rulings (default: 50)")

    # suggest command
    suggest_parser = subparsers.add_parser("suggest", help="Complete a word from the index vocabulary")
    suggest_parser.add_argument("prefix", help="Start of a word (at least two letters)")
    suggest_parser.add_argument("--limit", type=non_negative_int, default=10, help="Max suggestions (default: 10)")

    # share command
    share_parser = subparsers.add_parser("share", help="Build a share link for a search")
    share_parser.add_argument("text", nargs="?", default=None, help="Free-text query")
    share_parser.add_argument("--rules", help="Filter rules as JSON")

    # text command
    text_parser = subparsers.add_parser("text", help="Fetch source text from Sefaria")
    text_parser.add_argument("ref", help="Sefaria reference (e.g., Bava_Kamma.2b)")

    # lexicon command
    lexicon_parser = subparsers.add_parser("lexicon", help="Look up a word in Sefaria lexicons")
    lexicon_parser.add_argument("word", help="Word to look up")
    lexicon_parser.add_argument("--ref", help="Reference the word appears in")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "list-tools":
        return asyncio.run(list_tools_command())

    container = build_container(args)

    if args.command == "import":
        return asyncio.run(run_command(
            container,
            lambda h: h.import_corpus(path=args.path),
            format_rebuild_index
        ))
    elif args.command == "build-index":
        return asyncio.run(run_command(
            container,
            lambda h: h.rebuild_index(force=args.force),
            format_rebuild_index
        ))
    elif args.command == "status":
        return asyncio.run(run_command(
            container,
            lambda h: h.index_status(),
            format_index_status
        ))
    elif args.command == "search":
        return asyncio.run(run_command(
            container,
            lambda h: h.search_rulings(
                text=args.text,
                filter_rules=args.rules,
                shared=args.shared,
                limit=args.limit
            ),
            format_search_rulings
        ))
    elif args.command == "list":
        return asyncio.run(run_command(
            container,
            lambda h: h.list_rulings(limit=args.limit),
            format_list_rulings
        ))
    elif args.command == "suggest":
        return asyncio.run(run_command(
            container,
            lambda h: h.suggest_words(prefix=args.prefix, limit=args.limit),
            format_suggest_words
        ))
    elif args.command == "share":
        return asyncio.run(run_command(
            container,
            lambda h: h.share_search(text=args.text, filter_rules=args.rules),
            format_share_search
        ))
    elif args.command == "text":
        return asyncio.run(run_command(
            container,
            lambda h: h.get_source_text(ref=args.ref),
            format_source_text
        ))
    elif args.command == "lexicon":
        return asyncio.run(run_command(
            container,
            lambda h: h.lookup_word(word=args.word, lookup_ref=args.ref),
            format_lookup_word
        ))
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
