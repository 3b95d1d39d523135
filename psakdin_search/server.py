"""
psakdin-search MCP Server

MCP delivery layer (FastMCP) - wraps the shared handlers as MCP tools.
Separation of concerns: this file only handles MCP protocol.
"""
import argparse
import logging
import os
from pathlib import Path
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from .adapters.mcp import MCPHandlers
from .config import get_data_dir, get_index_max_age, get_sefaria_base_url, get_share_base_url
from .container import Container
from .formatters import FORMATTERS

# Quiet httpx request logging on stdio
logging.getLogger("httpx").setLevel(logging.WARNING)

# Data directory (can be overridden via env var or CLI arg)
DATA_DIR = get_data_dir()

# Get port from env or default
HTTP_PORT = int(os.getenv("PSAKDIN_HTTP_PORT", "6660"))
HTTP_HOST = os.getenv("PSAKDIN_HTTP_HOST", "0.0.0.0")

# Initialize MCP server with HTTP config
mcp = FastMCP("psakdin-search", host=HTTP_HOST, port=HTTP_PORT)

_handlers: Optional[MCPHandlers] = None


def get_handlers() -> MCPHandlers:
    """Handlers over a container for DATA_DIR, created on first use"""
    global _handlers
    if _handlers is None:
        _handlers = MCPHandlers(Container(
            data_dir=DATA_DIR,
            max_age=get_index_max_age(),
            sefaria_base_url=get_sefaria_base_url(),
            share_base_url=get_share_base_url(),
        ))
    return _handlers


@mcp.tool()
async def search_rulings(
    text: Optional[str] = None,
    filter_rules: Optional[Any] = None,
    shared: Optional[str] = None,
    limit: int = 20
) -> str:
    """
    Full-text search over rulings (psakei din).

    All query words must appear in a ruling (AND). Hebrew nikud and final
    letters are ignored, and one-letter prefixes (ו ה ב כ ל מ ש) are matched,
    so "פרה" also finds "הפרה".

    Args:
        text: Free-text query
        filter_rules: Metadata filter, e.g.
            {"combinator": "all", "conditions": [
                {"field": "year", "operator": "at_least", "value": 2015},
                {"field": "court", "operator": "contains", "value": "רבני"}]}
        shared: Share link produced by share_search; fills in missing text/rules
        limit: Maximum rulings to return (default: 20)

    Returns:
        Ranked rulings with each matching line, one line of context either
        side, and <mark> highlights.

    Example:
        search_rulings("שור שנגח")
        search_rulings(filter_rules={"conditions": [{"field": "year", "operator": "between", "value": [2000, 2010]}]})
    """
    result = await get_handlers().search_rulings(
        text=text, filter_rules=filter_rules, shared=shared, limit=limit
    )
    return FORMATTERS["search_rulings"](result)


@mcp.tool()
async def list_rulings(limit: int = 50) -> str:
    """
    List indexed rulings, newest first.

    Args:
        limit: Maximum rulings to return (default: 50)
    """
    result = await get_handlers().list_rulings(limit=limit)
    return FORMATTERS["list_rulings"](result)


@mcp.tool()
async def index_status() -> str:
    """Show search index metadata: documents, words, last build, staleness."""
    result = await get_handlers().index_status()
    return FORMATTERS["index_status"](result)


@mcp.tool()
async def rebuild_index(force: bool = True) -> str:
    """
    Rebuild the search index from the corpus.

    Args:
        force: Rebuild even when the index is fresh (default: True)
    """
    result = await get_handlers().rebuild_index(force=force)
    return FORMATTERS["rebuild_index"](result)


@mcp.tool()
async def suggest_words(prefix: str, limit: int = 10) -> str:
    """
    Complete a partly typed word from the indexed vocabulary.

    Args:
        prefix: Start of a word, at least two letters (e.g. "שנ")
        limit: Maximum suggestions (default: 10)
    """
    result = await get_handlers().suggest_words(prefix=prefix, limit=limit)
    return FORMATTERS["suggest_words"](result)


@mcp.tool()
async def share_search(text: Optional[str] = None, filter_rules: Optional[Any] = None) -> str:
    """
    Encode a search as a share link.

    Args:
        text: Free-text query
        filter_rules: Metadata filter (same shape as search_rulings)
    """
    result = await get_handlers().share_search(text=text, filter_rules=filter_rules)
    return FORMATTERS["share_search"](result)


@mcp.tool()
async def get_source_text(ref: str) -> str:
    """
    Fetch canonical source text from Sefaria.

    Args:
        ref: Sefaria reference, e.g. "Bava_Kamma.2b"
    """
    result = await get_handlers().get_source_text(ref=ref)
    return FORMATTERS["get_source_text"](result)


@mcp.tool()
async def lookup_word(word: str, lookup_ref: Optional[str] = None) -> str:
    """
    Look up a word in the Sefaria lexicons.

    Args:
        word: Word to look up
        lookup_ref: Optional reference the word appears in
    """
    result = await get_handlers().lookup_word(word=word, lookup_ref=lookup_ref)
    return FORMATTERS["lookup_word"](result)


def main():
    """Main entry point for the MCP server."""
    global DATA_DIR, _handlers

    parser = argparse.ArgumentParser(
        description="psakdin-search: full-text search over rulings, as MCP tools."
    )
    parser.add_argument(
        "--transport",
        default="stdio",
        choices=["stdio", "streamable-http"],
        help="Transport method (default: stdio)"
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help=f"Data directory (default: {DATA_DIR}, or set PSAKDIN_DATA_DIR env var)"
    )
    args = parser.parse_args()

    # Override data dir if specified
    if args.data_dir:
        DATA_DIR = Path(args.data_dir)
        _handlers = None

    # Run the server
    if args.transport == "streamable-http":
        print(f"Starting psakdin-search on http://{HTTP_HOST}:{HTTP_PORT}")
        print(f"Data directory: {DATA_DIR}")
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
