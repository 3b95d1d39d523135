"""
MCP Tool Handlers

Shared handlers for MCP tools that use the hexagonal core.
"""
import asyncio
import json
from pathlib import Path
from typing import Any, Optional

from ...container import Container
from ...core.domain import IndexStatus
from ...core.indexing import IndexSnapshot
from ...core.sharing import build_share_url, decode_shared_search, encode_search


def _status_dict(status: IndexStatus) -> dict[str, Any]:
    return {
        "exists": status.exists,
        "stale": status.stale,
        "reason": status.reason,
        "schema_version": status.schema_version,
        "document_count": status.document_count,
        "unique_words": status.unique_words,
        "total_words": status.total_words,
        "last_updated": status.last_updated.isoformat() if status.last_updated else None,
    }


def _snapshot_dict(snapshot: IndexSnapshot) -> dict[str, Any]:
    index = snapshot.index
    return {
        "rebuilt": snapshot.rebuilt,
        "degraded": snapshot.degraded,
        "warning": snapshot.warning,
        "document_count": index.document_count,
        "unique_words": index.unique_words,
        "total_words": index.total_words,
        "last_updated": index.last_updated.isoformat(),
    }


def _parse_rules_arg(filter_rules: Any, warnings: list[str]) -> Any:
    """Rules may arrive as a JSON string (CLI, some MCP clients)"""
    if not isinstance(filter_rules, str):
        return filter_rules
    if not filter_rules.strip():
        return None
    try:
        return json.loads(filter_rules)
    except ValueError as e:
        warnings.append(f"Ignoring filter rules that are not valid JSON: {e}")
        return None


class MCPHandlers:
    """Handlers for MCP tools using dependency injection"""

    def __init__(self, container: Container):
        self.container = container

    async def search_rulings(
        self,
        text: Optional[str] = None,
        filter_rules: Any = None,
        shared: Optional[str] = None,
        limit: int = 20
    ) -> dict[str, Any]:
        """Search rulings; a shared link fills in whatever text/rules are missing"""
        try:
            warnings: list[str] = []
            filter_rules = _parse_rules_arg(filter_rules, warnings)

            if shared:
                decoded = decode_shared_search(shared)
                if decoded is None:
                    warnings.append("Could not decode the shared search link")
                else:
                    warnings.extend(decoded.warnings)
                    text = text or decoded.text
                    filter_rules = filter_rules or decoded.filter_rules

            outcome = await asyncio.to_thread(
                self.container.search.execute,
                free_text=text,
                filter_rules=filter_rules,
                limit=limit
            )
            warnings.extend(outcome.warnings)

            if outcome.error:
                return {
                    "success": False,
                    "error": f"Search failed: {outcome.error}",
                    "degraded": outcome.degraded,
                    "warnings": warnings
                }

            return {
                "success": True,
                "query": text or "",
                "filter_rules": filter_rules,
                "results": [r.to_dict() for r in outcome.results],
                "count": len(outcome.results),
                "limit": limit,
                "degraded": outcome.degraded,
                "warnings": warnings
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Search failed: {str(e)}"
            }

    async def list_rulings(self, limit: int = 50) -> dict[str, Any]:
        """List indexed rulings, newest first"""
        try:
            outcome = await asyncio.to_thread(self.container.list_rulings.execute, limit=limit)

            if outcome.error:
                return {
                    "success": False,
                    "error": f"Failed to list rulings: {outcome.error}"
                }

            return {
                "success": True,
                "rulings": [
                    {"id": r.id, "title": r.title, "court": r.court, "year": r.year}
                    for r in outcome.results
                ],
                "count": len(outcome.results),
                "limit": limit,
                "degraded": outcome.degraded,
                "warnings": outcome.warnings
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to list rulings: {str(e)}"
            }

    async def index_status(self) -> dict[str, Any]:
        """Index metadata and freshness"""
        try:
            status = await asyncio.to_thread(self.container.index_status.execute)
            return {
                "success": True,
                "data_dir": str(self.container.data_dir),
                **_status_dict(status)
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to read index status: {str(e)}"
            }

    async def rebuild_index(self, force: bool = True) -> dict[str, Any]:
        """Rebuild the index (or refresh it when force is False)"""
        try:
            snapshot = await asyncio.to_thread(self.container.build_index.execute, force=force)
            return {
                "success": True,
                **_snapshot_dict(snapshot)
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to rebuild index: {str(e)}"
            }

    async def import_corpus(self, path: str) -> dict[str, Any]:
        """Replace the corpus with a JSON array of rulings and rebuild"""
        try:
            def _import():
                records = json.loads(Path(path).read_text(encoding="utf-8"))
                if not isinstance(records, list):
                    raise ValueError("corpus file must contain a JSON array of rulings")
                return self.container.import_corpus.execute(records)

            count, snapshot = await asyncio.to_thread(_import)
            return {
                "success": True,
                "path": path,
                "imported": count,
                **_snapshot_dict(snapshot)
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to import corpus: {str(e)}"
            }

    async def suggest_words(self, prefix: str, limit: int = 10) -> dict[str, Any]:
        """Indexed words starting with prefix"""
        try:
            pairs = await asyncio.to_thread(self.container.suggest_words.execute, prefix, limit)
            return {
                "success": True,
                "prefix": prefix,
                "suggestions": [{"word": word, "rulings": count} for word, count in pairs],
                "count": len(pairs)
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to suggest words for {prefix}: {str(e)}"
            }

    async def share_search(
        self,
        text: Optional[str] = None,
        filter_rules: Any = None
    ) -> dict[str, Any]:
        """Encode a search as a share link"""
        try:
            warnings: list[str] = []
            filter_rules = _parse_rules_arg(filter_rules, warnings)
            if not text and not filter_rules:
                return {
                    "success": False,
                    "error": "Nothing to share: give text and/or filter rules"
                }

            return {
                "success": True,
                "url": build_share_url(self.container.share_base_url, text, filter_rules),
                "param": encode_search(text, filter_rules),
                "warnings": warnings
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to build share link: {str(e)}"
            }

    async def get_source_text(self, ref: str) -> dict[str, Any]:
        """Canonical source text from the upstream provider"""
        try:
            data = await asyncio.to_thread(self.container.sources.get_text, ref)
            return {
                "success": True,
                **data
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to get text for {ref}: {str(e)}"
            }

    async def lookup_word(self, word: str, lookup_ref: Optional[str] = None) -> dict[str, Any]:
        """Lexicon entries from the upstream provider"""
        try:
            data = await asyncio.to_thread(self.container.sources.lookup_word, word, lookup_ref)
            return {
                "success": True,
                **data
            }

        except Exception as e:
            return {
                "success": False,
                "error": f"Failed to look up {word}: {str(e)}"
            }
