"""
Sefaria Adapter

Implements SourceTextProvider port against the Sefaria public API using
httpx. Calls are pass-through: no retries, and every failure becomes one
UpstreamError carrying the upstream status when there is one.
"""
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..core.errors import UpstreamError
from ..core.ports import SourceTextProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.sefaria.org/api"
DEFAULT_TIMEOUT = 15.0


class SefariaAdapter(SourceTextProvider):
    """Source text and lexicon lookups via Sefaria"""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{path}"
        logger.info(f"Sefaria GET {url} params={params}")
        try:
            if self._client is not None:
                response = self._client.get(url, params=params, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamError(f"Sefaria API error: {status}", status=status) from e
        except httpx.TimeoutException as e:
            raise UpstreamError("Sefaria API error: request timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Sefaria API error: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Sefaria API error: invalid JSON ({e})") from e

    def get_text(self, ref: str) -> dict[str, Any]:
        """Canonical text for a reference such as "Bava_Kamma.2b" """
        data = self._get_json(f"texts/{quote(ref)}", params={"commentary": 0, "context": 1})
        return {
            "ref": data.get("ref"),
            "he_ref": data.get("heRef"),
            "text": data.get("text"),
            "he": data.get("he"),
            "commentary": data.get("commentary") or [],
            "book": data.get("book"),
            "categories": data.get("categories"),
            "section_ref": data.get("sectionRef"),
        }

    def lookup_word(self, word: str, lookup_ref: Optional[str] = None) -> dict[str, Any]:
        """Lexicon entries for a word, optionally in the context of a reference"""
        params = {"lookup_ref": lookup_ref} if lookup_ref else None
        data = self._get_json(f"words/{quote(word)}", params=params)

        # The words endpoint returns a list of entries
        entries = data if isinstance(data, list) else [data]
        return {
            "word": word,
            "entries": [
                {
                    "headword": entry.get("headword"),
                    "lexicon": entry.get("parent_lexicon"),
                    "definitions": (entry.get("content") or {}).get("senses") or [],
                }
                for entry in entries
                if isinstance(entry, dict)
            ],
        }
