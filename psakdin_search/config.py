"""
Configuration

Environment variables with defaults. CLI flags override these.
"""
import os
from datetime import timedelta
from pathlib import Path
from typing import Optional

DEFAULT_DATA_DIR = "~/.psakdin-search"
DEFAULT_MAX_AGE_HOURS = 24
DEFAULT_SEFARIA_BASE_URL = "https://www.sefaria.org/api"
DEFAULT_SHARE_BASE_URL = "http://localhost:5173/advanced-search"
DEFAULT_PORT = 5002


def get_data_dir() -> Path:
    """Directory holding corpus.json and index.json"""
    return Path(os.environ.get("PSAKDIN_DATA_DIR", DEFAULT_DATA_DIR)).expanduser()


def get_index_max_age() -> Optional[timedelta]:
    """Freshness window for the index; 0 disables the age check"""
    hours_str = os.environ.get("PSAKDIN_INDEX_MAX_AGE_HOURS", str(DEFAULT_MAX_AGE_HOURS))
    try:
        hours = float(hours_str)
    except ValueError:
        msg = f"Invalid PSAKDIN_INDEX_MAX_AGE_HOURS value: {hours_str}"
        raise ValueError(msg) from None
    return timedelta(hours=hours) if hours > 0 else None


def get_sefaria_base_url() -> str:
    return os.environ.get("SEFARIA_BASE_URL", DEFAULT_SEFARIA_BASE_URL)


def get_share_base_url() -> str:
    """Page that share links point at"""
    return os.environ.get("SHARE_BASE_URL", DEFAULT_SHARE_BASE_URL)


def get_port() -> int:
    """HTTP/SSE server port"""
    port_str = os.environ.get("PORT", str(DEFAULT_PORT))
    try:
        return int(port_str)
    except ValueError:
        msg = f"Invalid PORT value: {port_str}"
        raise ValueError(msg) from None
