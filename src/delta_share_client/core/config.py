"""Client configuration constants and optional YAML settings.

Constants here are the defaults used by the transport and downloader.
A settings file can override the tunable ones:

    client:
      timeout_sec: 60
      download_chunk_size: 262144
      user_agent: delta-share-client/0.1.0
      verify_tls: true
      follow_redirects: true
      show_progress: true
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ProfileError

# ============================================================================
# HTTP
# ============================================================================

DEFAULT_TIMEOUT_SEC = 60.0
DEFAULT_USER_AGENT = "delta-share-client/0.1.0"
ACCEPT_HEADER = "application/json; charset=utf-8"
CONTENT_TYPE_HEADER = "application/json; charset=utf-8"

# Response header carrying the table version on HEAD .../version
TABLE_VERSION_HEADER = "delta-table-version"

# ============================================================================
# DOWNLOADS
# ============================================================================

DOWNLOAD_CHUNK_SIZE = 1024 * 256
TEMP_FILE_SUFFIX = ".parquet"


@dataclass(frozen=True)
class ClientSettings:
    """Tunable transport and download settings."""

    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    download_chunk_size: int = DOWNLOAD_CHUNK_SIZE
    user_agent: str = DEFAULT_USER_AGENT
    verify_tls: bool = True
    follow_redirects: bool = True
    show_progress: bool = True


def _coerce(value: Any, default: Any) -> Any:
    """Return value when it has the default's type (ints allowed for floats)."""
    if isinstance(default, bool):
        return value if isinstance(value, bool) else default
    if isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)
        return default
    if isinstance(default, int):
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        return default
    if isinstance(default, str):
        return value if isinstance(value, str) and value else default
    return default


def settings_from_mapping(data: Optional[Dict[str, Any]]) -> ClientSettings:
    """Build settings from the ``client`` section of a parsed YAML document.

    Unknown keys are ignored and values of the wrong type fall back to the
    defaults.
    """
    section = (data or {}).get("client") or {}
    if not isinstance(section, dict):
        raise ProfileError("Invalid settings: 'client' must be a mapping")
    defaults = ClientSettings()
    values = {
        f.name: _coerce(section.get(f.name), getattr(defaults, f.name))
        for f in fields(ClientSettings)
        if f.name in section
    }
    return ClientSettings(**values)


def load_settings(path: Optional[Path] = None) -> ClientSettings:
    """Load settings from a YAML file, or return the defaults when path is None."""
    if path is None:
        return ClientSettings()
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid settings file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ProfileError(f"Invalid settings file {path}: expected a mapping")
    return settings_from_mapping(data)
