"""Client-side partition filtering on signed file URLs.

Servers encode partition values into the storage path of each file, so the
signed URL carries segments such as ``year=2024/`` or, once percent-encoded,
``year%3D2024%2F``. Matching is done on the URL text; the URL is never parsed.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Sequence

from ..models import FileEntry


def partition_value_str(value: Any) -> str:
    """String form of a constraint value as it appears in a partition path.

    Booleans use the Delta spelling so that ``True`` matches ``flag=true/``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _plain_pattern(key: str, value: str) -> str:
    return f"{key}={value}/"


def _encoded_pattern(key: str, value: str) -> re.Pattern[str]:
    # key%3Dvalue must be followed by a path separator, raw or encoded
    return re.compile(re.escape(f"{key}%3D{value}") + r"(?:/|%2F)")


def matches_partition(url: str, key: str, value: Any) -> bool:
    """Return True if url encodes ``key=value`` in plain or percent-encoded form."""
    value_str = partition_value_str(value)
    if _plain_pattern(key, value_str) in url:
        return True
    return _encoded_pattern(key, value_str).search(url) is not None


def filter_files_by_partition(
    files: Sequence[FileEntry], constraints: Optional[Mapping[str, Any]]
) -> List[FileEntry]:
    """Keep the files whose URL matches every partition constraint.

    - No constraints: the input is returned as given.
    - Otherwise a file passes only if each (key, value) matches its URL in at
      least one encoding. Order is preserved; nothing is deduplicated.
    - Never raises; a file that does not match is simply left out.

    Examples:
        >>> f = FileEntry(url="https://bucket/t/year=2024/month=1/part-0.parquet?sig=x")
        >>> [x.url for x in filter_files_by_partition([f], {"year": 2024})] == [f.url]
        True
        >>> filter_files_by_partition([f], {"year": 2024, "month": 2})
        []
    """
    if not constraints:
        return files  # type: ignore[return-value]

    # compile once per constraint, not per file
    matchers = [
        (_plain_pattern(str(k), partition_value_str(v)), _encoded_pattern(str(k), partition_value_str(v)))
        for k, v in constraints.items()
    ]

    out: List[FileEntry] = []
    for file_entry in files:
        url = file_entry.url or ""
        if all(plain in url or encoded.search(url) for plain, encoded in matchers):
            out.append(file_entry)
    return out
