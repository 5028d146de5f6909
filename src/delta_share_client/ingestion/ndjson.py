from __future__ import annotations

import json
from typing import Any, Dict, List

from ..core.errors import MalformedResponseError


def parse_json(text: str) -> Any:
    """Parse a single JSON document; an empty body parses as ``{}``."""
    if not text or not text.strip():
        return {}
    try:
        return json.loads(text)
    except ValueError as e:
        raise MalformedResponseError(f"Invalid JSON response: {e}") from e


def parse_ndjson(text: str) -> List[Dict[str, Any]]:
    """Parse newline-delimited JSON into a list of objects, in order.

    Blank lines are skipped. Any line that is not valid JSON, or not a JSON
    object, fails the whole call; no partial result is returned.
    """
    records: List[Dict[str, Any]] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except ValueError as e:
            raise MalformedResponseError(f"Invalid NDJSON line: {e}", line_number) from e
        if not isinstance(record, dict):
            raise MalformedResponseError("NDJSON line is not a JSON object", line_number)
        records.append(record)
    return records
