"""Resolve share/schema/table listing responses into ``Listing`` pages.

A listing response is ``{"items": [...], "nextPageToken": "..."}``. Missing
or empty ``items`` yields an empty listing with the same columns. The page
token is passed through; callers paginate themselves.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..core.errors import MalformedResponseError
from ..core.models import Listing, Schema, Share, TableRef


def _items(payload: Any) -> List[Mapping[str, Any]]:
    if not isinstance(payload, Mapping):
        raise MalformedResponseError("Listing response must be a JSON object")
    items = payload.get("items")
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedResponseError("Listing 'items' must be an array")
    for item in items:
        if not isinstance(item, Mapping) or not item.get("name"):
            raise MalformedResponseError(f"Listing item without a name: {item!r}")
    return items


def _page_token(payload: Mapping[str, Any]) -> Optional[str]:
    token = payload.get("nextPageToken")
    return token or None


def parse_share_listing(payload: Any) -> Listing[Share]:
    items = _items(payload)
    return Listing(
        items=[Share(name=str(i["name"])) for i in items],
        columns=Share.COLUMNS,
        next_page_token=_page_token(payload),
    )


def parse_schema_listing(payload: Any, share: str) -> Listing[Schema]:
    """Items without ``share`` inherit the share that was listed."""
    items = _items(payload)
    return Listing(
        items=[Schema(name=str(i["name"]), share=str(i.get("share") or share)) for i in items],
        columns=Schema.COLUMNS,
        next_page_token=_page_token(payload),
    )


def parse_table_listing(
    payload: Any, share: str, schema: Optional[str] = None
) -> Listing[TableRef]:
    """Parse tables of one schema, or of a whole share when schema is None."""
    items = _items(payload)
    tables: List[TableRef] = []
    for i in items:
        table_schema = i.get("schema") or schema
        if not table_schema:
            raise MalformedResponseError(f"Table item without a schema: {i!r}")
        tables.append(
            TableRef(
                name=str(i["name"]),
                share=str(i.get("share") or share),
                schema=str(table_schema),
            )
        )
    return Listing(items=tables, columns=TableRef.COLUMNS, next_page_token=_page_token(payload))
