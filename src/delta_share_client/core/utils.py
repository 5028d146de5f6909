"""Core utility functions shared by the client and CLI."""

from __future__ import annotations

from urllib.parse import quote

from .models import TableRef


def normalize_endpoint(endpoint: str) -> str:
    """Return the endpoint with exactly one trailing slash.

    Examples:
        >>> normalize_endpoint("http://localhost:8080/api/delta-sharing")
        'http://localhost:8080/api/delta-sharing/'
    """
    endpoint = endpoint.strip()
    if not endpoint:
        raise ValueError("endpoint must not be empty")
    return endpoint.rstrip("/") + "/"


def parse_table_name(full_name: str) -> TableRef:
    """Split `share.schema.table` into a TableRef."""
    parts = full_name.strip().split(".")
    if len(parts) != 3 or not all(parts):
        raise ValueError("Table must be in the form `share.schema.table`.")
    share, schema, name = parts
    return TableRef(name=name, share=share, schema=schema)


def _seg(value: str) -> str:
    return quote(str(value), safe="")


def shares_path() -> str:
    return "shares"


def schemas_path(share: str) -> str:
    return f"shares/{_seg(share)}/schemas"


def tables_path(share: str, schema: str) -> str:
    return f"shares/{_seg(share)}/schemas/{_seg(schema)}/tables"


def all_tables_path(share: str) -> str:
    return f"shares/{_seg(share)}/all-tables"


def table_path(share: str, schema: str, table: str, action: str) -> str:
    """Path of a per-table endpoint (`metadata`, `version` or `query`)."""
    return f"{tables_path(share, schema)}/{_seg(table)}/{action}"
