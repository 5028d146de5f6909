"""Response parsing: listings and NDJSON table actions.

Public API:
 - parse_json, parse_ndjson
 - parse_share_listing, parse_schema_listing, parse_table_listing
 - parse_actions
"""

from .ndjson import parse_json, parse_ndjson
from .listing import parse_schema_listing, parse_share_listing, parse_table_listing
from .actions import parse_actions

__all__ = [
    "parse_json",
    "parse_ndjson",
    "parse_share_listing",
    "parse_schema_listing",
    "parse_table_listing",
    "parse_actions",
]
