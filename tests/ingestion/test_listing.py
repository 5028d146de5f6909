"""Tests for share/schema/table listing responses."""

from __future__ import annotations

import pytest

from delta_share_client.core.errors import MalformedResponseError
from delta_share_client.core.models import Schema, Share, TableRef
from delta_share_client.ingestion import (
    parse_json,
    parse_schema_listing,
    parse_share_listing,
    parse_table_listing,
)


@pytest.mark.parametrize("payload", [{}, {"items": []}, {"items": None}])
def test_empty_items_give_zero_row_listing(payload):
    listing = parse_table_listing(payload, "historical", "default")
    assert len(listing) == 0
    assert listing.columns == ("name", "share", "schema")
    df = listing.to_pandas()
    assert df.shape == (0, 3)
    assert list(df.columns) == ["name", "share", "schema"]


def test_share_listing_with_page_token():
    listing = parse_share_listing(
        {"items": [{"name": "historical", "id": "1"}, {"name": "forecasts"}], "nextPageToken": "p2"}
    )
    assert listing.items == [Share("historical"), Share("forecasts")]
    assert listing.next_page_token == "p2"


def test_empty_page_token_is_none():
    assert parse_share_listing({"items": [], "nextPageToken": ""}).next_page_token is None


def test_schema_listing_inherits_share():
    listing = parse_schema_listing({"items": [{"name": "default"}]}, "historical")
    assert listing.items == [Schema(name="default", share="historical")]


def test_all_tables_listing_uses_item_schema():
    payload = {
        "items": [
            {"name": "stations", "share": "historical", "schema": "default"},
            {"name": "fires", "share": "historical", "schema": "incidents"},
        ]
    }
    listing = parse_table_listing(payload, "historical")
    assert listing.items == [
        TableRef(name="stations", share="historical", schema="default"),
        TableRef(name="fires", share="historical", schema="incidents"),
    ]


def test_all_tables_item_without_schema_is_malformed():
    with pytest.raises(MalformedResponseError, match="without a schema"):
        parse_table_listing({"items": [{"name": "t"}]}, "historical")


def test_item_without_name_is_malformed():
    with pytest.raises(MalformedResponseError, match="without a name"):
        parse_share_listing({"items": [{"id": "1"}]})


def test_items_must_be_array():
    with pytest.raises(MalformedResponseError, match="must be an array"):
        parse_share_listing({"items": {"name": "x"}})


def test_parse_json_rejects_invalid_body():
    with pytest.raises(MalformedResponseError, match="Invalid JSON"):
        parse_json("{not json")


def test_parse_json_empty_body_is_empty_object():
    assert parse_json("") == {}
