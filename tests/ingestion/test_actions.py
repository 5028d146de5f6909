"""Tests for folding NDJSON query/metadata responses into a QueryResult."""

from __future__ import annotations

import pytest

from delta_share_client.core.errors import MalformedResponseError
from delta_share_client.ingestion import parse_actions, parse_ndjson


SAMPLE_STREAM = (
    '{"protocol":{"minReaderVersion":1}}\n'
    '{"metaData":{"id":"t1"}}\n'
    '{"file":{"url":"u1"}}\n'
    '{"file":{"url":"u2"}}'
)


def test_sample_stream_resolves_in_order():
    result = parse_actions(parse_ndjson(SAMPLE_STREAM))
    assert result.protocol.min_reader_version == 1
    assert result.metadata.id == "t1"
    assert result.urls == ["u1", "u2"]


def test_empty_stream():
    result = parse_actions(parse_ndjson(""))
    assert result.protocol is None
    assert result.metadata is None
    assert result.files == []


def test_last_protocol_and_metadata_win():
    text = (
        '{"protocol":{"minReaderVersion":1}}\n'
        '{"metaData":{"id":"first"}}\n'
        '{"file":{"url":"u1"}}\n'
        '{"protocol":{"minReaderVersion":2}}\n'
        '{"metaData":{"id":"second"}}\n'
        '{"file":{"url":"u2"}}\n'
    )
    result = parse_actions(parse_ndjson(text))
    assert result.protocol.min_reader_version == 2
    assert result.metadata.id == "second"
    assert result.urls == ["u1", "u2"]


def test_unknown_tags_and_blank_lines_are_ignored():
    text = '\n{"endStreamAction":{"refreshToken":"x"}}\n\n{"file":{"url":"u1"}}\r\n'
    result = parse_actions(parse_ndjson(text))
    assert result.urls == ["u1"]
    assert result.protocol is None


def test_malformed_line_fails_whole_call():
    text = '{"protocol":{"minReaderVersion":1}}\n{"file":{"url":"u1"}\n'
    with pytest.raises(MalformedResponseError, match="line 2"):
        parse_actions(parse_ndjson(text))


def test_non_object_line_is_malformed():
    with pytest.raises(MalformedResponseError, match="not a JSON object"):
        parse_ndjson('[1, 2]\n')


def test_file_without_url_is_malformed():
    with pytest.raises(MalformedResponseError, match="url"):
        parse_actions(parse_ndjson('{"file":{"id":"f1"}}'))


def test_non_numeric_file_size_is_malformed():
    text = '{"protocol":{"minReaderVersion":1}}\n{"file":{"url":"u","size":"big"}}\n'
    with pytest.raises(MalformedResponseError, match=r"file size is not an integer.*line 2"):
        parse_actions(parse_ndjson(text))


def test_file_fields_are_parsed():
    text = (
        '{"file":{"url":"https://f/year=2024/p.parquet","id":"abc",'
        '"partitionValues":{"year":"2024"},"size":573,"stats":"{\\"numRecords\\":1}",'
        '"expirationTimestamp":1700000000000}}'
    )
    entry = parse_actions(parse_ndjson(text)).files[0]
    assert entry.id == "abc"
    assert entry.partition_values == {"year": "2024"}
    assert entry.size == 573
    assert entry.stats == '{"numRecords":1}'
    assert entry.expiration_timestamp == 1700000000000
