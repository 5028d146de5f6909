"""Shared pytest fixtures: an in-process fake Delta Sharing server.

The fake server is an ``httpx.MockTransport`` routing requests by method and
URL path. Parquet payloads are built in memory with pyarrow.
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from delta_share_client.client import DeltaSharingClient
from delta_share_client.core.config import ClientSettings

ENDPOINT = "https://sharing.example.com/api/delta-sharing/"
FILES_HOST = "https://files.example.com"
TOKEN = "test-token"

Handler = Callable[[httpx.Request], httpx.Response]
Route = Union[Tuple[int, bytes, Dict[str, str]], Handler]


def make_parquet_bytes(columns: Dict[str, List[Any]], schema: Optional[pa.Schema] = None) -> bytes:
    """Serialize a column mapping into Parquet bytes, optionally with an explicit schema."""
    buf = io.BytesIO()
    pq.write_table(pa.table(columns, schema=schema), buf)
    return buf.getvalue()


def ndjson(*records: Dict[str, Any]) -> str:
    return "\n".join(json.dumps(r) for r in records) + "\n"


def file_action(url: str, **extra: Any) -> Dict[str, Any]:
    return {"file": {"url": url, "id": url.rsplit("/", 1)[-1], "partitionValues": {}, "size": 1, **extra}}


@dataclass
class FakeSharingServer:
    """Route table for MockTransport plus a log of received requests.

    Static routes are stored as (status, body, headers) and a fresh response is
    built per request; callables receive the request and build their own.
    """

    routes: Dict[Tuple[str, str], Route] = field(default_factory=dict)
    requests: List[httpx.Request] = field(default_factory=list)

    def add(
        self,
        method: str,
        url: str,
        response: Union[Route, None] = None,
        *,
        status: int = 200,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if response is None:
            response = (status, body, headers or {})
        self.routes[(method.upper(), url.split("?", 1)[0])] = response

    def add_api(self, method: str, path: str, response: Union[Route, None] = None, **kwargs: Any) -> None:
        self.add(method, ENDPOINT + path, response, **kwargs)

    def add_json(self, path: str, payload: Any) -> None:
        self.add_api(
            "GET",
            path,
            body=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    def add_ndjson(self, method: str, path: str, *records: Dict[str, Any]) -> None:
        self.add_api(
            method,
            path,
            body=ndjson(*records).encode("utf-8"),
            headers={"Content-Type": "application/x-ndjson; charset=utf-8"},
        )

    def add_file(self, url: str, payload: Optional[bytes], status: int = 200) -> None:
        self.add("GET", url, status=status, body=payload if payload is not None else b"not found")

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, str(request.url).split("?", 1)[0])
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, text=f"no route for {key}")
        if callable(route):
            return route(request)
        status, body, headers = route
        return httpx.Response(status, content=body, headers=headers)

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handle))


@pytest.fixture
def server() -> FakeSharingServer:
    return FakeSharingServer()


@pytest.fixture
def client(server: FakeSharingServer) -> DeltaSharingClient:
    http_client = server.http_client()
    c = DeltaSharingClient(
        ENDPOINT,
        token=TOKEN,
        settings=ClientSettings(show_progress=False),
        http_client=http_client,
    )
    yield c
    http_client.close()
