"""HTTP transport for the Delta Sharing REST API.

A thin wrapper around ``httpx.Client`` that builds endpoint URLs, attaches the
JSON and bearer headers, and turns failures into ``TransportError``. Response
bodies are returned untouched; parsing lives in ``delta_share_client.ingestion``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..core.config import (
    ACCEPT_HEADER,
    CONTENT_TYPE_HEADER,
    ClientSettings,
)
from ..core.errors import TransportError
from ..core.utils import normalize_endpoint


logger = logging.getLogger(__name__)


def build_http_client(settings: ClientSettings) -> httpx.Client:
    """Create the httpx client used for API calls and file downloads."""
    return httpx.Client(
        timeout=settings.timeout_sec,
        follow_redirects=settings.follow_redirects,
        verify=settings.verify_tls,
        headers={"User-Agent": settings.user_agent},
    )


class SharingRestClient:
    """Issue GET/POST/HEAD requests against one Delta Sharing endpoint."""

    def __init__(
        self,
        endpoint: str,
        token: Optional[str] = None,
        *,
        settings: Optional[ClientSettings] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.endpoint = normalize_endpoint(endpoint)
        self.token = token
        self.settings = settings or ClientSettings()
        self._owns_client = http_client is None
        self.http_client = http_client or build_http_client(self.settings)

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def url_for(self, path: str) -> str:
        return f"{self.endpoint}{path.lstrip('/')}"

    def _headers(self, *, with_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": ACCEPT_HEADER}
        if with_body:
            headers["Content-Type"] = CONTENT_TYPE_HEADER
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = self.url_for(path)
        logger.debug("%s %s", method, url)
        try:
            response = self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(None, str(e), url) from e
        if response.is_error:
            body = "" if method == "HEAD" else response.text
            raise TransportError(response.status_code, body, url)
        return response

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        """GET path; ``None`` values in params are dropped."""
        query = {k: v for k, v in (params or {}).items() if v is not None}
        return self._send("GET", path, params=query or None, headers=self._headers())

    def post(self, path: str, body: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        """POST a JSON body; an empty body is sent as ``{}``, never ``[]``."""
        payload = json.dumps(dict(body or {}))
        return self._send(
            "POST", path, content=payload.encode("utf-8"), headers=self._headers(with_body=True)
        )

    def head(self, path: str) -> httpx.Response:
        return self._send("HEAD", path, headers=self._headers())
