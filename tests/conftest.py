"""
tests/conftest.py -- Shared test fixtures for the CAS gateway.

This module provides:
  - fake_http(): a MagicMock requests.Session standing in for the CAS server,
    answering with real requests.Response objects
  - make_request(): a bare Starlette Request with an in-memory session, for
    driving CASAuthentication without the ASGI stack
  - make_client: factory fixture returning (TestClient, fake http session)
    for end-to-end tests through the real app, with a patched lifespan

The environment variables below must be set before any api/core import so
get_settings() auto-generates SECRET_KEY in dev mode, accepts the TestClient
Host header, and has a CAS server to point at.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional
from unittest.mock import MagicMock

# CRITICAL: Set env before any api/core import -- get_settings() is cached.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("CAS_URL", "https://cas.example.edu/cas")
os.environ.setdefault("SERVICE_URL", "http://testserver")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("RATE_LIMIT", "10000/minute")

import pytest
import requests
from fastapi.testclient import TestClient
from requests.utils import get_encoding_from_headers
from starlette.requests import Request

from asgi import app
from cas.gateway import CASAuthentication
from cas.models import GatewayConfig

CAS_URL = "https://cas.example.edu/cas"
SERVICE_URL = "http://testserver"

# ---------------------------------------------------------------------------
# Fake CAS server
# ---------------------------------------------------------------------------


def fake_http(
    body: str = "",
    status: int = 200,
    error: Optional[Exception] = None,
    content_type: str = "text/plain",
) -> MagicMock:
    """A requests.Session whose get() returns a real Response, or raises `error`.

    The body goes over the wire as UTF-8 bytes, and the Response's encoding is
    derived from `content_type` the same way requests' HTTPAdapter does it.
    """
    http = MagicMock(spec=requests.Session)
    if error is not None:
        http.get.side_effect = error
        return http
    resp = requests.Response()
    resp.status_code = status
    resp.headers["Content-Type"] = content_type
    resp.encoding = get_encoding_from_headers(resp.headers)
    resp._content = body.encode("utf-8")
    resp.url = CAS_URL
    http.get.return_value = resp
    return http


def make_config(**overrides: Any) -> GatewayConfig:
    values: dict[str, Any] = {"cas_url": CAS_URL, "service_url": SERVICE_URL}
    values.update(overrides)
    return GatewayConfig(**values)


def make_request(path: str = "/", query: str = "", session: Optional[dict] = None) -> Request:
    """Build a GET Request with an in-memory session, no ASGI app required."""
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "root_path": "",
        "query_string": query.encode(),
        "headers": [(b"host", b"testserver")],
        "session": {} if session is None else session,
    }
    return Request(scope)


# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(cas: CASAuthentication):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-built gateway (with a fake HTTP session) into app.state so
    TestClient routes never reach a real CAS server.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.cas = cas
        yield

    return test_lifespan


@pytest.fixture
def make_client() -> Generator[Callable[..., tuple[TestClient, MagicMock]], None, None]:
    """Yield a factory: make_client(body=..., **config) -> (client, http).

    follow_redirects=False is essential: tests assert on redirect Location
    headers, which are invisible once the client follows them. The client
    keeps cookies between calls, so the signed session cookie carries the
    CAS identity from one request to the next.
    """
    opened: list[TestClient] = []

    def _make(body: str = "", http: Optional[MagicMock] = None, **overrides: Any) -> tuple[TestClient, MagicMock]:
        http = http if http is not None else fake_http(body)
        cas = CASAuthentication(make_config(**overrides), http=http)
        app.router.lifespan_context = _patch_lifespan(cas)
        client = TestClient(app, follow_redirects=False, raise_server_exceptions=True)
        client.__enter__()
        opened.append(client)
        return client, http

    yield _make

    for client in opened:
        client.__exit__(None, None, None)
