"""Tests for pagetomd.fetch module."""

import asyncio

import httpx
import pytest

from pagetomd.fetch import fetch_static


def _transport(status: int = 200, body: str = "<html><body>ok</body></html>"):
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Mozilla/5.0" in request.headers["user-agent"]
        return httpx.Response(status, text=body, headers={"content-type": "text/html"})

    return httpx.MockTransport(handler)


class TestFetchStatic:
    def test_returns_html(self):
        result = asyncio.run(fetch_static("https://example.com/a", transport=_transport()))
        assert result.html == "<html><body>ok</body></html>"
        assert result.url == "https://example.com/a"
        assert result.status == 200
        assert result.headers["content-type"] == "text/html"

    def test_http_error_raises(self):
        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(fetch_static("https://example.com/missing", transport=_transport(404)))
