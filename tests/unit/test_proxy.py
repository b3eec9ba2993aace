"""
Unit tests for the static content proxy
"""

import httpx
import pytest

from subtrack.web.proxy import normalize_path

pytestmark = pytest.mark.unit

INDEX = "/subtrack/index.html"


class TestNormalizePath:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/", "/index.html"),
            ("", "/index.html"),
            ("/dashboard", "/index.html"),
            ("/jobs/edit/", "/index.html"),
            ("/assets/app.js", "/assets/app.js"),
            ("/favicon.ico", "/favicon.ico"),
        ],
    )
    def test_normalize(self, path, expected):
        assert normalize_path(path) == expected


class TestForward:
    @pytest.mark.asyncio
    async def test_root_served_from_index(self, proxy, upstream):
        upstream.respond(INDEX, content=b"<html>app</html>", headers={"content-type": "text/html"})

        response = await proxy.forward("/", "text/html")

        assert response.status_code == 200
        assert response.body == b"<html>app</html>"
        assert upstream.paths == [INDEX]

    @pytest.mark.asyncio
    async def test_request_headers_rewritten(self, proxy, upstream):
        upstream.respond("/subtrack/assets/app.js", content=b"js")

        await proxy.forward("/assets/app.js", None)

        sent = upstream.requests[0]
        assert str(sent.url) == "https://static.example.test/subtrack/assets/app.js"
        assert sent.method == "GET"
        assert sent.headers["host"] == "static.example.test"
        assert sent.headers["user-agent"] == "SubTrack-Pro-Worker"
        assert sent.headers["accept"] == "*/*"

    @pytest.mark.asyncio
    async def test_client_accept_header_preserved(self, proxy, upstream):
        upstream.respond("/subtrack/style.css", content=b"body{}")

        await proxy.forward("/style.css", "text/css,*/*;q=0.1")

        assert upstream.requests[0].headers["accept"] == "text/css,*/*;q=0.1"

    @pytest.mark.asyncio
    async def test_framing_and_csp_headers_stripped(self, proxy, upstream):
        upstream.respond(
            INDEX,
            content=b"ok",
            headers={
                "content-type": "text/html",
                "x-frame-options": "DENY",
                "content-security-policy": "default-src 'none'",
                "cache-control": "max-age=600",
            },
        )

        response = await proxy.forward("/", None)

        assert "x-frame-options" not in response.headers
        assert "content-security-policy" not in response.headers
        assert response.headers["cache-control"] == "max-age=600"
        assert response.headers["x-proxied-by"] == "SubTrack-Proxy"

    @pytest.mark.asyncio
    async def test_extensionless_404_retried_once_against_index(self, proxy, upstream):
        calls = {"n": 0}

        def index_handler(request):
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(404, content=b"nope")
            return httpx.Response(200, content=b"<html>spa</html>")

        upstream.routes[INDEX] = index_handler

        response = await proxy.forward("/dashboard", "text/html")

        assert upstream.paths == [INDEX, INDEX]
        assert response.status_code == 200
        assert response.body == b"<html>spa</html>"

    @pytest.mark.asyncio
    async def test_fallback_response_relayed_whatever_its_status(self, proxy, upstream):
        upstream.respond(INDEX, status_code=404, content=b"gone")

        response = await proxy.forward("/dashboard", None)

        assert len(upstream.requests) == 2
        assert response.status_code == 404
        assert response.body == b"gone"

    @pytest.mark.asyncio
    async def test_404_for_asset_not_retried(self, proxy, upstream):
        response = await proxy.forward("/missing.png", None)

        assert upstream.paths == ["/subtrack/missing.png"]
        assert response.status_code == 404
        assert response.body.decode() == (
            "Origin Error: 404 for https://static.example.test/subtrack/missing.png"
        )
        assert response.headers["content-type"].startswith("text/plain")

    @pytest.mark.asyncio
    async def test_other_upstream_errors_passed_through(self, proxy, upstream):
        upstream.respond("/subtrack/app.js", status_code=503, content=b"busy")

        response = await proxy.forward("/app.js", None)

        assert response.status_code == 503
        assert response.body.startswith(b"Origin Error: 503")
        assert len(upstream.requests) == 1

    @pytest.mark.asyncio
    async def test_network_failure_is_502_without_retry(self, proxy, upstream):
        upstream.fail(INDEX, httpx.ConnectError("connection refused"))

        response = await proxy.forward("/", None)

        assert response.status_code == 502
        assert response.body.startswith(b"Gateway Error:")
        assert len(upstream.requests) == 1
