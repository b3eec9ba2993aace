"""Static content proxy to the upstream asset origin.

Authenticated page requests are served from a separate static host. The
gateway rewrites request headers, hides upstream 404s for client-routed paths
behind the index document, and strips framing/CSP headers from what it relays.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response

from subtrack.core.config import Settings
from subtrack.core.security import sanitize_error_message

logger = logging.getLogger(__name__)

STRIPPED_RESPONSE_HEADERS = {
    "x-frame-options",
    "content-security-policy",
    # Invalidated once httpx has decoded and buffered the body
    "content-encoding",
    "content-length",
    "transfer-encoding",
    "connection",
    "keep-alive",
}


def has_extension(path: str) -> bool:
    return "." in path


def normalize_path(path: str, index_document: str = "/index.html") -> str:
    """Map the root and extension-less (client-routed) paths to the index document."""
    if path in ("", "/") or not has_extension(path):
        return index_document
    return path


class StaticContentProxy:
    """Forwards requests to ``upstream_origin + upstream_path``."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    def upstream_url(self, path: str) -> str:
        return f"{self.settings.upstream_origin}{self.settings.upstream_path}{path}"

    def _request_headers(self, accept: Optional[str]) -> dict:
        return {
            "Host": self.settings.upstream_host,
            "User-Agent": self.settings.proxy_user_agent,
            "Accept": accept or "*/*",
        }

    def _relay(self, upstream: httpx.Response) -> Response:
        headers = {
            name: value
            for name, value in upstream.headers.items()
            if name.lower() not in STRIPPED_RESPONSE_HEADERS
        }
        headers["X-Proxied-By"] = self.settings.proxy_marker
        return Response(content=upstream.content, status_code=upstream.status_code, headers=headers)

    async def forward(self, request_path: str, accept: Optional[str] = None) -> Response:
        """
        Fetch ``request_path`` from the upstream origin and build the relayed response.

        Only the index fallback for client-routed 404s is retried; network
        failures surface as 502 on the first attempt.
        """
        path = normalize_path(request_path, self.settings.index_document)
        url = self.upstream_url(path)
        headers = self._request_headers(accept)

        try:
            upstream = await self.client.get(url, headers=headers)

            if upstream.status_code == 404 and not has_extension(request_path):
                fallback_url = self.upstream_url(self.settings.index_document)
                logger.debug("Upstream 404 for %s, falling back to %s", url, fallback_url)
                upstream = await self.client.get(fallback_url, headers=headers)
                return self._relay(upstream)

            if not upstream.is_success:
                logger.warning("Upstream returned %s for %s", upstream.status_code, url)
                return PlainTextResponse(
                    f"Origin Error: {upstream.status_code} for {url}",
                    status_code=upstream.status_code,
                )

            return self._relay(upstream)
        except httpx.RequestError as e:
            logger.error("Upstream request failed for %s: %s", url, e)
            return PlainTextResponse(
                f"Gateway Error: {sanitize_error_message(str(e))}",
                status_code=502,
            )


def build_upstream_client(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """HTTP client for the upstream origin."""
    return httpx.AsyncClient(
        timeout=settings.proxy_timeout,
        follow_redirects=True,
        transport=transport,
    )


def get_proxy(request: Request) -> StaticContentProxy:
    """Dependency returning the proxy bound to the app-wide upstream client."""
    return request.app.state.proxy
