"""Server-side fetch of remote result media.

Result files on a private Space need the access token, which must never
reach the browser. The browser asks this proxy for a URL; the proxy fetches
it with the token and streams the bytes back.
"""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote, urlparse

import httpx

from visionproxy.errors import InvalidRequestError, ProxyFetchError

if TYPE_CHECKING:
    from visionproxy.config import VisionProxyConfig

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_HOSTS = ("huggingface.co",)
DEFAULT_ALLOWED_SUFFIXES = (".hf.space", ".huggingface.co")


def resolve_media_url(target: str, space_url: str) -> str:
    """Turn a result reference into an absolute URL.

    Absolute http(s) URLs pass through; anything else is treated as a file
    path on the Space and served through its file route.
    """
    target = target.strip()
    if target.startswith(("http://", "https://")):
        return target
    return f"{space_url.rstrip('/')}/gradio_api/file={quote(target, safe='/')}"


def guess_content_type(url: str, default: str) -> str:
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    return guessed or default


@dataclass(slots=True)
class ProxiedMedia:
    """An open upstream response ready to be streamed."""

    content_type: str
    response: httpx.Response
    client: httpx.AsyncClient

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self.response.aiter_bytes():
            yield chunk

    async def aclose(self) -> None:
        await self.response.aclose()
        await self.client.aclose()


class MediaProxy:
    """Fetches remote media with the configured credential."""

    def __init__(
        self,
        config: VisionProxyConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def is_allowed_host(self, host: str | None) -> bool:
        if not host:
            return False
        host = host.lower()
        allowed = {h.lower() for h in self._config.proxy.allowed_hosts}
        allowed.update(DEFAULT_ALLOWED_HOSTS)
        if self._config.remote.host:
            allowed.add(self._config.remote.host.lower())
        return host in allowed or host.endswith(DEFAULT_ALLOWED_SUFFIXES)

    def _headers(self) -> dict[str, str]:
        token = self._config.remote.token()
        if token is None:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _check_hop(self, request: httpx.Request) -> None:
        # Runs before every request the client sends, redirects included.
        if request.url.scheme not in ("http", "https") or not self.is_allowed_host(
            request.url.host
        ):
            raise ProxyFetchError(f"Redirected to disallowed host {request.url.host}")

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self._config.proxy.timeout_seconds,
            follow_redirects=True,
            event_hooks={"request": [self._check_hop]},
        )

    async def open(self, target: str | None) -> ProxiedMedia:
        """Start fetching a remote resource.

        The caller owns the returned stream and must aclose() it.

        Raises:
            InvalidRequestError: If the URL is missing, malformed or points
                at a host outside the allow-list.
            ProxyFetchError: If the upstream request fails or redirects to a
                host outside the allow-list.
        """
        if not target or not target.strip():
            raise InvalidRequestError("No image URL provided")

        url = resolve_media_url(target, self._config.remote.space_url)
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            raise InvalidRequestError("Invalid image URL", url)
        if not self.is_allowed_host(parsed.hostname):
            raise InvalidRequestError(
                "Host not allowed", f"Refusing to proxy {parsed.hostname}"
            )

        client = self._new_client()
        try:
            request = client.build_request("GET", url, headers=self._headers())
            response = await client.send(request, stream=True)
        except ProxyFetchError:
            await client.aclose()
            raise
        except httpx.HTTPError as e:
            await client.aclose()
            raise ProxyFetchError(str(e) or type(e).__name__) from e

        if response.is_error:
            await response.aclose()
            await client.aclose()
            raise ProxyFetchError(
                f"Upstream returned {response.status_code} {response.reason_phrase}"
            )

        content_type = response.headers.get("content-type") or guess_content_type(
            url, self._config.proxy.default_content_type
        )
        logger.info("Proxying %s (%s)", parsed.path, content_type)
        return ProxiedMedia(content_type=content_type, response=response, client=client)
