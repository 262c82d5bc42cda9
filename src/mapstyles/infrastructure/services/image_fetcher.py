"""Default image fetch capability backed by :mod:`httpx`.

Symbol sources come in three shapes: remote ``http(s)`` URLs, inline ``data:``
URIs and local paths (optionally as ``file://`` URLs, optionally relative to a
base directory).  :class:`HttpImageFetcher` handles all three; anything that
needs authentication or caching at the transport level should implement
:class:`~mapstyles.application.interfaces.IImageFetcher` instead.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote_to_bytes, urlparse
from urllib.request import url2pathname

import httpx

from ...application.interfaces import IImageFetcher
from ...config import FETCH_TIMEOUT_SEC
from ...errors import SymbolFetchError, SymbolParseError

_LOGGER = logging.getLogger(__name__)


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Return ``data`` wrapped in a base64 ``data:`` URI."""

    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Return ``(mime_type, payload)`` for a ``data:`` URI."""

    if not uri.startswith("data:") or "," not in uri:
        raise SymbolParseError(f"Not a data URI: {uri[:32]!r}")
    header, payload = uri[5:].split(",", 1)
    parameters = header.split(";")
    mime_type = parameters[0] or "text/plain"
    if "base64" in parameters[1:]:
        try:
            return mime_type, base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise SymbolParseError("Invalid base64 payload in data URI") from exc
    return mime_type, unquote_to_bytes(payload)


class HttpImageFetcher(IImageFetcher):
    """Fetch image bytes over HTTP, from ``data:`` URIs or from disk.

    Parameters
    ----------
    timeout:
        Timeout in seconds applied to HTTP requests.
    client:
        Optional pre-configured :class:`httpx.AsyncClient`.  When omitted a
        client is created lazily and closed by :meth:`close`.
    base_path:
        Directory used to resolve relative local paths.
    """

    def __init__(
        self,
        *,
        timeout: float = FETCH_TIMEOUT_SEC,
        client: Optional[httpx.AsyncClient] = None,
        base_path: Path | str | None = None,
    ) -> None:
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._base_path = Path(base_path) if base_path is not None else None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpImageFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    async def fetch(self, url: str) -> bytes:
        if url.startswith("data:"):
            return decode_data_uri(url)[1]

        parsed = urlparse(url)
        if parsed.scheme in ("http", "https"):
            client = await self._get_client()
            try:
                response = await client.get(url)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise SymbolFetchError(f"Unable to fetch '{url}': {exc}") from exc
            _LOGGER.debug("Fetched %d bytes from %s", len(response.content), url)
            return response.content

        if parsed.scheme == "file":
            path = Path(url2pathname(parsed.path))
        elif parsed.scheme and len(parsed.scheme) > 1:
            raise SymbolFetchError(f"Unsupported URL scheme '{parsed.scheme}' in '{url}'")
        else:
            # Single letter "schemes" are Windows drive letters.
            path = Path(url)
        if not path.is_absolute() and self._base_path is not None:
            path = self._base_path / path
        try:
            return path.read_bytes()
        except OSError as exc:
            raise SymbolFetchError(f"Unable to read '{path}'") from exc


__all__ = ["HttpImageFetcher", "decode_data_uri", "encode_data_uri"]
