"""Resolve image references (local paths, ``data:`` URLs or remote URLs) to raw bytes."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
from pathlib import Path
from urllib.parse import unquote_to_bytes, urlparse

import httpx

from siena.errors.exceptions import ResolutionError

logger = logging.getLogger(__name__)

_REMOTE_SCHEMES = {"http", "https"}

# A one-letter "scheme" is a Windows drive (C:\...), not a URL
_URL_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]+:")


def is_url(src: str) -> bool:
    return _URL_SCHEME.match(src) is not None


def is_remote(src: str) -> bool:
    parsed = urlparse(src)
    return parsed.scheme.lower() in _REMOTE_SCHEMES and bool(parsed.netloc)


def decode_data_url(src: str) -> bytes:
    """Return the payload of a ``data:[<mediatype>][;base64],<data>`` URL."""
    header, sep, payload = src.partition(",")
    if not sep:
        raise ResolutionError(f"Malformed data URL {src[:40]!r}: no ',' separator", src=src)
    body = unquote_to_bytes(payload)
    if not header.lower().endswith(";base64"):
        return body
    try:
        return base64.b64decode(body)
    except binascii.Error as e:
        raise ResolutionError(
            f"Malformed data URL {src[:40]!r}: {e}", src=src, original=e
        ) from e


def resolve_local_path(src: str, document_path: Path, build_root: Path) -> Path:
    """Map a local ``src`` to a filesystem path.

    ``./x`` and ``../x`` are relative to the referencing document's directory;
    anything else (including ``/x``) is relative to the build root.
    """
    if src.startswith("."):
        return document_path.parent / src
    return build_root / src.lstrip("/")


class ImageResolver:
    """Fetches image bytes from disk, ``data:`` URLs or over HTTP.

    The HTTP client is created lazily and reused for the resolver's lifetime;
    pass ``client`` to supply your own (e.g. with a mock transport).
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def resolve(
        self,
        src: str,
        document_path: Path | None,
        build_root: Path,
    ) -> bytes | None:
        """Return the raw bytes for ``src``.

        Any ``src`` with a URL scheme is a URL. ``data:`` URLs are decoded in
        place and ``http``/``https`` URLs are fetched; no other scheme is
        supported. Returns None for a local image when the document has no
        path on disk; such references are skipped. Raises
        :class:`ResolutionError` when the file or URL cannot be read.
        """
        if is_url(src):
            scheme = src.split(":", 1)[0].lower()
            if scheme == "data":
                data = decode_data_url(src)
                logger.debug("Decoded data URL (%d bytes)", len(data))
                return data
            if is_remote(src):
                return await self._fetch(src)
            raise ResolutionError(f"Unsupported image URL {src!r}", src=src)
        if document_path is None:
            logger.debug("Skipping %s: document has no path to resolve against", src)
            return None
        path = resolve_local_path(src, document_path, build_root)
        return await self._read(src, path)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _fetch(self, url: str) -> bytes:
        client = self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ResolutionError(
                f"Fetching {url} returned HTTP {e.response.status_code}",
                src=url,
                http_status=e.response.status_code,
                original=e,
            ) from e
        except httpx.HTTPError as e:
            raise ResolutionError(f"Fetching {url} failed: {e}", src=url, original=e) from e
        logger.debug("Fetched %s (%d bytes)", url, len(response.content))
        return response.content

    @staticmethod
    async def _read(src: str, path: Path) -> bytes:
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ResolutionError(
                f"Cannot read image {src!r} at {path}: {e}", src=src, original=e
            ) from e

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            kwargs: dict = {"follow_redirects": True}
            if self._timeout:
                kwargs["timeout"] = self._timeout
            self._client = httpx.AsyncClient(**kwargs)
        return self._client
