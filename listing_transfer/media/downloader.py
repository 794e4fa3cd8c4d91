"""Listing media fetch + store with streaming writes."""

from __future__ import annotations

import base64
import hashlib
import logging
import mimetypes
import os
import re
import secrets
from collections.abc import AsyncIterator, Sequence
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

logger = logging.getLogger(__name__)

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.-]+")


class DownloadError(Exception):
    pass


def _is_data_uri(url: str) -> bool:
    return isinstance(url, str) and url.startswith("data:")


def _parse_data_uri(uri: str) -> tuple[bytes, str | None]:
    """Return (bytes, content_type) for a data: URI."""
    header, _, payload = uri.partition(",")
    if not payload:
        return b"", None

    ct = None
    base64_flag = False
    for part in header[5:].split(";"):
        part = part.strip()
        if part.lower() == "base64":
            base64_flag = True
        elif "/" in part and ct is None:
            ct = part

    if base64_flag:
        try:
            return base64.b64decode(payload, validate=False), ct
        except Exception as e:
            raise DownloadError(f"data URI base64 decode failed: {e}") from e
    return unquote(payload).encode("utf-8"), ct


def _extension(content_type: str | None, url: str | None) -> str:
    if content_type:
        ext = mimetypes.guess_extension(content_type.split(";", 1)[0].strip())
        if ext:
            return ".jpg" if ext == ".jpe" else ext
    if url and not _is_data_uri(url):
        suffix = Path(urlparse(url).path).suffix.lower()
        if suffix and len(suffix) <= 6:
            return suffix
    return ".bin"


def safe_namespace(namespace: str) -> str:
    cleaned = _UNSAFE_RE.sub("_", str(namespace)).strip("._")
    return cleaned or "default"


class MediaDownloader:
    """Fetches listing media into `<root>/<namespace>/<index>_<sha12><ext>`.

    `fetch_all` is best-effort: a URL that fails to download keeps its
    original value in the returned list.
    """

    def __init__(
        self,
        root_dir: str | Path,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 60.0,
    ):
        self.root_dir = Path(root_dir)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(timeout_seconds),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def fetch_all(self, urls: Sequence[str], namespace: str) -> list[str]:
        refs: list[str] = []
        for index, url in enumerate(urls, start=1):
            try:
                path = await self.fetch(url, namespace, index)
            except (DownloadError, httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
                logger.warning("Media download failed for %s: %s", url, exc)
                refs.append(url)
                continue
            refs.append(str(path))
        return refs

    async def fetch(self, url: str, namespace: str, index: int = 1) -> Path:
        if not isinstance(url, str) or not url.strip():
            raise DownloadError("url required")
        url = url.strip()

        target_dir = self.root_dir / safe_namespace(namespace)
        target_dir.mkdir(parents=True, exist_ok=True)

        if _is_data_uri(url):
            data, ct = _parse_data_uri(url)

            async def _one() -> AsyncIterator[bytes]:
                yield data

            return await self._write(_one(), target_dir, index, _extension(ct, None))

        async with self.client.stream("GET", url) as resp:
            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise DownloadError(f"download failed ({resp.status_code}): {url}") from e
            ext = _extension(resp.headers.get("content-type"), str(resp.url))
            return await self._write(resp.aiter_bytes(), target_dir, index, ext)

    async def _write(self, chunks: AsyncIterator[bytes], target_dir: Path, index: int, ext: str) -> Path:
        tmp_path = target_dir / f".tmp_{secrets.token_hex(8)}"
        h = hashlib.sha256()
        try:
            with open(tmp_path, "wb") as f:
                async for chunk in chunks:
                    if not chunk:
                        continue
                    h.update(chunk)
                    f.write(chunk)
            final_path = target_dir / f"{index:02d}_{h.hexdigest()[:12]}{ext}"
            os.replace(tmp_path, final_path)
            return final_path
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
