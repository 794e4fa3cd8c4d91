"""Tests for MediaDownloader."""

from __future__ import annotations

import hashlib

import httpx
import pytest

from listing_transfer.media.downloader import MediaDownloader, safe_namespace

JPEG = b"\xff\xd8\xff\xe0fake-jpeg-bytes"


def handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("missing.jpg"):
        return httpx.Response(404)
    return httpx.Response(200, content=JPEG, headers={"content-type": "image/jpeg"})


def make_downloader(tmp_path) -> MediaDownloader:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MediaDownloader(tmp_path / "media", client=client)


@pytest.mark.asyncio
async def test_fetch_names_file_by_index_and_digest(tmp_path):
    downloader = make_downloader(tmp_path)

    path = await downloader.fetch("https://cdn.example.com/a.jpg", "job_1", 3)

    digest = hashlib.sha256(JPEG).hexdigest()[:12]
    assert path.name == f"03_{digest}.jpg"
    assert path.parent == tmp_path / "media" / "job_1"
    assert path.read_bytes() == JPEG
    assert not list(path.parent.glob(".tmp_*"))


@pytest.mark.asyncio
async def test_fetch_all_keeps_original_url_on_failure(tmp_path):
    downloader = make_downloader(tmp_path)
    urls = ["https://cdn.example.com/a.jpg", "https://cdn.example.com/missing.jpg"]

    refs = await downloader.fetch_all(urls, "job_2")

    assert refs[0].endswith(".jpg") and refs[0] != urls[0]
    assert refs[1] == urls[1]


@pytest.mark.asyncio
async def test_fetch_all_keeps_malformed_url(tmp_path):
    downloader = make_downloader(tmp_path)
    urls = ["https://[not-an-ip]/x.jpg", "https://cdn.example.com/a.jpg"]

    refs = await downloader.fetch_all(urls, "job_5")

    assert refs[0] == urls[0]
    assert refs[1].endswith(".jpg") and refs[1] != urls[1]


@pytest.mark.asyncio
async def test_data_uri_is_decoded(tmp_path):
    downloader = make_downloader(tmp_path)

    path = await downloader.fetch("data:image/png;base64,aGVsbG8=", "job_3")

    assert path.suffix == ".png"
    assert path.read_bytes() == b"hello"


@pytest.mark.asyncio
async def test_blank_url_is_kept(tmp_path):
    downloader = make_downloader(tmp_path)
    assert await downloader.fetch_all(["  "], "job_4") == ["  "]


def test_safe_namespace():
    assert safe_namespace("job 1/../x") == "job_1_.._x"
    assert safe_namespace("...") == "default"
