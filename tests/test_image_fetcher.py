"""Tests for downloading source images to temporary files."""

from __future__ import annotations

import asyncio
import io

import httpx
import pytest
from PIL import Image

from services.errors import FetchError
from services.image_fetcher import (
    download_to_temp_file,
    guess_image_mime,
    remove_temp_files,
)


def _make_image_bytes(image_format: str) -> bytes:
    image = Image.new("RGB", (32, 48), color="blue")
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


async def _download(handler, url: str, prefix: str = "person"):
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        return await download_to_temp_file(url, prefix, client)


def test_download_writes_image_to_temp_file() -> None:
    jpeg = _make_image_bytes("JPEG")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=jpeg, headers={"content-type": "image/jpeg"})

    path = asyncio.run(_download(handler, "https://example.com/p.jpg"))
    try:
        assert path.exists()
        assert path.name.startswith("person_")
        assert path.suffix == ".jpg"
        assert path.read_bytes() == jpeg
    finally:
        remove_temp_files([path])
    assert not path.exists()


def test_download_uses_detected_format_for_suffix() -> None:
    png = _make_image_bytes("PNG")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=png)

    path = asyncio.run(_download(handler, "https://example.com/g", prefix="garment"))
    try:
        assert path.suffix == ".png"
    finally:
        remove_temp_files([path])


def test_download_rejects_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(_download(handler, "https://example.com/missing.jpg"))
    assert "HTTP 404" in str(excinfo.value)


def test_download_rejects_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError):
        asyncio.run(_download(handler, "https://example.com/p.jpg"))


def test_download_rejects_non_image_content() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>login</html>")

    with pytest.raises(FetchError):
        asyncio.run(_download(handler, "https://example.com/p.jpg"))


def test_guess_image_mime() -> None:
    assert guess_image_mime(_make_image_bytes("PNG")) == "image/png"
    assert guess_image_mime(_make_image_bytes("JPEG")) == "image/jpeg"
    assert guess_image_mime(b"garbage") == "application/octet-stream"


def test_remove_temp_files_ignores_missing(tmp_path) -> None:
    remove_temp_files([tmp_path / "never-created.jpg"])
