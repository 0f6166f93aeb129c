"""Download source and result images over HTTP"""
import asyncio
import logging
import os
import tempfile
from io import BytesIO
from pathlib import Path
from typing import Iterable

import httpx
from PIL import Image, UnidentifiedImageError

from services.errors import FetchError

logger = logging.getLogger(__name__)


async def fetch_bytes(url: str, client: httpx.AsyncClient) -> bytes:
    """GET a URL and return the raw response body"""
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error(f"HTTP error downloading {url}: {e.response.status_code} - {e.response.text}")
        raise FetchError(f"Failed to download image from {url}: HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"Error downloading image from {url}: {str(e)}")
        raise FetchError(f"Failed to download image from {url}: {str(e)}") from e
    logger.info(f"Downloaded {len(response.content)} bytes from: {url}")
    return response.content


def detect_image_format(data: bytes) -> str:
    """Return the Pillow format name (JPEG, PNG, ...) of an encoded image"""
    try:
        with Image.open(BytesIO(data)) as img:
            return img.format
    except (UnidentifiedImageError, OSError) as e:
        raise FetchError("Downloaded content is not a readable image") from e


def guess_image_mime(data: bytes) -> str:
    try:
        image_format = detect_image_format(data)
    except FetchError:
        return "application/octet-stream"
    return Image.MIME.get(image_format, "application/octet-stream")


def _write_temp_file(data: bytes, prefix: str, suffix: str) -> Path:
    fd, name = tempfile.mkstemp(prefix=f"{prefix}_", suffix=suffix)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)
    return Path(name)


async def download_to_temp_file(url: str, prefix: str, client: httpx.AsyncClient) -> Path:
    """Download an image to a temporary file and return its path.

    The caller owns the file and must delete it.
    """
    data = await fetch_bytes(url, client)
    image_format = detect_image_format(data)
    suffix = ".jpg" if image_format == "JPEG" else f".{image_format.lower()}"
    path = await asyncio.to_thread(_write_temp_file, data, prefix, suffix)
    logger.info(f"Saved {prefix} image to temp file: {path}")
    return path


def remove_temp_files(paths: Iterable[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to cleanup temp file {path}: {str(e)}")
