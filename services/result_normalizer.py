"""Turn the outputs of the /tryon endpoint into image bytes.

The Space returns its try-on image in one of several shapes depending on
the client options and the deployment: a file descriptor with a remote
``url``, a descriptor with a local ``path``, a bare URL string, or the
encoded bytes themselves. ``parse_output`` decides which shape it got and
``resolve_output`` reads the bytes for that shape.
"""
import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import httpx

from services.errors import FetchError, FormatError
from services.image_fetcher import fetch_bytes

logger = logging.getLogger(__name__)

UNEXPECTED_FORMAT_MESSAGE = "Unexpected output format from Gradio client"


@dataclass(frozen=True)
class RemoteFileOutput:
    url: str


@dataclass(frozen=True)
class LocalFileOutput:
    path: str


@dataclass(frozen=True)
class UrlStringOutput:
    url: str


@dataclass(frozen=True)
class InlineBlobOutput:
    data: bytes


@dataclass(frozen=True)
class UnrecognizedOutput:
    raw: Any


TryOnOutput = Union[RemoteFileOutput, LocalFileOutput, UrlStringOutput, InlineBlobOutput, UnrecognizedOutput]


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        value = raw.get(name)
    else:
        value = getattr(raw, name, None)
    return value if isinstance(value, str) and value else None


def parse_output(raw: Any) -> TryOnOutput:
    """Classify a single output; the first matching shape wins"""
    if not isinstance(raw, (str, bytes, bytearray, memoryview)):
        url = _field(raw, "url")
        if url:
            return RemoteFileOutput(url)
        path = _field(raw, "path")
        if path:
            return LocalFileOutput(path)
    if isinstance(raw, str) and raw.startswith("http"):
        return UrlStringOutput(raw)
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return InlineBlobOutput(bytes(raw))
    return UnrecognizedOutput(raw)


def first_output(envelope: Any) -> Any:
    """Return the try-on image output; the mask preview after it is dropped"""
    if isinstance(envelope, Mapping):
        envelope = envelope.get("data")
    if isinstance(envelope, Sequence) and not isinstance(envelope, (str, bytes, bytearray)) and envelope:
        return envelope[0]
    logger.error(f"Unexpected result envelope: {envelope!r}")
    raise FormatError(UNEXPECTED_FORMAT_MESSAGE)


def describe_envelope(envelope: Any) -> list:
    """Summarize the shape of each output for logging"""
    if isinstance(envelope, Mapping):
        envelope = envelope.get("data")
    if not isinstance(envelope, Sequence) or isinstance(envelope, (str, bytes, bytearray)):
        return [type(envelope).__name__]
    return [[str(k) for k in item.keys()] if isinstance(item, Mapping) else type(item).__name__ for item in envelope]


async def resolve_output(output: TryOnOutput, client: httpx.AsyncClient) -> bytes:
    if isinstance(output, (RemoteFileOutput, UrlStringOutput)):
        logger.info(f"Downloading result from: {output.url}")
        return await fetch_bytes(output.url, client)
    if isinstance(output, LocalFileOutput):
        # Only happens when the Space runs on the same host
        try:
            return await asyncio.to_thread(Path(output.path).read_bytes)
        except OSError as e:
            raise FetchError(f"Failed to read result file {output.path}: {str(e)}") from e
    if isinstance(output, InlineBlobOutput):
        return output.data
    logger.error(f"Unexpected output format: {output.raw!r}")
    raise FormatError(UNEXPECTED_FORMAT_MESSAGE)


async def normalize_output(raw: Any, client: httpx.AsyncClient) -> bytes:
    return await resolve_output(parse_output(raw), client)
