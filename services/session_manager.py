"""Cached connection to the hosted IDM-VTON Space"""
import asyncio
import logging
from typing import Any, Callable, Optional

from gradio_client import Client

from config import HUGGINGFACE_API_KEY, PROVISION_TIMEOUT, SPACE_ID
from services.errors import ConfigurationError, SpaceConnectionError

logger = logging.getLogger(__name__)


def connect_client(space_id: str, hf_token: Optional[str]) -> Client:
    """Open a Gradio client that returns file descriptors instead of downloading outputs"""
    return Client(space_id, hf_token=hf_token, download_files=False, verbose=False)


def duplicate_space(space_id: str, hf_token: Optional[str]) -> Client:
    """Duplicate the Space into a private copy and connect to it"""
    duplicate = Client.duplicate(space_id, hf_token=hf_token, private=True, verbose=False)
    return connect_client(duplicate.space_id, hf_token)


def mask_token(token: Optional[str]) -> str:
    return f"YES ({token[:5]}...)" if token else "NO"


class SessionManager:
    """Owns the single shared Gradio client for the process.

    ``acquire`` creates the client on first use and hands back the cached one
    afterwards. Concurrent first callers share one connection attempt. Any
    failure seen by a caller should be followed by ``invalidate`` so the next
    ``acquire`` starts over.
    """

    def __init__(
        self,
        hf_token: Optional[str] = HUGGINGFACE_API_KEY,
        space_id: str = SPACE_ID,
        provision_timeout: float = PROVISION_TIMEOUT,
        connect: Callable[[str, Optional[str]], Any] = connect_client,
        duplicate: Callable[[str, Optional[str]], Any] = duplicate_space,
    ):
        self.hf_token = hf_token
        self.space_id = space_id
        self.provision_timeout = provision_timeout
        self._connect = connect
        self._duplicate = duplicate
        self._client: Optional[Any] = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> bool:
        return self._client is not None

    async def acquire(self) -> Any:
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is not None:
                return self._client

            logger.info(f"HF Token configured: {mask_token(self.hf_token)}")
            if not self.hf_token:
                raise ConfigurationError("HUGGINGFACE_API_KEY is not configured")

            self._client = await self._open()
            return self._client

    async def _open(self) -> Any:
        try:
            client = await asyncio.to_thread(self._connect, self.space_id, self.hf_token)
            logger.info(f"Connected to Space: {self.space_id}")
            return client
        except Exception as e:
            logger.warning(f"Direct connection to {self.space_id} failed: {str(e)}. Duplicating Space.")

        try:
            client = await asyncio.wait_for(
                asyncio.to_thread(self._duplicate, self.space_id, self.hf_token),
                timeout=self.provision_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Duplicating {self.space_id} timed out after {self.provision_timeout}s")
            raise SpaceConnectionError(
                f"Timed out after {self.provision_timeout:.0f}s provisioning a copy of {self.space_id}"
            ) from e
        except Exception as e:
            logger.error(f"Duplicating {self.space_id} failed: {str(e)}")
            raise SpaceConnectionError(f"Could not connect to {self.space_id}: {str(e)}") from e

        logger.info(f"Connected to private copy of Space: {self.space_id}")
        return client

    async def probe(self) -> None:
        """Connect once, bypassing the cache and the duplication fallback"""
        await asyncio.to_thread(self._connect, self.space_id, self.hf_token)

    def invalidate(self) -> None:
        if self._client is not None:
            logger.info("Discarding cached Gradio client")
        self._client = None
