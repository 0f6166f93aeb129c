"""Virtual try-on through the hosted IDM-VTON Space"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from gradio_client import handle_file

from config import (
    AUTO_CROP,
    AUTO_MASK,
    DENOISE_STEPS,
    GARMENT_DESCRIPTION,
    IMAGE_FETCH_TIMEOUT,
    SEED,
    TRYON_API_NAME,
)
from services.errors import RemoteInferenceError
from services.image_fetcher import download_to_temp_file, remove_temp_files
from services.result_normalizer import describe_envelope, first_output, normalize_output
from services.session_manager import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class TryOnResult:
    success: bool
    processing_time: int
    image_buffer: Optional[bytes] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "imageBuffer": self.image_buffer, "processingTime": self.processing_time}
        return {"success": False, "error": self.error, "processingTime": self.processing_time}


@dataclass
class ModelStatus:
    available: bool
    status: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"available": self.available}
        if self.status is not None:
            result["status"] = self.status
        if self.error is not None:
            result["error"] = self.error
        return result


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


def _call_tryon(client: Any, person_path: Path, garment_path: Path) -> Any:
    # The ImageEditor input on the Space expects {background, layers, composite}
    return client.predict(
        dict={"background": handle_file(str(person_path)), "layers": [], "composite": None},
        garm_img=handle_file(str(garment_path)),
        garment_des=GARMENT_DESCRIPTION,
        is_checked=AUTO_MASK,
        is_checked_crop=AUTO_CROP,
        denoise_steps=DENOISE_STEPS,
        seed=SEED,
        api_name=TRYON_API_NAME,
    )


class TryOnService:
    def __init__(self, sessions: SessionManager, http_client: Optional[httpx.AsyncClient] = None):
        self.sessions = sessions
        self._http_client = http_client

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=IMAGE_FETCH_TIMEOUT, follow_redirects=True) as client:
            yield client

    async def _download_sources(
        self, http: httpx.AsyncClient, person_image_url: str, garment_image_url: str, temp_paths: List[Path]
    ) -> List[Path]:
        logger.info("Downloading images...")
        results = await asyncio.gather(
            download_to_temp_file(person_image_url, "person", http),
            download_to_temp_file(garment_image_url, "garment", http),
            return_exceptions=True,
        )
        # Track every file that got written, even if the other download failed
        temp_paths.extend(r for r in results if isinstance(r, Path))
        for r in results:
            if isinstance(r, BaseException):
                raise r
        logger.info("Images downloaded")
        return list(results)

    async def _predict(self, client: Any, person_path: Path, garment_path: Path) -> Any:
        logger.info("Sending request to Hugging Face Space (this may take 30-60s)...")
        try:
            return await asyncio.to_thread(_call_tryon, client, person_path, garment_path)
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from Space: {e.response.status_code} - {e.response.text}")
            raise RemoteInferenceError(
                f"Try-on request failed with status {e.response.status_code}",
                status_code=e.response.status_code,
                body=e.response.text,
            ) from e
        except Exception as e:
            logger.error(f"Try-on request to Space failed: {str(e)}")
            raise RemoteInferenceError(f"Try-on request failed: {str(e)}") from e

    async def perform_tryon(self, person_image_url: str, garment_image_url: str) -> TryOnResult:
        """Run one try-on and return the image bytes or the error, never raising"""
        start = time.monotonic()
        logger.info(f"Starting Try-On with model: {self.sessions.space_id}")
        temp_paths: List[Path] = []

        try:
            client = await self.sessions.acquire()
            async with self._http() as http:
                person_path, garment_path = await self._download_sources(
                    http, person_image_url, garment_image_url, temp_paths
                )
                envelope = await self._predict(client, person_path, garment_path)
                logger.info(f"Result structure: {describe_envelope(envelope)}")

                image_bytes = await normalize_output(first_output(envelope), http)

            processing_time = _elapsed_ms(start)
            logger.info(f"Try-on completed in {processing_time}ms")
            return TryOnResult(success=True, processing_time=processing_time, image_buffer=image_bytes)

        except Exception as e:
            # The failure may come from a broken connection, so start fresh next time
            self.sessions.invalidate()
            processing_time = _elapsed_ms(start)
            logger.error(f"AI Service Error after {processing_time}ms: {type(e).__name__}: {str(e)}")
            return TryOnResult(
                success=False,
                processing_time=processing_time,
                error=str(e) or "Try-on processing failed",
            )
        finally:
            remove_temp_files(temp_paths)

    async def check_model_status(self) -> ModelStatus:
        """Try one direct connection to the Space, without caching or duplication"""
        try:
            await self.sessions.probe()
        except Exception as e:
            logger.warning(f"Model status check failed: {str(e)}")
            return ModelStatus(available=False, error=str(e))
        return ModelStatus(available=True, status="Connected")
