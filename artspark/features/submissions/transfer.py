"""
Image transfer: compress a local image and upload it to object storage.

Failures are classified so callers can tell retryable from rejected uploads:
TransientIOError for network errors, timeouts and 5xx/429 responses,
PermanentIOError for unreadable images and other 4xx responses.
"""
from __future__ import annotations

import asyncio
import io
from pathlib import Path
from typing import Dict, Optional, Protocol, Set
from urllib.parse import unquote, urlparse

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from artspark.core.errors import PermanentIOError, TransientIOError
from artspark.core.logging import log_event

MAX_IMAGE_DIMENSION = 2048
COMPRESSION_QUALITY = 80
UPLOAD_TIMEOUT_SECONDS = 15.0


class ImageTransfer(Protocol):
    async def compress_and_upload(self, local_ref: str, user_id: str, submission_id: str, index: int) -> str:
        """Return the remote reference of the uploaded image."""
        ...


def object_path(user_id: str, submission_id: str, index: int, ext: str = "jpg") -> str:
    return f"{user_id}/{submission_id}_{index}.{ext}"


def _local_path(local_ref: str) -> Path:
    parsed = urlparse(local_ref)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(local_ref)


def compress_image(data: bytes, max_dimension: int = MAX_IMAGE_DIMENSION, quality: int = COMPRESSION_QUALITY) -> bytes:
    """Downscale to fit max_dimension on the long side and re-encode as JPEG."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.thumbnail((max_dimension, max_dimension))
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality, optimize=True)
            return out.getvalue()
    except (UnidentifiedImageError, OSError) as exc:
        raise PermanentIOError(f"Image could not be decoded: {exc}") from exc


class SimulatedImageTransfer:
    """Keeps uploads in memory. ``fail_with`` makes every upload raise that error."""

    def __init__(self, base_url: str = "memory://responses"):
        self._base_url = base_url.rstrip("/")
        self.uploads: Dict[str, str] = {}
        self.fail_with: Optional[Exception] = None
        self.failing_refs: Set[str] = set()
        self.delay_seconds: float = 0.0

    async def compress_and_upload(self, local_ref: str, user_id: str, submission_id: str, index: int) -> str:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.fail_with is not None:
            raise self.fail_with
        if local_ref in self.failing_refs:
            raise TransientIOError(f"Simulated upload failure for {local_ref}")
        remote = f"{self._base_url}/{object_path(user_id, submission_id, index)}"
        self.uploads[remote] = local_ref
        return remote


class HttpImageTransfer:
    def __init__(
        self,
        base_url: str,
        bucket: str = "responses",
        api_key: Optional[str] = None,
        *,
        timeout: float = UPLOAD_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _read(self, local_ref: str) -> bytes:
        path = _local_path(local_ref)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise PermanentIOError(f"Local image not found: {local_ref}") from exc
        except OSError as exc:
            raise TransientIOError(f"Local image could not be read: {exc}") from exc

    def _prepare(self, local_ref: str) -> bytes:
        return compress_image(self._read(local_ref))

    async def compress_and_upload(self, local_ref: str, user_id: str, submission_id: str, index: int) -> str:
        body = await asyncio.to_thread(self._prepare, local_ref)
        url = f"{self._base_url}/{self._bucket}/{object_path(user_id, submission_id, index)}"
        headers = {"Content-Type": "image/jpeg", "x-upsert": "true"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.put(url, content=body, headers=headers)
        except httpx.HTTPError as exc:
            raise TransientIOError(f"Upload failed: {exc}") from exc

        if response.status_code >= 500 or response.status_code == 429:
            raise TransientIOError(f"Storage returned {response.status_code}")
        if response.status_code >= 400:
            raise PermanentIOError(f"Storage rejected upload with {response.status_code}")

        log_event(
            "info",
            "image.uploaded",
            user_id=user_id,
            submission_id=submission_id,
            event_type="image.upload",
            extra={"index": index, "bytes": len(body)},
        )
        return url
