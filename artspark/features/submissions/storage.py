"""
Durable key-value storage for the offline submission queue.

Values are JSON strings. InMemoryStorage backs the simulated environment,
FileStorage the default live one and RedisStorage shared deployments.
"""
from __future__ import annotations

import asyncio
import hashlib
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

from redis import Redis


class KeyValueStorage(Protocol):
    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class InMemoryStorage:
    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value


class FileStorage:
    """One file per key under ``directory``. Writes replace the file atomically."""

    def __init__(self, directory: str):
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        # Keys may contain characters that are not valid in file names
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return self._directory / f"{digest}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._directory), prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)


class RedisStorage:
    def __init__(self, redis_url: Optional[str] = None, client: Optional[Redis] = None):
        if client is None:
            url = redis_url or os.environ.get("REDIS_URL", "redis://localhost:6379/0")
            client = Redis.from_url(url, decode_responses=True)
        self._client = client

    def _read(self, key: str) -> Optional[str]:
        value = self._client.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._client.set, key, value)
