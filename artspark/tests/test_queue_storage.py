import pytest

from artspark.features.submissions.storage import FileStorage, InMemoryStorage, RedisStorage


class FakeRedis:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value.encode("utf-8") if isinstance(value, str) else value
        return True


@pytest.mark.asyncio
async def test_in_memory_storage():
    storage = InMemoryStorage()
    assert await storage.get("k") is None
    await storage.set("k", "[]")
    assert await storage.get("k") == "[]"


@pytest.mark.asyncio
async def test_file_storage_round_trip(tmp_path):
    storage = FileStorage(str(tmp_path / "queue"))
    assert await storage.get("@artspark:upload-queue") is None

    await storage.set("@artspark:upload-queue", '[{"id": "a"}]')
    await storage.set("@artspark:upload-queue", '[{"id": "b"}]')

    reopened = FileStorage(str(tmp_path / "queue"))
    assert await reopened.get("@artspark:upload-queue") == '[{"id": "b"}]'
    leftovers = [p.name for p in (tmp_path / "queue").iterdir() if p.name.startswith(".tmp-")]
    assert leftovers == []


@pytest.mark.asyncio
async def test_redis_storage_decodes_bytes():
    client = FakeRedis()
    storage = RedisStorage(client=client)

    await storage.set("k", "[1]")
    assert await storage.get("k") == "[1]"
    assert await storage.get("missing") is None
