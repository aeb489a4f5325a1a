import pytest

from backend.mongo.repository import InMemoryRepository, MongoRepository, get_repository, is_valid_id, storage_backend


@pytest.mark.asyncio
async def test_put_get_roundtrip_returns_copies():
    repo = InMemoryRepository("rooms")
    record_id = await repo.put({"name": "101", "tags": ["lab"]})
    assert is_valid_id(record_id)
    doc = await repo.get(record_id)
    assert doc == {"id": record_id, "name": "101", "tags": ["lab"]}
    doc["tags"].append("changed")
    assert (await repo.get(record_id))["tags"] == ["lab"]


@pytest.mark.asyncio
async def test_update_and_delete_unknown_ids():
    repo = InMemoryRepository("rooms")
    assert await repo.get("0123456789abcdef01234567") is None
    assert not await repo.update("0123456789abcdef01234567", {"name": "x"})
    assert not await repo.delete("0123456789abcdef01234567")


@pytest.mark.asyncio
async def test_query_filters_and_sort():
    repo = InMemoryRepository("timetable")
    await repo.put({"day": "Segunda-feira", "room": "B"})
    await repo.put({"day": "Segunda-feira", "room": "A"})
    await repo.put({"day": "Terça-feira", "room": "C"})
    await repo.put({"day": "Segunda-feira"})
    rooms = [d.get("room") for d in await repo.query({"day": "Segunda-feira"}, sort="room")]
    assert rooms == ["A", "B", None]
    assert await repo.find_one({"room": "C"}) is not None
    assert await repo.find_one({"room": "Z"}) is None


def test_get_repository_uses_memory_and_caches():
    assert storage_backend() == "memory"
    repo = get_repository("subjects")
    assert isinstance(repo, InMemoryRepository)
    assert get_repository("subjects") is repo


@pytest.mark.asyncio
async def test_mongo_repository_rejects_malformed_ids_without_database():
    repo = MongoRepository("rooms")
    assert await repo.get("nao-e-id") is None
    assert not await repo.update("nao-e-id", {"name": "x"})
    assert not await repo.delete("nao-e-id")


def test_mongo_repository_requires_connection():
    with pytest.raises(RuntimeError):
        MongoRepository("rooms").coll
