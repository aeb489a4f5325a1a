import json
import logging

import pytest

from backend.mongo.repository import get_repository
from backend.worker.consumer_conflicts import ConflictProcessor

logger = logging.getLogger("test_consumer_conflicts")
logging.basicConfig(level=logging.INFO)

MON = "Segunda-feira"
EIGHT = "08:00-09:00"


class FakeRedis:
    def __init__(self):
        self.lists = {}

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)


def processor():
    return ConflictProcessor("timetable_events", "timetable_events_dlq", logger)


def event(action="created", day=MON, time=EIGHT, slot_id="s1"):
    return json.dumps({"action": action, "slot_id": slot_id, "day": day, "time": time, "teacher_id": "t1"})


async def add_slot(teacher_id, room, day=MON, time=EIGHT):
    return await get_repository("timetable").put({"teacher_id": teacher_id, "day": day, "time": time, "subject": "Matemática", "room": room})


@pytest.mark.asyncio
async def test_room_conflict_creates_alert():
    first = await add_slot("t1", "101")
    second = await add_slot("t2", "101")
    kind = await processor().process_message(event(slot_id=second), FakeRedis())
    assert kind == "room"
    alerts = await get_repository("conflict_alerts").query()
    assert len(alerts) == 1
    assert alerts[0]["kind"] == "room"
    assert sorted(alerts[0]["slot_ids"]) == sorted([first, second])
    assert alerts[0]["teacher_ids"] == ["t1", "t2"]


@pytest.mark.asyncio
async def test_alert_is_updated_not_duplicated():
    await add_slot("t1", "101")
    await add_slot("t2", "102")
    proc = processor()
    assert await proc.process_message(event(), FakeRedis()) == "general"
    await add_slot("t3", "102")
    assert await proc.process_message(event(), FakeRedis()) == "room"
    alerts = await get_repository("conflict_alerts").query()
    assert len(alerts) == 1
    assert alerts[0]["kind"] == "room"


@pytest.mark.asyncio
async def test_resolved_conflict_removes_alert():
    await add_slot("t1", "101")
    second = await add_slot("t2", "101")
    proc = processor()
    await proc.process_message(event(), FakeRedis())
    await get_repository("timetable").delete(second)
    assert await proc.process_message(event(action="deleted", slot_id=second), FakeRedis()) is None
    assert await get_repository("conflict_alerts").query() == []


@pytest.mark.asyncio
async def test_invalid_cell_is_discarded():
    r = FakeRedis()
    assert await processor().process_message(event(day="Domingo"), r) is None
    assert r.lists == {}


@pytest.mark.asyncio
async def test_malformed_message_goes_to_dlq():
    r = FakeRedis()
    assert await processor().process_message("nao-e-json", r) is None
    assert r.lists == {"timetable_events_dlq": ["nao-e-json"]}
