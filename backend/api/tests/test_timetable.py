import pytest
import logging

from backend.api.tests.helpers import (
    COORDINATOR_CPF, TEACHER_A_CPF, TEACHER_B_CPF, api_client, auth, register,
)

logger = logging.getLogger("test_timetable")
logging.basicConfig(level=logging.INFO)

COORD = auth(COORDINATOR_CPF)
ANA = auth(TEACHER_A_CPF)
BRUNO = auth(TEACHER_B_CPF)
MON = "Segunda-feira"
EIGHT = "08:00-09:00"


async def setup_school(client):
    users = {
        "coord": await register(client, COORDINATOR_CPF, "Coordenação"),
        "ana": await register(client, TEACHER_A_CPF, "Ana"),
        "bruno": await register(client, TEACHER_B_CPF, "Bruno"),
    }
    for name in ["Matemática", "História"]:
        await client.post("/api/v1/subjects", auth=COORD, json={"name": name})
    for name in ["101", "102"]:
        await client.post("/api/v1/rooms", auth=COORD, json={"name": name})
    return users


async def add(client, who, day=MON, time=EIGHT, subject="Matemática", room="101"):
    return await client.post("/api/v1/timetable", auth=who, json={"day": day, "time": time, "subject": subject, "room": room})


@pytest.mark.asyncio
async def test_add_slot_success(api_env):
    async with api_client() as client:
        users = await setup_school(client)
        response = await add(client, ANA)
        logger.info(f"[PASS/FAIL] test_add_slot_success: status={response.status_code}, body={response.json()}")
        assert response.status_code == 201
        data = response.json()
        assert data["teacher_id"] == users["ana"]["id"]
        assert (data["day"], data["time"], data["subject"], data["room"]) == (MON, EIGHT, "Matemática", "101")
        assert api_env.events == [{"action": "created", "slot_id": data["id"], "day": MON, "time": EIGHT}]


@pytest.mark.asyncio
async def test_add_slot_rejects_unknown_day_or_time(api_env):
    async with api_client() as client:
        await setup_school(client)
        assert (await add(client, ANA, day="Domingo")).status_code == 400
        assert (await add(client, ANA, time="07:00-08:00")).status_code == 400
        assert api_env.events == []


@pytest.mark.asyncio
async def test_add_slot_requires_registered_subject_and_room(api_env):
    async with api_client() as client:
        await setup_school(client)
        assert (await add(client, ANA, subject="Alquimia")).status_code == 422
        assert (await add(client, ANA, room="999")).status_code == 422
        assert (await add(client, ANA, room="")).status_code == 400


@pytest.mark.asyncio
async def test_add_slot_rejects_non_text_subject_or_room(api_env):
    async with api_client() as client:
        await setup_school(client)
        response = await add(client, ANA, subject=["Matemática"])
        logger.info(f"[PASS/FAIL] test_add_slot_rejects_non_text_subject_or_room: status={response.status_code}, body={response.text}")
        assert response.status_code == 400
        assert (await add(client, ANA, room={"n": "101"})).status_code == 400
        assert (await add(client, ANA, subject=7, room=101)).status_code == 400
        assert api_env.events == []


@pytest.mark.asyncio
async def test_same_teacher_cannot_double_book(api_env):
    async with api_client() as client:
        await setup_school(client)
        assert (await add(client, ANA)).status_code == 201
        response = await add(client, ANA, room="102")
        assert response.status_code == 409


@pytest.mark.asyncio
async def test_regular_teacher_sees_only_own_slots(api_env):
    async with api_client() as client:
        users = await setup_school(client)
        await add(client, ANA)
        await add(client, BRUNO, room="102")
        response = await client.get("/api/v1/timetable", params={"teacher_id": "all"}, auth=ANA)
        assert response.status_code == 200
        assert [s["teacher_id"] for s in response.json()] == [users["ana"]["id"]]


@pytest.mark.asyncio
async def test_coordinator_filters_by_teacher(api_env):
    async with api_client() as client:
        users = await setup_school(client)
        await add(client, ANA)
        await add(client, BRUNO, room="102")
        everyone = await client.get("/api/v1/timetable", auth=COORD)
        assert len(everyone.json()) == 2
        only_bruno = await client.get("/api/v1/timetable", params={"teacher_id": users["bruno"]["id"]}, auth=COORD)
        assert [s["room"] for s in only_bruno.json()] == ["102"]


@pytest.mark.asyncio
async def test_update_slot_owner_and_coordinator(api_env):
    async with api_client() as client:
        await setup_school(client)
        slot = (await add(client, ANA)).json()

        forbidden = await client.put(f"/api/v1/timetable/{slot['id']}", auth=BRUNO, json={"subject": "História", "room": "102"})
        assert forbidden.status_code == 403

        own = await client.put(f"/api/v1/timetable/{slot['id']}", auth=ANA, json={"subject": "História", "room": "102"})
        assert own.status_code == 200
        assert (own.json()["subject"], own.json()["room"]) == ("História", "102")

        by_coord = await client.put(f"/api/v1/timetable/{slot['id']}", auth=COORD, json={"subject": "Matemática", "room": "101"})
        assert by_coord.status_code == 200
        assert [e["action"] for e in api_env.events] == ["created", "updated", "updated"]

        invalid = await client.put(f"/api/v1/timetable/{slot['id']}", auth=ANA, json={"subject": "Alquimia", "room": "101"})
        assert invalid.status_code == 422


@pytest.mark.asyncio
async def test_delete_slot(api_env):
    async with api_client() as client:
        await setup_school(client)
        slot = (await add(client, ANA)).json()
        assert (await client.delete(f"/api/v1/timetable/{slot['id']}", auth=BRUNO)).status_code == 403
        assert (await client.delete(f"/api/v1/timetable/{slot['id']}", auth=ANA)).status_code == 204
        assert (await client.delete(f"/api/v1/timetable/{slot['id']}", auth=ANA)).status_code == 404
        assert (await client.delete("/api/v1/timetable/xyz", auth=ANA)).status_code == 400
        assert api_env.events[-1]["action"] == "deleted"


@pytest.mark.asyncio
async def test_cell_conflict_room(api_env):
    async with api_client() as client:
        await setup_school(client)
        await add(client, ANA, room="101")
        await add(client, BRUNO, room="101", subject="História")
        response = await client.get("/api/v1/timetable/conflicts", params={"day": MON, "time": EIGHT}, auth=COORD)
        assert response.status_code == 200
        assert response.json() == {"has_conflict": True, "kind": "room"}


@pytest.mark.asyncio
async def test_cell_conflict_general_and_none(api_env):
    async with api_client() as client:
        users = await setup_school(client)
        await add(client, ANA, room="101")
        await add(client, BRUNO, room="102")
        general = await client.get("/api/v1/timetable/conflicts", params={"day": MON, "time": EIGHT}, auth=COORD)
        assert general.json() == {"has_conflict": True, "kind": "general"}

        single = await client.get(
            "/api/v1/timetable/conflicts",
            params={"day": MON, "time": EIGHT, "teacher_id": users["ana"]["id"]},
            auth=COORD,
        )
        assert single.json() == {"has_conflict": False, "kind": None}

        bad = await client.get("/api/v1/timetable/conflicts", params={"day": "Domingo", "time": EIGHT}, auth=COORD)
        assert bad.status_code == 400


@pytest.mark.asyncio
async def test_conflict_endpoints_are_coordinator_only(api_env):
    async with api_client() as client:
        await setup_school(client)
        response = await client.get("/api/v1/timetable/conflicts/grid", auth=ANA)
        assert response.status_code == 403
        response = await client.get("/api/v1/conflict-alerts", auth=ANA)
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_conflict_grid(api_env):
    async with api_client() as client:
        users = await setup_school(client)
        await add(client, ANA, room="101")
        await add(client, BRUNO, room="101")
        await add(client, ANA, time="09:00-10:00")
        response = await client.get("/api/v1/timetable/conflicts/grid", auth=COORD)
        assert response.status_code == 200
        grid = response.json()
        assert len(grid) == 1
        assert grid[0]["day"] == MON
        assert grid[0]["time"] == EIGHT
        assert grid[0]["kind"] == "room"
        assert grid[0]["teacher_ids"] == sorted([users["ana"]["id"], users["bruno"]["id"]])


@pytest.mark.asyncio
async def test_conflict_alerts_empty_without_worker(api_env):
    async with api_client() as client:
        await setup_school(client)
        response = await client.get("/api/v1/conflict-alerts", auth=COORD)
        assert response.status_code == 200
        assert response.json() == []
