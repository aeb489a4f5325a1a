"""
Serviço de horários: CRUD dos horários dos professores, consulta de conflitos
e publicação de eventos de alteração para o worker de conflitos.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from fastapi import HTTPException
import json
import redis.asyncio as redis
from backend.api.services.registry_service import RegistryService
from backend.mongo.repository import DuplicateRecordError, get_repository, is_valid_id
from backend.utils.conflict_utils import ScheduleConflictDetector
from backend.utils.log_utils import get_logger
from backend.utils.schedule import ALL_TEACHERS, filter_by_teacher, is_valid_day, is_valid_time

COLLECTION_NAME = "timetable"
ALERTS_COLLECTION = "conflict_alerts"


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


class TimetableEventPublisher:
    def __init__(self, redis_url: str, queue_key: str, logger=None):
        self.redis_url = redis_url
        self.queue_key = queue_key
        self.logger = logger or get_logger("timetable_events")

    async def publish(self, action: str, slot: Dict[str, Any]) -> None:
        """
        Enfileira no Redis a alteração de um horário.
        A verificação de conflitos é apenas consultiva: falha de fila é registrada e não propaga.
        """
        msg = {
            "action": action,
            "slot_id": slot["id"],
            "day": slot["day"],
            "time": slot["time"],
            "teacher_id": slot.get("teacher_id"),
            "created_at": datetime.utcnow().isoformat(),
        }
        try:
            r = redis.from_url(self.redis_url)
            try:
                await r.rpush(self.queue_key, json.dumps(msg))
            finally:
                await r.aclose()
            self.logger.info(f"Evento de horário enfileirado no Redis: msg={msg}")
        except Exception:
            self.logger.exception(f"Erro ao enfileirar evento de horário: slot_id={slot['id']}, action={action}")


class TimetableService:
    def __init__(self, subjects: RegistryService, rooms: RegistryService, publisher: TimetableEventPublisher, logger=None):
        """
        Parâmetros:
            subjects (RegistryService): cadastro de disciplinas
            rooms (RegistryService): cadastro de salas
            publisher (TimetableEventPublisher): publicador dos eventos de alteração
            logger (logging.Logger, opcional): Logger para logs
        """
        self.subjects = subjects
        self.rooms = rooms
        self.publisher = publisher
        self.logger = logger or get_logger("timetable_service")

    @staticmethod
    def _view(slot: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": slot["id"],
            "teacher_id": slot.get("teacher_id"),
            "day": slot.get("day"),
            "time": slot.get("time"),
            "subject": slot.get("subject"),
            "room": slot.get("room"),
            "created_at": _iso(slot.get("created_at")),
            "updated_at": _iso(slot.get("updated_at")),
        }

    @staticmethod
    def _is_coordinator(user: Dict[str, Any]) -> bool:
        return user.get("profile") == "coordinator"

    async def _validate_subject_room(self, payload: Dict[str, Any]) -> Dict[str, str]:
        subject = payload.get("subject")
        room = payload.get("room")
        if not isinstance(subject, str) or not isinstance(room, str) or not subject or not room:
            self.logger.warning(f"Horário sem disciplina ou sala: {payload}")
            raise HTTPException(status_code=400, detail="Por favor, preencha todos os campos obrigatórios.")
        if subject not in await self.subjects.names():
            self.logger.warning(f"Disciplina fora do cadastro: subject={subject}")
            raise HTTPException(status_code=422, detail="Por favor, selecione uma disciplina válida da lista.")
        if room not in await self.rooms.names():
            self.logger.warning(f"Sala fora do cadastro: room={room}")
            raise HTTPException(status_code=422, detail="Por favor, selecione uma sala válida da lista.")
        return {"subject": subject, "room": room}

    async def _load_owned_slot(self, user: Dict[str, Any], slot_id: str) -> Dict[str, Any]:
        if not is_valid_id(slot_id):
            raise HTTPException(status_code=400, detail="slot_id inválido")
        slot = await get_repository(COLLECTION_NAME).get(slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Horário não encontrado")
        if slot.get("teacher_id") != user["id"] and not self._is_coordinator(user):
            self.logger.warning(f"Acesso negado ao horário: slot_id={slot_id}, user_id={user['id']}")
            raise HTTPException(status_code=403, detail="Horário pertence a outro professor")
        return slot

    async def snapshot(self, teacher_id: str = ALL_TEACHERS) -> List[Dict[str, Any]]:
        slots = await get_repository(COLLECTION_NAME).query()
        return filter_by_teacher(slots, teacher_id)

    async def list_slots(self, user: Dict[str, Any], teacher_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Lista horários. Professores comuns sempre veem apenas os próprios;
        coordenadores veem um professor específico ou todos.
        """
        if not self._is_coordinator(user):
            teacher_id = user["id"]
        slots = await self.snapshot(teacher_id or ALL_TEACHERS)
        self.logger.info(f"Listando horários: user_id={user['id']}, teacher_id={teacher_id or ALL_TEACHERS}, total={len(slots)}")
        return [self._view(s) for s in slots]

    async def add_slot(self, user: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Cria um horário para o professor autenticado.
        Parâmetros:
            user (dict): usuário autenticado
            payload (dict): day, time, subject, room
        Retorno:
            dict: horário criado
        """
        self.logger.info(f"Recebendo horário: user_id={user['id']}, payload={payload}")
        day = payload.get("day")
        time = payload.get("time")
        if not is_valid_day(day) or not is_valid_time(time):
            self.logger.warning(f"Dia ou horário inválido: day={day}, time={time}")
            raise HTTPException(status_code=400, detail="Dia ou faixa de horário inválidos")
        fields = await self._validate_subject_room(payload)

        repo = get_repository(COLLECTION_NAME)
        if await repo.find_one({"teacher_id": user["id"], "day": day, "time": time}):
            self.logger.warning(f"Horário já ocupado pelo professor: user_id={user['id']}, day={day}, time={time}")
            raise HTTPException(status_code=409, detail="Você já possui um horário nesta célula")

        now = datetime.utcnow()
        doc = {"teacher_id": user["id"], "day": day, "time": time, **fields, "created_at": now, "updated_at": now}
        try:
            slot_id = await repo.put(doc)
        except DuplicateRecordError:
            raise HTTPException(status_code=409, detail="Você já possui um horário nesta célula")
        created = await repo.get(slot_id)
        self.logger.info(f"Horário criado: slot_id={slot_id}")
        await self.publisher.publish("created", created)
        return self._view(created)

    async def update_slot(self, user: Dict[str, Any], slot_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.info(f"Atualizando horário: slot_id={slot_id}, payload={payload}")
        await self._load_owned_slot(user, slot_id)
        fields = await self._validate_subject_room(payload)
        fields["updated_at"] = datetime.utcnow()
        repo = get_repository(COLLECTION_NAME)
        if not await repo.update(slot_id, fields):
            raise HTTPException(status_code=404, detail="Horário não encontrado")
        updated = await repo.get(slot_id)
        await self.publisher.publish("updated", updated)
        return self._view(updated)

    async def delete_slot(self, user: Dict[str, Any], slot_id: str) -> None:
        self.logger.info(f"Removendo horário: slot_id={slot_id}, user_id={user['id']}")
        slot = await self._load_owned_slot(user, slot_id)
        await get_repository(COLLECTION_NAME).delete(slot_id)
        self.logger.info(f"Horário removido: slot_id={slot_id}")
        await self.publisher.publish("deleted", slot)

    async def cell_conflict(self, day: str, time: str, teacher_id: str = ALL_TEACHERS) -> Dict[str, Any]:
        if not is_valid_day(day) or not is_valid_time(time):
            raise HTTPException(status_code=400, detail="Dia ou faixa de horário inválidos")
        result = ScheduleConflictDetector.detect(await self.snapshot(teacher_id), day, time)
        self.logger.debug(f"Conflito na célula: day={day}, time={time}, result={result}")
        return result.to_dict()

    async def conflict_grid(self, teacher_id: str = ALL_TEACHERS) -> List[Dict[str, Any]]:
        conflicts = ScheduleConflictDetector.scan(await self.snapshot(teacher_id))
        self.logger.info(f"Varredura de conflitos: teacher_id={teacher_id}, conflitos={len(conflicts)}")
        return conflicts

    async def list_alerts(self) -> List[Dict[str, Any]]:
        alerts = await get_repository(ALERTS_COLLECTION).query()
        return [{**a, "detected_at": _iso(a.get("detected_at"))} for a in alerts]
