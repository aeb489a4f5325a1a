import asyncio
import json
import os
from datetime import datetime

import redis.asyncio as redis
from backend.mongo.db import connect_to_mongo, close_mongo_connection, init_collections
from backend.mongo.repository import get_repository, storage_backend
from backend.utils.conflict_utils import ScheduleConflictDetector
from backend.utils.log_utils import get_logger
from backend.utils.schedule import is_valid_day, is_valid_time

LOG = get_logger("consumer_conflicts")

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
QUEUE_KEY = os.getenv("TIMETABLE_EVENTS_QUEUE", "timetable_events")
DLQ_KEY = os.getenv("TIMETABLE_EVENTS_DLQ", "timetable_events_dlq")

TIMETABLE_COLLECTION = "timetable"
ALERTS_COLLECTION = "conflict_alerts"



# ------------------- Classe principal do worker -------------------
class ConflictProcessor:
    def __init__(self, queue_key, dlq_key, logger):
        """
        Inicializa o processador de eventos de horário.
        Parâmetros:
            queue_key (str): Nome da fila principal
            dlq_key (str): Nome da fila de dead-letter
            logger (logging.Logger): Logger para logs
        """
        self.logger = logger
        self.logger.debug(f"Inicializando ConflictProcessor: queue_key={queue_key}, dlq_key={dlq_key}")
        self.queue_key = queue_key
        self.dlq_key = dlq_key


    async def _refresh_cell(self, day, time):
        """
        Recalcula o conflito de uma célula e grava/remove o alerta correspondente.
        Parâmetros:
            day (str): dia da semana
            time (str): faixa de horário
        Retorno:
            str: tipo do conflito ou None se a célula está livre de conflito
        """
        slots = await get_repository(TIMETABLE_COLLECTION).query({"day": day, "time": time})
        result = ScheduleConflictDetector.detect(slots, day, time)
        alerts = get_repository(ALERTS_COLLECTION)
        existing = await alerts.find_one({"day": day, "time": time})

        if not result.has_conflict:
            if existing:
                await alerts.delete(existing["id"])
                self.logger.info(f"Conflito resolvido: day={day}, time={time}")
            return None

        alert = {
            "day": day,
            "time": time,
            "kind": result.kind,
            "slot_ids": [s["id"] for s in slots],
            "teacher_ids": sorted({s.get("teacher_id") for s in slots if s.get("teacher_id")}),
            "detected_at": datetime.utcnow(),
        }
        if existing:
            await alerts.update(existing["id"], alert)
        else:
            await alerts.put(alert)
        self.logger.warning(f"Conflito de horário detectado: day={day}, time={time}, kind={result.kind}, slots={alert['slot_ids']}")
        return result.kind


    async def _handle_processing_error(self, r, msg, exc):
        self.logger.exception(f"Erro ao processar mensagem: {exc}")
        try:
            await r.rpush(self.dlq_key, msg)
        except Exception as e:
            self.logger.exception(f"Erro ao empurrar para DLQ: {e}")


    async def process_message(self, msg: str, r: redis.Redis):
        """
        Processa um evento de alteração de horário da fila.
        Parâmetros:
            msg (str): Mensagem JSON do evento
            r: Instância Redis (usada para a DLQ)
        Retorno:
            str: tipo do conflito na célula, ou None
        """
        self.logger.info(f"Recebendo mensagem da fila: {msg}")
        try:
            data = json.loads(msg)
            day = data.get("day")
            time = data.get("time")
            if not is_valid_day(day) or not is_valid_time(time):
                self.logger.warning(f"Evento com célula inválida, descartado: {data}")
                return None
            kind = await self._refresh_cell(day, time)
            self.logger.debug(f"Evento processado: action={data.get('action')}, slot_id={data.get('slot_id')}, kind={kind}")
            return kind
        except Exception as exc:
            await self._handle_processing_error(r, msg, exc)
            return None



####################
####################
async def main() -> None:
    """
    Loop principal do worker. Conecta aos serviços, consome fila e recalcula conflitos.
    Parâmetros: None
    Retorno: None
    """

    LOG.info("Conectando ao MongoDB e Redis...")
    if storage_backend() == "mongo":
        await connect_to_mongo()
        await init_collections()
    r = redis.from_url(REDIS_URL)
    processor = ConflictProcessor(QUEUE_KEY, DLQ_KEY, LOG)
    try:
        while True:
            try:
                item = await r.brpop(QUEUE_KEY, timeout=5)
                if not item:
                    await asyncio.sleep(0.5)
                    continue
                # item is a tuple (key, value)
                _, value = item
                if isinstance(value, bytes):
                    value = value.decode()
                LOG.debug(f"Mensagem recebida da fila: {value}")
                await processor.process_message(value, r)
            except asyncio.CancelledError:
                raise
            except Exception:
                LOG.exception("Erro no loop do consumer")
                await asyncio.sleep(1)
    finally:
        await r.aclose()
        await close_mongo_connection()



####################-----------------------------####################

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        LOG.info("Worker finalizado pelo usuário")
