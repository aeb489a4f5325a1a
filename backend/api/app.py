from typing import List, Dict, Any, Optional
from fastapi import FastAPI, status, Depends, Path, Query
import os
import uvicorn
from backend.mongo.db import connect_to_mongo, close_mongo_connection, init_collections, ping_mongo
from backend.mongo.repository import storage_backend
from backend.auth.basic import basic_auth, coordinator_auth
from backend.api.services.user_service import UserService
from backend.api.services.registry_service import RegistryService
from backend.api.services.timetable_service import TimetableEventPublisher, TimetableService
from backend.utils.cpf_utils import CPFUtils
from backend.utils.log_utils import get_logger
from backend.utils.schedule import ALL_TEACHERS

app = FastAPI(title="Teachers Timetable API", version="1.0.0")

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
QUEUE_KEY = os.getenv("TIMETABLE_EVENTS_QUEUE", "timetable_events")
COORDINATOR_CPFS = os.getenv("COORDINATOR_CPFS", "").split(",")

user_service = UserService(COORDINATOR_CPFS)
subject_service = RegistryService("subjects", "Disciplina")
room_service = RegistryService("rooms", "Sala")
timetable_service = TimetableService(subject_service, room_service, TimetableEventPublisher(REDIS_URL, QUEUE_KEY))


# Conexão MongoDB no ciclo de vida da aplicação
@app.on_event("startup")
async def on_startup() -> None:
    """
    Evento de inicialização da API.
    Conecta ao MongoDB e garante os índices únicos.
    """
    logger.info(f"Iniciando evento de startup da API: storage={storage_backend()}")
    if storage_backend() == "mongo":
        await connect_to_mongo()
        await init_collections()
        logger.info("Conexão com MongoDB estabelecida")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    logger.info("Iniciando evento de shutdown da API")
    await close_mongo_connection()
    logger.info("Conexão com MongoDB encerrada")


@app.get("/")
async def root(_: dict = Depends(basic_auth)) -> dict:
    """
    Endpoint de status da API (valida credenciais).
    """
    logger.info("Endpoint / chamado, status=ok")
    return {"status": "ok"}


@app.get("/api/v1/health")
async def health() -> dict:
    """
    Verifica API e banco de dados, sem autenticação.
    Retorno:
        dict: api, database (bool) e storage em uso
    """
    backend = storage_backend()
    database = True if backend == "memory" else await ping_mongo()
    if not database:
        logger.warning("Health check: banco de dados indisponível")
    return {"api": "ok", "database": database, "storage": backend}


#########
@app.post("/api/v1/cpf/validate")
async def validate_cpf(payload: Dict[str, Any]) -> dict:
    cpf = payload.get("cpf")
    if not isinstance(cpf, str):
        cpf = ""
    return {
        "canonical": CPFUtils.canonicalize_cpf(cpf),
        "well_formed": CPFUtils.is_well_formed_cpf(cpf),
        "valid": CPFUtils.is_valid_cpf(cpf),
        "display": CPFUtils.display_cpf(cpf),
    }


######### Professores
@app.post("/api/v1/users", status_code=status.HTTP_201_CREATED)
async def register_user(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Cadastro de professor. Valida CPF e senha antes de persistir.
    Parâmetros:
        payload (dict): cpf, password, name
    Retorno:
        dict: perfil público
    """
    return await user_service.register(payload)


@app.get("/api/v1/users/me")
async def get_me(user: dict = Depends(basic_auth)) -> Dict[str, Any]:
    return await user_service.get_profile(user)


@app.patch("/api/v1/users/me")
async def update_me(payload: Dict[str, Any], user: dict = Depends(basic_auth)) -> Dict[str, Any]:
    return await user_service.update_profile(user, payload)


@app.get("/api/v1/teachers")
async def list_teachers(_: dict = Depends(coordinator_auth)) -> List[dict]:
    return await user_service.list_teachers()


######### Disciplinas
@app.post("/api/v1/subjects", status_code=status.HTTP_201_CREATED)
async def create_subject(payload: Dict[str, Any], _: dict = Depends(coordinator_auth)) -> dict:
    return await subject_service.create(payload)


@app.get("/api/v1/subjects")
async def list_subjects(_: dict = Depends(basic_auth)) -> List[dict]:
    return await subject_service.list()


@app.put("/api/v1/subjects/{subject_id}")
async def update_subject(payload: Dict[str, Any], subject_id: str = Path(..., description="ID da disciplina"), _: dict = Depends(coordinator_auth)) -> dict:
    return await subject_service.update(subject_id, payload)


@app.delete("/api/v1/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(subject_id: str, _: dict = Depends(coordinator_auth)) -> None:
    await subject_service.delete(subject_id)
    return None


######### Salas
@app.post("/api/v1/rooms", status_code=status.HTTP_201_CREATED)
async def create_room(payload: Dict[str, Any], _: dict = Depends(coordinator_auth)) -> dict:
    return await room_service.create(payload)


@app.get("/api/v1/rooms")
async def list_rooms(_: dict = Depends(basic_auth)) -> List[dict]:
    return await room_service.list()


@app.put("/api/v1/rooms/{room_id}")
async def update_room(payload: Dict[str, Any], room_id: str = Path(..., description="ID da sala"), _: dict = Depends(coordinator_auth)) -> dict:
    return await room_service.update(room_id, payload)


@app.delete("/api/v1/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(room_id: str, _: dict = Depends(coordinator_auth)) -> None:
    await room_service.delete(room_id)
    return None


######### Horários
@app.get("/api/v1/timetable")
async def list_timetable(teacher_id: Optional[str] = Query(None, description="ID do professor ou 'all'"), user: dict = Depends(basic_auth)) -> List[dict]:
    return await timetable_service.list_slots(user, teacher_id)


@app.post("/api/v1/timetable", status_code=status.HTTP_201_CREATED)
async def add_slot(payload: Dict[str, Any], user: dict = Depends(basic_auth)) -> dict:
    return await timetable_service.add_slot(user, payload)


@app.get("/api/v1/timetable/conflicts")
async def cell_conflict(
    day: str = Query(..., description="Dia da semana"),
    time: str = Query(..., description="Faixa de horário"),
    teacher_id: str = Query(ALL_TEACHERS),
    _: dict = Depends(coordinator_auth),
) -> dict:
    return await timetable_service.cell_conflict(day, time, teacher_id)


@app.get("/api/v1/timetable/conflicts/grid")
async def conflict_grid(teacher_id: str = Query(ALL_TEACHERS), _: dict = Depends(coordinator_auth)) -> List[dict]:
    return await timetable_service.conflict_grid(teacher_id)


@app.put("/api/v1/timetable/{slot_id}")
async def update_slot(payload: Dict[str, Any], slot_id: str = Path(..., description="ID do horário"), user: dict = Depends(basic_auth)) -> dict:
    return await timetable_service.update_slot(user, slot_id, payload)


@app.delete("/api/v1/timetable/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(slot_id: str, user: dict = Depends(basic_auth)) -> None:
    await timetable_service.delete_slot(user, slot_id)
    return None


@app.get("/api/v1/conflict-alerts")
async def list_conflict_alerts(_: dict = Depends(coordinator_auth)) -> List[dict]:
    return await timetable_service.list_alerts()



######### ------------------------------ #########
logger = get_logger(__name__)

if __name__ == "__main__":
    """
    Inicializa o servidor Uvicorn para rodar a API.
    """
    logger.info("Starting Uvicorn server on 0.0.0.0:3000")
    uvicorn.run(app, host="0.0.0.0", port=3000)
