import httpx
import os
from typing import Any, Dict, Optional, Tuple

API_BASE = os.getenv("API_BASE", "http://api:3000")  # service name in docker network (docker compose network)

Auth = Optional[Tuple[str, str]]
Result = Tuple[bool, Any, int]


async def fetch_json(client: httpx.AsyncClient, method: str, url: str, auth: Auth = None, **kwargs) -> Result:
    """
    Executa a requisição e devolve (ok, dados, status).
    Falha de transporte retorna status 0 com a mensagem em {"error": ...}.
    """
    try:
        resp = await client.request(method, url, auth=auth, timeout=10, **kwargs)
        if resp.headers.get("content-type", "").startswith("application/json"):
            data = resp.json()
        else:
            data = {"raw": resp.text}
        if resp.is_error:
            return False, data, resp.status_code
        return True, data, resp.status_code
    except httpx.HTTPError as e:
        return False, {"error": str(e)}, 0

def error_detail(data: Any) -> Any:
    return data.get("detail", data) if isinstance(data, dict) else data

# -------------- Sessão e perfil --------------
async def check_health(client):
    return await fetch_json(client, "GET", f"{API_BASE}/api/v1/health")

async def validate_credentials(client, cpf: str, password: str) -> bool:
    """Chama o endpoint raiz para validar as credenciais Basic Auth."""
    ok, _, _ = await fetch_json(client, "GET", f"{API_BASE}/", auth=(cpf, password))
    return ok

async def register(client, cpf: str, password: str, name: str):
    payload = {"cpf": cpf, "password": password, "name": name}
    return await fetch_json(client, "POST", f"{API_BASE}/api/v1/users", json=payload)

async def get_me(client, auth: Auth):
    return await fetch_json(client, "GET", f"{API_BASE}/api/v1/users/me", auth=auth)

async def update_me(client, auth: Auth, changes: Dict[str, Any]):
    return await fetch_json(client, "PATCH", f"{API_BASE}/api/v1/users/me", auth=auth, json=changes)

async def list_teachers(client, auth: Auth):
    return await fetch_json(client, "GET", f"{API_BASE}/api/v1/teachers", auth=auth)

# -------------- Cadastros (disciplinas / salas) --------------
async def list_registry(client, auth: Auth, kind: str):
    return await fetch_json(client, "GET", f"{API_BASE}/api/v1/{kind}", auth=auth)

async def create_registry_item(client, auth: Auth, kind: str, name: str, code: str = ""):
    payload = {"name": name, "code": code or None}
    return await fetch_json(client, "POST", f"{API_BASE}/api/v1/{kind}", auth=auth, json=payload)

async def update_registry_item(client, auth: Auth, kind: str, item_id: str, name: str, code: str = ""):
    payload = {"name": name, "code": code or None}
    return await fetch_json(client, "PUT", f"{API_BASE}/api/v1/{kind}/{item_id}", auth=auth, json=payload)

async def delete_registry_item(client, auth: Auth, kind: str, item_id: str):
    return await fetch_json(client, "DELETE", f"{API_BASE}/api/v1/{kind}/{item_id}", auth=auth)

# -------------- Horários --------------
async def list_timetable(client, auth: Auth, teacher_id: Optional[str] = None):
    params = {"teacher_id": teacher_id} if teacher_id else None
    return await fetch_json(client, "GET", f"{API_BASE}/api/v1/timetable", auth=auth, params=params)

async def add_slot(client, auth: Auth, day: str, time: str, subject: str, room: str):
    payload = {"day": day, "time": time, "subject": subject, "room": room}
    return await fetch_json(client, "POST", f"{API_BASE}/api/v1/timetable", auth=auth, json=payload)

async def update_slot(client, auth: Auth, slot_id: str, subject: str, room: str):
    payload = {"subject": subject, "room": room}
    return await fetch_json(client, "PUT", f"{API_BASE}/api/v1/timetable/{slot_id}", auth=auth, json=payload)

async def delete_slot(client, auth: Auth, slot_id: str):
    return await fetch_json(client, "DELETE", f"{API_BASE}/api/v1/timetable/{slot_id}", auth=auth)

async def conflict_grid(client, auth: Auth, teacher_id: str = "all"):
    return await fetch_json(client, "GET", f"{API_BASE}/api/v1/timetable/conflicts/grid", auth=auth, params={"teacher_id": teacher_id})
