"""
Cadastros compartilhados mantidos pela coordenação (disciplinas e salas).
"""
from typing import Any, Dict, List
from datetime import datetime
from fastapi import HTTPException
from backend.mongo.repository import get_repository, is_valid_id
from backend.utils.log_utils import get_logger


class RegistryService:
    def __init__(self, collection_name: str, label: str, logger=None):
        """
        Parâmetros:
            collection_name (str): coleção do cadastro ("subjects" ou "rooms")
            label (str): nome do item para mensagens ("Disciplina", "Sala")
            logger (logging.Logger, opcional): Logger para logs
        """
        self.collection_name = collection_name
        self.label = label
        self.logger = logger or get_logger(f"registry_service.{collection_name}")

    @staticmethod
    def _view(doc: Dict[str, Any]) -> Dict[str, Any]:
        created_at = doc.get("created_at")
        return {
            "id": doc["id"],
            "name": doc["name"],
            "code": doc.get("code"),
            "created_at": created_at.isoformat() if isinstance(created_at, datetime) else created_at,
        }

    def _parse(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        name = payload.get("name")
        code = payload.get("code")
        if not isinstance(name, str) or not name.strip():
            self.logger.warning(f"{self.label} sem nome: {payload}")
            raise HTTPException(status_code=400, detail="Campo obrigatório: name")
        if code is not None and not isinstance(code, str):
            raise HTTPException(status_code=400, detail="code deve ser texto")
        return {"name": name.strip(), "code": (code or "").strip() or None}

    async def _ensure_unique_name(self, name: str, exclude_id: str = None) -> None:
        existing = await get_repository(self.collection_name).find_one({"name": name})
        if existing and existing["id"] != exclude_id:
            self.logger.warning(f"{self.label} duplicada: name={name}")
            raise HTTPException(status_code=409, detail=f"{self.label} já cadastrada com este nome")

    async def names(self) -> set:
        return {doc["name"] for doc in await get_repository(self.collection_name).query()}

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.info(f"Criando {self.label.lower()}: {payload}")
        fields = self._parse(payload)
        await self._ensure_unique_name(fields["name"])
        repo = get_repository(self.collection_name)
        fields["created_at"] = datetime.utcnow()
        record_id = await repo.put(fields)
        created = await repo.get(record_id)
        self.logger.info(f"{self.label} criada: id={record_id}")
        return self._view(created)

    async def list(self) -> List[Dict[str, Any]]:
        docs = await get_repository(self.collection_name).query()
        items = sorted((self._view(d) for d in docs), key=lambda d: d["name"].lower())
        self.logger.info(f"Listando {self.collection_name}: total={len(items)}")
        return items

    async def update(self, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.info(f"Atualizando {self.label.lower()}: id={record_id}, payload={payload}")
        if not is_valid_id(record_id):
            raise HTTPException(status_code=400, detail="id inválido")
        fields = self._parse(payload)
        await self._ensure_unique_name(fields["name"], exclude_id=record_id)
        repo = get_repository(self.collection_name)
        if not await repo.update(record_id, fields):
            raise HTTPException(status_code=404, detail=f"{self.label} não encontrada")
        return self._view(await repo.get(record_id))

    async def delete(self, record_id: str) -> None:
        self.logger.info(f"Removendo {self.label.lower()}: id={record_id}")
        if not is_valid_id(record_id):
            raise HTTPException(status_code=400, detail="id inválido")
        if not await get_repository(self.collection_name).delete(record_id):
            self.logger.warning(f"{self.label} não encontrada para remoção: id={record_id}")
            raise HTTPException(status_code=404, detail=f"{self.label} não encontrada")
