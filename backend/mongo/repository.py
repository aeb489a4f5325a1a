"""
Repositórios de documentos por coleção.
Os serviços falam apenas com esta interface (get, put, update, delete, query); o backend
concreto (MongoDB ou memória) é escolhido pela variável STORAGE_BACKEND.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import copy
import os

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from backend.mongo.db import get_collection

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "mongo")


class DuplicateRecordError(Exception):
    """Violação de chave única no armazenamento."""


class Repository(ABC):
    @abstractmethod
    async def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def put(self, doc: Dict[str, Any]) -> str:
        ...

    @abstractmethod
    async def update(self, record_id: str, fields: Dict[str, Any]) -> bool:
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        ...

    @abstractmethod
    async def query(self, filters: Optional[Dict[str, Any]] = None, sort: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    async def find_one(self, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        items = await self.query(filters)
        return items[0] if items else None


def is_valid_id(record_id: str) -> bool:
    return ObjectId.is_valid(record_id)


#########
class MongoRepository(Repository):
    def __init__(self, collection_name: str):
        self.collection_name = collection_name

    @property
    def coll(self):
        return get_collection(self.collection_name)

    @staticmethod
    def _to_record(doc: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(doc)
        record["id"] = str(record.pop("_id"))
        return record

    async def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        if not is_valid_id(record_id):
            return None
        doc = await self.coll.find_one({"_id": ObjectId(record_id)})
        return self._to_record(doc) if doc else None

    async def put(self, doc: Dict[str, Any]) -> str:
        data = {k: v for k, v in doc.items() if k != "id"}
        try:
            res = await self.coll.insert_one(data)
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(str(exc)) from exc
        return str(res.inserted_id)

    async def update(self, record_id: str, fields: Dict[str, Any]) -> bool:
        if not is_valid_id(record_id):
            return False
        try:
            res = await self.coll.update_one({"_id": ObjectId(record_id)}, {"$set": fields})
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(str(exc)) from exc
        return res.matched_count > 0

    async def delete(self, record_id: str) -> bool:
        if not is_valid_id(record_id):
            return False
        res = await self.coll.delete_one({"_id": ObjectId(record_id)})
        return res.deleted_count > 0

    async def query(self, filters: Optional[Dict[str, Any]] = None, sort: Optional[str] = None) -> List[Dict[str, Any]]:
        cursor = self.coll.find(filters or {})
        if sort:
            cursor = cursor.sort(sort, ASCENDING)
        items: List[Dict[str, Any]] = []
        async for doc in cursor:
            items.append(self._to_record(doc))
        return items


#########
class InMemoryRepository(Repository):
    """
    Armazenamento em dicionário, usado em desenvolvimento local e nos testes.
    Só suporta filtros de igualdade.
    """

    def __init__(self, collection_name: str):
        self.collection_name = collection_name
        self._docs: Dict[str, Dict[str, Any]] = {}

    async def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(record_id)
        return copy.deepcopy(doc) if doc else None

    async def put(self, doc: Dict[str, Any]) -> str:
        record_id = str(ObjectId())
        data = copy.deepcopy({k: v for k, v in doc.items() if k != "id"})
        data["id"] = record_id
        self._docs[record_id] = data
        return record_id

    async def update(self, record_id: str, fields: Dict[str, Any]) -> bool:
        if record_id not in self._docs:
            return False
        self._docs[record_id].update(copy.deepcopy(fields))
        return True

    async def delete(self, record_id: str) -> bool:
        return self._docs.pop(record_id, None) is not None

    async def query(self, filters: Optional[Dict[str, Any]] = None, sort: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = filters or {}
        items = [
            copy.deepcopy(doc) for doc in self._docs.values()
            if all(doc.get(k) == v for k, v in filters.items())
        ]
        if sort:
            items.sort(key=lambda d: (d.get(sort) is None, "" if d.get(sort) is None else d.get(sort)))
        return items


######### Registro de repositórios por coleção
_repositories: Dict[str, Repository] = {}
_backend: str = STORAGE_BACKEND


def get_repository(name: str) -> Repository:
    repo = _repositories.get(name)
    if repo is None:
        repo = InMemoryRepository(name) if _backend == "memory" else MongoRepository(name)
        _repositories[name] = repo
    return repo


def use_in_memory_storage() -> None:
    """Troca todas as coleções para memória, descartando dados anteriores."""
    global _backend
    _backend = "memory"
    _repositories.clear()


def storage_backend() -> str:
    return _backend
