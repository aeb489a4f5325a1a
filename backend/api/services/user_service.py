"""
Serviço de professores: cadastro, perfil e listagem.
O armazenamento de credenciais fica no repositório "users" (hash da senha, nunca o texto).
"""
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime
from fastapi import HTTPException
from backend.auth.basic import hash_password, verify_password
from backend.mongo.repository import DuplicateRecordError, get_repository
from backend.utils.cpf_utils import CPFUtils
from backend.utils.log_utils import get_logger
from backend.utils.password_utils import PasswordUtils

COLLECTION_NAME = "users"


class UserService:
    def __init__(self, coordinator_cpfs: Optional[Iterable[str]] = None, logger=None):
        """
        Inicializa o serviço de professores.
        Parâmetros:
            coordinator_cpfs (Iterable[str], opcional): CPFs cadastrados já como coordenadores
            logger (logging.Logger, opcional): Logger para logs
        """
        self.coordinator_cpfs = {CPFUtils.canonicalize_cpf(c.strip()) for c in (coordinator_cpfs or []) if c.strip()}
        self.logger = logger or get_logger("user_service")

    @staticmethod
    def public_view(user: Dict[str, Any]) -> Dict[str, Any]:
        cpf = user.get("cpf", "")
        return {
            "id": user["id"],
            "cpf": cpf,
            "cpf_display": CPFUtils.display_cpf(cpf),
            "name": user.get("name"),
            "profile": user.get("profile", "regular"),
        }

    def _check_password_policy(self, password: str) -> None:
        valid, errors = PasswordUtils.validate_password(password)
        if not valid:
            self.logger.warning(f"Senha rejeitada pela política: {len(errors)} regra(s) violada(s)")
            raise HTTPException(status_code=422, detail=". ".join(errors))

    async def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Cadastra um professor.
        Parâmetros:
            payload (dict): cpf, password e name
        Retorno:
            dict: perfil público do professor criado
        """
        cpf = payload.get("cpf")
        password = payload.get("password")
        name = payload.get("name")
        self.logger.info(f"Recebendo cadastro: cpf={cpf}, name={name}")
        if not isinstance(cpf, str) or not isinstance(password, str) or not isinstance(name, str):
            self.logger.warning(f"Payload de cadastro incompleto: campos={sorted(payload.keys())}")
            raise HTTPException(status_code=400, detail="Campos obrigatórios: cpf, password, name")
        if not name.strip():
            raise HTTPException(status_code=400, detail="O nome não pode estar vazio.")
        if not CPFUtils.is_valid_cpf(cpf):
            self.logger.warning(f"CPF inválido detectado: cpf={cpf}")
            raise HTTPException(status_code=422, detail="CPF inválido. Verifique se o CPF está correto.")
        self._check_password_policy(password)

        cpf_norm = CPFUtils.canonicalize_cpf(cpf)
        users = get_repository(COLLECTION_NAME)
        if await users.find_one({"cpf": cpf_norm}):
            self.logger.warning(f"CPF já cadastrado: cpf={cpf_norm}")
            raise HTTPException(status_code=409, detail="CPF já cadastrado. Use a opção de login.")

        now = datetime.utcnow()
        doc = {
            "cpf": cpf_norm,
            "name": name.strip(),
            "profile": "coordinator" if cpf_norm in self.coordinator_cpfs else "regular",
            "password_hash": hash_password(password),
            "created_at": now,
            "updated_at": now,
        }
        try:
            user_id = await users.put(doc)
        except DuplicateRecordError:
            raise HTTPException(status_code=409, detail="CPF já cadastrado. Use a opção de login.")
        created = await users.get(user_id)
        self.logger.info(f"Professor cadastrado: user_id={user_id}, profile={doc['profile']}")
        return self.public_view(created)

    async def get_profile(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return self.public_view(user)

    async def update_profile(self, user: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Atualiza nome, CPF e/ou senha do professor autenticado.
        Troca de CPF ou de senha exige a senha atual.
        Parâmetros:
            user (dict): usuário autenticado
            payload (dict): name, cpf, password, current_password (todos opcionais)
        Retorno:
            dict: perfil público atualizado
        """
        user_id = user["id"]
        self.logger.info(f"Atualização de perfil: user_id={user_id}, campos={sorted(k for k in payload if k != 'current_password' and k != 'password')}")
        update: Dict[str, Any] = {}
        needs_reauth = False
        users = get_repository(COLLECTION_NAME)

        name = payload.get("name")
        if name is not None:
            if not isinstance(name, str) or not name.strip():
                raise HTTPException(status_code=400, detail="O nome não pode estar vazio.")
            update["name"] = name.strip()

        cpf = payload.get("cpf")
        if cpf is not None:
            if not isinstance(cpf, str) or not CPFUtils.is_valid_cpf(cpf):
                self.logger.warning(f"CPF inválido na atualização: cpf={cpf}")
                raise HTTPException(status_code=422, detail="CPF inválido. Verifique se o CPF está correto.")
            cpf_norm = CPFUtils.canonicalize_cpf(cpf)
            existing = await users.find_one({"cpf": cpf_norm})
            if existing and existing["id"] != user_id:
                raise HTTPException(status_code=409, detail="Este CPF já está cadastrado por outro usuário.")
            if cpf_norm != user.get("cpf"):
                update["cpf"] = cpf_norm
                needs_reauth = True

        password = payload.get("password")
        if password:
            if not isinstance(password, str):
                raise HTTPException(status_code=400, detail="password deve ser texto")
            self._check_password_policy(password)
            update["password_hash"] = hash_password(password)
            needs_reauth = True

        if needs_reauth:
            current = payload.get("current_password")
            if not isinstance(current, str) or not current:
                raise HTTPException(status_code=400, detail="É necessário informar a senha atual para realizar esta alteração.")
            if not verify_password(current, user.get("password_hash", "")):
                self.logger.warning(f"Senha atual incorreta na atualização de perfil: user_id={user_id}")
                raise HTTPException(status_code=401, detail="Senha atual incorreta.")

        if not update:
            return self.public_view(user)

        update["updated_at"] = datetime.utcnow()
        try:
            await users.update(user_id, update)
        except DuplicateRecordError:
            raise HTTPException(status_code=409, detail="Este CPF já está cadastrado por outro usuário.")
        updated = await users.get(user_id)
        self.logger.info(f"Perfil atualizado: user_id={user_id}")
        return self.public_view(updated)

    async def list_teachers(self) -> List[Dict[str, Any]]:
        users = await get_repository(COLLECTION_NAME).query()
        items = [self.public_view(u) for u in users]
        items.sort(key=lambda u: (u["name"] or "").lower())
        self.logger.info(f"Listando professores: total={len(items)}")
        return items
