from typing import Any, Dict
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
import bcrypt
import os

from backend.mongo.repository import get_repository
from backend.utils.cpf_utils import CPFUtils

security = HTTPBasic()

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))


def hash_password(password: str) -> str:
	# bcrypt considera apenas os primeiros 72 bytes
	password_bytes = password.encode("utf-8")[:72]
	return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
	if not hashed_password:
		return False
	try:
		return bcrypt.checkpw(password.encode("utf-8")[:72], hashed_password.encode("utf-8"))
	except ValueError:
		# hash armazenado fora do formato bcrypt
		return False


def _unauthorized() -> HTTPException:
	return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas", headers={"WWW-Authenticate": "Basic"})


async def basic_auth(credentials: HTTPBasicCredentials = Depends(security)) -> Dict[str, Any]:
	"""
	Autentica o professor pelo CPF (usuário) e senha.
	Retorno:
		dict: registro do usuário autenticado
	"""
	cpf = CPFUtils.canonicalize_cpf(credentials.username)
	if not CPFUtils.is_well_formed_cpf(cpf):
		raise _unauthorized()
	user = await get_repository("users").find_one({"cpf": cpf})
	if user is None or not verify_password(credentials.password, user.get("password_hash", "")):
		raise _unauthorized()
	return user


async def coordinator_auth(user: Dict[str, Any] = Depends(basic_auth)) -> Dict[str, Any]:
	if user.get("profile") != "coordinator":
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso restrito a coordenadores")
	return user
