"""
Regras de senha forte usadas no cadastro e na troca de senha.
"""
import re
from typing import List, Tuple

_RULES = [
    (lambda p: len(p) >= 8, "A senha deve ter pelo menos 8 caracteres"),
    (lambda p: re.search(r'[A-Z]', p) is not None, "A senha deve conter pelo menos 1 letra maiúscula"),
    (lambda p: re.search(r'[a-z]', p) is not None, "A senha deve conter pelo menos 1 letra minúscula"),
    (lambda p: re.search(r'[0-9]', p) is not None, "A senha deve conter pelo menos 1 número"),
    (lambda p: re.search(r'[^A-Za-z0-9]', p) is not None, "A senha deve conter pelo menos 1 símbolo"),
]


class PasswordUtils:
    @staticmethod
    def validate_password(password: str) -> Tuple[bool, List[str]]:
        """
        Valida a força da senha.
        Parâmetros:
            password (str): senha em texto claro
        Retorno:
            Tuple[bool, List[str]]: (válida, mensagens de cada regra violada)
        """
        errors = [message for rule, message in _RULES if not rule(password)]
        return len(errors) == 0, errors

    @staticmethod
    def password_strength(password: str) -> str:
        if not password:
            return ""
        valid, errors = PasswordUtils.validate_password(password)
        if valid:
            return "Senha forte"
        return ", ".join(errors)
