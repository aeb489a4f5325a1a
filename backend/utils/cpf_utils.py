"""
Módulo utilitário para validação e formatação de CPF.
Todas as funções são puras: entradas malformadas resultam em False ou na
string original, nunca em exceção.
"""
import re

_SEPARATORS = re.compile(r'[.\-]')
_CANONICAL = re.compile(r'[0-9]{11}')
_DISPLAY = re.compile(r'(\d{3})(\d{3})(\d{3})(\d{2})')


class CPFUtils:
    @staticmethod
    def canonicalize_cpf(cpf: str) -> str:
        """
        Remove os separadores de exibição (ponto e hífen) do CPF.
        Qualquer outro caractere é mantido, de modo que a validação posterior falhe.
        Parâmetros:
            cpf (str): CPF em qualquer formato
        Retorno:
            str: CPF sem separadores
        Exemplo: '529.982.247-25' -> '52998224725'
        """
        return _SEPARATORS.sub('', cpf)

    @staticmethod
    def is_well_formed_cpf(cpf: str) -> bool:
        """
        Verifica se o CPF, após remover os separadores, possui exatamente 11 dígitos ASCII.
        """
        return _CANONICAL.fullmatch(CPFUtils.canonicalize_cpf(cpf)) is not None

    @staticmethod
    def _check_digit(digits: list) -> int:
        # pesos decrescentes terminando em 2
        weight = len(digits) + 1
        soma = sum(d * (weight - i) for i, d in enumerate(digits))
        resto = soma % 11
        return 0 if resto < 2 else 11 - resto

    @staticmethod
    def is_valid_cpf(cpf: str) -> bool:
        """
        Valida CPF pelo algoritmo dos dígitos verificadores.
        Parâmetros:
            cpf (str): CPF com ou sem formatação
        Retorno:
            bool: True se válido, False caso contrário
        """
        if not CPFUtils.is_well_formed_cpf(cpf):
            return False
        cpf = CPFUtils.canonicalize_cpf(cpf)
        # Sequências repetidas (ex.: 00000000000) passam no cálculo mas não são CPFs reais
        if cpf == cpf[0] * 11:
            return False
        digits = [int(c) for c in cpf]
        for i in [9, 10]:
            if CPFUtils._check_digit(digits[:i]) != digits[i]:
                return False
        return True

    @staticmethod
    def display_cpf(cpf: str) -> str:
        """
        Formata o CPF para exibição (DDD.DDD.DDD-DD).
        Se o CPF não tiver 11 dígitos após a limpeza, retorna a entrada sem alteração.
        """
        if not CPFUtils.is_well_formed_cpf(cpf):
            return cpf
        return _DISPLAY.sub(r'\1.\2.\3-\4', CPFUtils.canonicalize_cpf(cpf))
