"""
Grade semanal: dias e faixas de horário aceitos nos horários dos professores.
"""
from typing import Any, Iterable, List, Mapping

DAYS = [
    "Segunda-feira",
    "Terça-feira",
    "Quarta-feira",
    "Quinta-feira",
    "Sexta-feira",
    "Sábado",
]

TIME_SLOTS = [
    "08:00-09:00",
    "09:00-10:00",
    "10:00-11:00",
    "11:00-12:00",
    "12:00-13:00",
    "13:00-14:00",
    "14:00-15:00",
    "15:00-16:00",
    "16:00-17:00",
]

ALL_TEACHERS = "all"


def is_valid_day(day: Any) -> bool:
    return day in DAYS


def is_valid_time(time: Any) -> bool:
    return time in TIME_SLOTS


def filter_by_teacher(assignments: Iterable[Mapping[str, Any]], teacher_id: str) -> List[Mapping[str, Any]]:
    """
    Restringe o snapshot de horários a um professor.
    Parâmetros:
        assignments: horários carregados do banco
        teacher_id (str): ID do professor ou "all" para manter todos
    Retorno:
        List: horários filtrados
    """
    if teacher_id == ALL_TEACHERS:
        return list(assignments)
    return [a for a in assignments if a.get("teacher_id") == teacher_id]
