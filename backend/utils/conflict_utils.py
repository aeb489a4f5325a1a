"""
Detecção de conflitos de horário entre professores.
Funções puras sobre um snapshot de horários já carregado do banco; nada é persistido aqui.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from backend.utils.schedule import DAYS, TIME_SLOTS

ROOM_CONFLICT = "room"
GENERAL_CONFLICT = "general"


@dataclass(frozen=True)
class ConflictResult:
    has_conflict: bool
    kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


NO_CONFLICT = ConflictResult(False, None)


class ScheduleConflictDetector:
    @staticmethod
    def matching(assignments: Iterable[Mapping[str, Any]], day: str, time: str) -> List[Mapping[str, Any]]:
        return [a for a in assignments if a.get("day") == day and a.get("time") == time]

    @staticmethod
    def detect(assignments: Iterable[Mapping[str, Any]], day: str, time: str) -> ConflictResult:
        """
        Verifica se a célula (dia, horário) tem mais de um horário alocado.
        Parâmetros:
            assignments: horários carregados (um professor ou todos)
            day (str): dia da semana
            time (str): faixa de horário
        Retorno:
            ConflictResult: "room" se alguma sala se repete na célula,
            "general" se há 2+ horários em salas distintas, sem conflito caso contrário
        """
        cell = ScheduleConflictDetector.matching(assignments, day, time)
        if len(cell) < 2:
            return NO_CONFLICT
        rooms = {a.get("room") for a in cell}
        if len(rooms) < len(cell):
            return ConflictResult(True, ROOM_CONFLICT)
        # Salas distintas no mesmo horário também são sinalizadas (apenas alerta)
        return ConflictResult(True, GENERAL_CONFLICT)

    @staticmethod
    def scan(assignments: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """
        Percorre a grade inteira e retorna as células em conflito, na ordem dia/horário.
        Cada item contém day, time, kind, slot_ids e teacher_ids.
        """
        snapshot = list(assignments)
        occupied = {(a.get("day"), a.get("time")) for a in snapshot}
        conflicts: List[Dict[str, Any]] = []
        for day in DAYS:
            for time in TIME_SLOTS:
                if (day, time) not in occupied:
                    continue
                result = ScheduleConflictDetector.detect(snapshot, day, time)
                if not result.has_conflict:
                    continue
                cell = ScheduleConflictDetector.matching(snapshot, day, time)
                conflicts.append({
                    "day": day,
                    "time": time,
                    "kind": result.kind,
                    "slot_ids": [a.get("id") for a in cell],
                    "teacher_ids": sorted({a.get("teacher_id") for a in cell if a.get("teacher_id")}),
                })
        return conflicts
