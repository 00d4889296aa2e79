"""
Tipos de erro do PLOGspector.

Somente MalformedLine, IncompleteInterval, RejectedCycle e UnknownSignal são
levantados. Ciclos incompletos (um novo "system started" antes do fim do ciclo
anterior) são apenas registrados no log e contados em RunStats.
"""
from typing import Optional
class PlogError(Exception):
    pass
class MalformedLine(PlogError, ValueError):
    def __init__(self, line: str, reason: str, line_number: int = 0):
        self.line = line
        self.reason = reason
        self.line_number = line_number
        super().__init__(f"malformed line {line_number}: {reason}")
class IncompleteInterval(PlogError):
    """Um cálculo obrigatório não encontrou os dois marcadores do intervalo."""
    def __init__(self, metric: str, detail: str):
        self.metric = metric
        self.detail = detail
        super().__init__(f"{metric}: {detail}")
class RejectedCycle(PlogError):
    def __init__(self, seqno: int, reason: str):
        self.seqno = seqno
        self.reason = reason
        super().__init__(f"cycle {seqno} rejected: {reason}")
class UnknownSignal(PlogError, KeyError):
    def __init__(self, name: str, known: Optional[list] = None):
        self.name = name
        self.known = sorted(known or [])
        super().__init__(name)
    def __str__(self) -> str:
        known = ', '.join(self.known) if self.known else 'none defined'
        return f"unknown IO signal '{self.name}' (known: {known})"
