"""
Verificação de saúde de um ciclo fechado antes do cálculo de métricas.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple
from .errors import RejectedCycle
from .segmenter import Cycle
from .decoder import DecodedEvent
from .dialects import FirmwareDialect
from .metrics import WITH_BACKUP, classify_shutdown_type
BACKUP_SHUTDOWN_REASON = 3
@dataclass(frozen=True)
class HealthVerdict:
    ok: bool
    reason: Optional[str] = None
    @classmethod
    def accept(cls) -> 'HealthVerdict':
        return cls(ok=True)
    @classmethod
    def reject(cls, reason: str) -> 'HealthVerdict':
        return cls(ok=False, reason=reason)
def _check_line_integrity(events: List[DecodedEvent], dialect: FirmwareDialect) -> Optional[str]:
    for ev in events:
        if dialect.line_damage.search(ev.message):
            return f"damaged log line at {ev.line_number}: {ev.message}"
    return None
def _check_fatal_markers(events: List[DecodedEvent], dialect: FirmwareDialect) -> Optional[str]:
    for ev in events:
        marker = dialect.find_fatal(ev.message)
        if marker:
            return marker
    return None
def _check_external_power_balance(events: List[DecodedEvent], dialect: FirmwareDialect) -> Optional[str]:
    powered = 0
    for ev in events:
        if dialect.ext_power_up.search(ev.message):
            powered += 1
        elif dialect.ext_power_down.search(ev.message):
            powered -= 1
        else:
            continue
        if powered not in (0, 1):
            return f"external devices powered on/off out of balance at line {ev.line_number}"
    return None
def find_shutdown_reason(events: List[DecodedEvent], dialect: FirmwareDialect) -> Tuple[Optional[int], bool]:
    """
    Procura a gravação do motivo de desligamento, nos dois formatos de log.

    Formato 1: a última mensagem "update shutdown reason to N".
    Formato 2: "writing shutdown reason N for shutdown" seguida de
    "write shutdown reason succeeded"; vale o último par confirmado.

    Returns:
        Tuple[Optional[int], bool]: (motivo encontrado, se a gravação foi confirmada
        com o motivo de backup)
    """
    reason = None
    for ev in reversed(events):
        m = dialect.shutdown_reason_update.search(ev.message)
        if m:
            reason = int(m.group(1))
            break
    if reason == BACKUP_SHUTDOWN_REASON:
        return reason, True
    pending = None
    confirmed = None
    for ev in events:
        m = dialect.shutdown_reason_write.search(ev.message)
        if m:
            pending = int(m.group(1))
        elif pending is not None and dialect.shutdown_reason_done.search(ev.message):
            confirmed = pending
            pending = None
    if confirmed is not None:
        return confirmed, confirmed == BACKUP_SHUTDOWN_REASON
    return (reason if reason is not None else pending), False
def _check_shutdown_reason(events: List[DecodedEvent], dialect: FirmwareDialect) -> Optional[str]:
    if classify_shutdown_type(events, dialect) != WITH_BACKUP:
        return None
    reason, success = find_shutdown_reason(events, dialect)
    if not success:
        return f"shutdown reason not updated properly: {reason}"
    return None
HEALTH_CHECKS = (
    _check_line_integrity,
    _check_fatal_markers,
    _check_external_power_balance,
    _check_shutdown_reason,
)
def check_cycle_health(cycle: Cycle, dialect: FirmwareDialect) -> HealthVerdict:
    for check in HEALTH_CHECKS:
        reason = check(cycle.events, dialect)
        if reason is not None:
            return HealthVerdict.reject(reason)
    return HealthVerdict.accept()
def require_healthy(cycle: Cycle, dialect: FirmwareDialect) -> None:
    verdict = check_cycle_health(cycle, dialect)
    if not verdict.ok:
        raise RejectedCycle(cycle.seqno, verdict.reason)
