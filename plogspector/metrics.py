"""
Pipeline de cálculo de métricas de um ciclo saudável.

Cada calculador recebe o buffer completo de eventos do ciclo e devolve um único
valor. A ordem de METRIC_PIPELINE é também a ordem das colunas do CSV. Um
calculador obrigatório que não encontra seus marcadores levanta
IncompleteInterval e a linha inteira do ciclo é descartada pelo chamador.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Pattern, Sequence, Tuple, Union, TYPE_CHECKING
from .errors import IncompleteInterval
from .decoder import DecodedEvent
from .dialects import FirmwareDialect
from .ticks import seconds_between
if TYPE_CHECKING:
    from .segmenter import Cycle
logger = logging.getLogger(__name__)
MetricValue = Union[float, bool, int, str]
WITH_BACKUP = 'With Backup'
NO_BACKUP = 'No Backup'
NO_POWER_STATE = 'None'
SHUTDOWN_REASON_MAX_GAP_LINES = 5
@dataclass(frozen=True)
class MetricCalculator:
    name: str
    calculate: Callable[[List[DecodedEvent], FirmwareDialect], MetricValue]
    description: str = ''
@dataclass
class MetricRecord:
    seqno: int
    line_from: int
    line_to: int
    cold_start: bool
    values: Dict[str, MetricValue] = field(default_factory=dict)
def _first_match(events: Sequence[DecodedEvent], pattern: Pattern):
    for ev in events:
        m = pattern.search(ev.message)
        if m:
            return ev, m
    return None, None
def _paired_interval(
    events: Sequence[DecodedEvent], start_pattern: Pattern, end_pattern: Pattern,
    metric: str, optional: bool = True
) -> float:
    """
    Varredura para frente: primeiro marcador de início e primeiro marcador de fim.

    Nenhum dos dois presentes significa que a fase não ocorreu (0 s) quando o
    cálculo é opcional. Apenas um deles presente é sempre um intervalo incompleto.
    """
    start = None
    end = None
    for ev in events:
        if start is None and start_pattern.search(ev.message):
            start = ev.tick
        if end_pattern.search(ev.message):
            end = ev.tick
            break
    if start is None and end is None:
        if optional:
            return 0.0
        raise IncompleteInterval(metric, 'neither start nor end marker found')
    if start is None or end is None:
        missing = 'start' if start is None else 'end'
        raise IncompleteInterval(metric, f"{missing} marker missing")
    return seconds_between(start, end)
def _first_numeric_ms(events: Sequence[DecodedEvent], pattern: Pattern) -> Optional[float]:
    ev, m = _first_match(events, pattern)
    if m is None:
        return None
    return int(m.group(1)) / 1000
# CALCULADORES
def classify_shutdown_type(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> str:
    ev, m = _first_match(events, dialect.backup_marker)
    return WITH_BACKUP if m else NO_BACKUP
def calc_capacitor_time(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> float:
    """
    Tempo em capacitor: da troca do estado da fonte para FilteringTime até o fim do desligamento.

    Busca de trás para frente: o último marcador de fim, antes dele o evento
    PowerBelow enviado pelo PSCm e, antes deste, a troca Normal -> FilteringTime.
    """
    i = len(events) - 1
    end = None
    while i >= 0:
        if dialect.capacitor_end.search(events[i].message):
            end = events[i].tick
            break
        i -= 1
    if end is None:
        raise IncompleteInterval('CapacitorTime', 'PSCm events is not complete: no shutdown end marker')
    while i >= 0 and not dialect.capacitor_transition.search(events[i].message):
        i -= 1
    start = None
    while i >= 0:
        if dialect.capacitor_start.search(events[i].message):
            start = events[i].tick
            break
        i -= 1
    if start is None:
        raise IncompleteInterval('CapacitorTime', 'PSCm events is not complete: no FilteringTime switch before power-below event')
    return seconds_between(start, end)
def calc_backup_time(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> float:
    try:
        return _paired_interval(events, dialect.backup_start, dialect.backup_end, 'BackupTime')
    except IncompleteInterval as e:
        raise IncompleteInterval('BackupTime', f"incomplete saving of ram-backup ({e.detail})") from None
def calc_wait_io_drain(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> float:
    value = _first_numeric_ms(events, dialect.io_drain)
    return value if value is not None else 0.0
def calc_shutdown_delay(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> float:
    value = _first_numeric_ms(events, dialect.shutdown_delay)
    if value is None:
        raise IncompleteInterval('ShutdownDelay', 'lost shutdown delay message')
    return value
def _measurement_stop_variant(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> Optional[int]:
    for ev in events:
        if dialect.meas_v1_probe.search(ev.message):
            return 1
        if dialect.meas_v2_probe.search(ev.message):
            return 2
    return None
def calc_wait_meas(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> float:
    variant = _measurement_stop_variant(events, dialect)
    if variant is None:
        return 0.0
    if variant == 1:
        start_pattern, end_pattern = dialect.meas_v1_start, dialect.meas_v1_end
    else:
        start_pattern, end_pattern = dialect.meas_v2_start, dialect.meas_v2_end
    # vale a última ocorrência de cada marcador
    start = None
    end = None
    for ev in events:
        if start_pattern.search(ev.message):
            start = ev.tick
        if end_pattern.search(ev.message):
            end = ev.tick
    if start is None and end is None:
        return 0.0
    if start is None or end is None:
        missing = 'start' if start is None else 'end'
        raise IncompleteInterval('WaitMeas', f"stopping meas not completed? ({missing} marker missing)")
    return seconds_between(start, end)
def calc_bridging_time(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> float:
    # informativo: sem a descida completa até o nível de shutdown não houve ponte
    i = len(events) - 1
    end = None
    while i >= 0:
        if dialect.bridge_high.search(events[i].message):
            end = events[i].tick
            break
        i -= 1
    start = None
    while i >= 0:
        if dialect.bridge_low.search(events[i].message):
            start = events[i].tick
            break
        i -= 1
    if start is None or end is None:
        return 0.0
    return seconds_between(start, end)
def calc_write_shutdown_reason(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> float:
    start = None
    start_line = 0
    gap = 0
    warned = False
    for ev in events:
        if start is None:
            if dialect.shutdown_reason_backup_write.search(ev.message):
                start = ev.tick
                start_line = ev.line_number
            continue
        if dialect.shutdown_reason_done.search(ev.message):
            return seconds_between(start, ev.tick)
        gap += 1
        if gap >= SHUTDOWN_REASON_MAX_GAP_LINES and not warned:
            logger.warning("Lost writing of shutdown reason? no confirmation %d lines after line %d",
                           gap, start_line)
            warned = True
    return 0.0
def count_bridges(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> int:
    armed = False
    count = 0
    for ev in events:
        if dialect.bridge_low.search(ev.message):
            armed = True
        elif armed and dialect.power_recovered.search(ev.message):
            armed = False
            count += 1
    return count
def reached_normal_operation(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> bool:
    ev, m = _first_match(events, dialect.normal_operation)
    return m is not None
def last_power_state(events: Sequence[DecodedEvent], dialect: FirmwareDialect) -> str:
    state = NO_POWER_STATE
    for ev in events:
        m = dialect.power_state.search(ev.message)
        if m:
            state = (m.group('state') or m.group('named') or '').strip() or NO_POWER_STATE
    return state
METRIC_PIPELINE: Tuple[MetricCalculator, ...] = (
    MetricCalculator('ShutdownType', classify_shutdown_type, 'whether a ram-backup was saved'),
    MetricCalculator('CapacitorTime', calc_capacitor_time, 'seconds from FilteringTime switch to shutdown end'),
    MetricCalculator('BackupTime', calc_backup_time, 'seconds the slaves took to stop and finish their tasks'),
    MetricCalculator('WaitIoDrain', calc_wait_io_drain, 'logged ubi drain wait, seconds'),
    MetricCalculator('ShutdownDelay', calc_shutdown_delay, 'logged delay before handling power down, seconds'),
    MetricCalculator('WaitMeas', calc_wait_meas, 'seconds spent stopping the measurement system'),
    MetricCalculator('Bridging', calc_bridging_time, 'seconds between powersave and shutdown level'),
    MetricCalculator('WrShutdownReason', calc_write_shutdown_reason, 'seconds to persist shutdown reason 3'),
    MetricCalculator('BridgeCount', count_bridges, 'power dips recovered before shutdown'),
    MetricCalculator('NormalOperation', reached_normal_operation, 'normal-operation was reached'),
    MetricCalculator('LastPowerState', last_power_state, 'last state entered by the power state master'),
)
DURATION_METRICS: Tuple[str, ...] = (
    'CapacitorTime', 'BackupTime', 'WaitIoDrain', 'ShutdownDelay', 'WaitMeas', 'Bridging', 'WrShutdownReason',
)
def metric_names(pipeline: Sequence[MetricCalculator] = METRIC_PIPELINE) -> List[str]:
    return [c.name for c in pipeline]
def run_pipeline(cycle: 'Cycle', dialect: FirmwareDialect,
                 pipeline: Sequence[MetricCalculator] = METRIC_PIPELINE) -> MetricRecord:
    """
    Calcula todas as métricas de um ciclo saudável.

    Raises:
        IncompleteInterval: Se algum calculador obrigatório falhar; nenhuma linha parcial é produzida
    """
    record = MetricRecord(
        seqno=cycle.seqno,
        line_from=cycle.line_start,
        line_to=cycle.line_end,
        cold_start=cycle.cold_start,
    )
    events = cycle.events
    for calculator in pipeline:
        record.values[calculator.name] = calculator.calculate(events, dialect)
    return record
