"""
Segmentação do fluxo de eventos em ciclos de energia.

Um ciclo começa em "system started ... coldStart N" e termina no marcador
terminal do dialeto. Um novo início sempre substitui o ciclo aberto: o ciclo
anterior é descartado inteiro (sem métricas parciais).
"""
import logging
from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, List, Optional, TYPE_CHECKING
from .errors import MalformedLine
from .dialects import FirmwareDialect
from .decoder import BoundaryKind, DecodedEvent, classify_boundary, decode_line
if TYPE_CHECKING:
    from .analysis import RunStats
logger = logging.getLogger(__name__)
@dataclass
class Cycle:
    """
    Um ciclo de perda/retorno de energia.

    Attributes:
        seqno (int): Número sequencial do ciclo (a partir de 0)
        line_start (int): Linha do marcador de início
        line_end (Optional[int]): Linha do marcador de fim; None enquanto aberto
        cold_start (bool): Se o ciclo começou de um reset completo
        events (List[DecodedEvent]): Eventos na ordem de chegada
    """
    seqno: int
    line_start: int
    cold_start: bool
    events: List[DecodedEvent] = field(default_factory=list)
    line_end: Optional[int] = None
    @property
    def is_closed(self) -> bool:
        return self.line_end is not None
    @property
    def title(self) -> str:
        return f"cycle {self.seqno}: lno: {self.line_start} to {self.line_end if self.is_closed else '?'}"
class SegmenterPhase(Enum):
    IDLE = 'no cycle open'
    CYCLE_OPEN = 'cycle open'
@dataclass(frozen=True)
class SegmenterState:
    open_cycle: Optional[Cycle] = None
    next_seqno: int = 0
    @property
    def phase(self) -> SegmenterPhase:
        return SegmenterPhase.IDLE if self.open_cycle is None else SegmenterPhase.CYCLE_OPEN
@dataclass(frozen=True)
class SegmentStep:
    """Resultado de uma transição: novo estado e o que saiu dele."""
    state: SegmenterState
    closed: Optional[Cycle] = None
    discarded: Optional[Cycle] = None
    incomplete_diagnosed: bool = False
def advance(state: SegmenterState, event: DecodedEvent, dialect: FirmwareDialect) -> SegmentStep:
    """
    Aplica um evento à máquina de estados do segmentador.

    Regras, nesta ordem:
    1. Ciclo aberto (não cold start) e chega um início: diagnóstico de ciclo incompleto.
    2. Início: abre um novo ciclo, descartando o aberto.
    3. Ciclo aberto e fim: anexa, fecha e entrega o ciclo.
    4. Ciclo aberto e evento comum: anexa ao buffer.
    5. Sem ciclo aberto: o evento é ruído anterior ao ciclo.

    O buffer do ciclo aberto pertence ao estado e é estendido no lugar; um
    ciclo entregue em `closed` não é mais tocado.
    """
    kind, cold_start = classify_boundary(event.message, dialect)
    current = state.open_cycle
    if kind is BoundaryKind.CYCLE_START:
        cycle = Cycle(
            seqno=state.next_seqno,
            line_start=event.line_number,
            cold_start=bool(cold_start),
            events=[event],
        )
        return SegmentStep(
            state=SegmenterState(open_cycle=cycle, next_seqno=state.next_seqno + 1),
            discarded=current,
            incomplete_diagnosed=current is not None and not current.cold_start,
        )
    if current is None:
        return SegmentStep(state=state)
    current.events.append(event)
    if kind is BoundaryKind.CYCLE_END:
        current.line_end = event.line_number
        return SegmentStep(state=replace(state, open_cycle=None), closed=current)
    return SegmentStep(state=state)
def segment_cycles(
    lines: Iterable[str], dialect: FirmwareDialect,
    max_lines: Optional[int] = None, stats: Optional['RunStats'] = None
) -> Iterator[Cycle]:
    """
    Consome as linhas em ordem e entrega cada ciclo assim que ele fecha.

    Args:
        lines (Iterable[str]): Fonte de linhas (arquivo ou stdin)
        dialect (FirmwareDialect): Padrões do firmware
        max_lines (Optional[int]): Para de ler após este número de linhas
        stats (Optional[RunStats]): Contadores da execução, se desejados

    Yields:
        Cycle: Ciclos fechados, nunca vazios
    """
    state = SegmenterState()
    lno = 0
    for line in lines:
        if max_lines is not None and lno >= max_lines:
            logger.info("Stopped reading after %d lines (max-lines)", max_lines)
            break
        lno += 1
        if stats is not None:
            stats.lines_read += 1
        try:
            event = decode_line(line, lno)
        except MalformedLine as e:
            if line.strip():
                logger.debug("Skipping %s", e)
                if stats is not None:
                    stats.malformed_lines += 1
            continue
        step = advance(state, event, dialect)
        state = step.state
        if step.discarded is not None:
            dropped = step.discarded
            if step.incomplete_diagnosed:
                logger.warning("An incomplete cycle detected: seqno %d lno start %d current line %d; cycle discarded",
                               dropped.seqno, dropped.line_start, lno)
            else:
                logger.info("Cold-start cycle %d from line %d superseded at line %d; cycle discarded",
                            dropped.seqno, dropped.line_start, lno)
            if stats is not None:
                stats.cycles_discarded += 1
        if step.closed is not None:
            if stats is not None:
                stats.cycles_closed += 1
            yield step.closed
    if state.open_cycle is not None:
        logger.info("Input ended with cycle %d still open (from line %d); cycle dropped",
                    state.open_cycle.seqno, state.open_cycle.line_start)
