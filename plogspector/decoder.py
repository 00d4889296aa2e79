"""
Decodificador de linhas do log de ciclos de energia.

Formato de linha (gerado pela ferramenta de captura serial):
    20240105T10:22:31.125  1234.567 PSM  PowerSupervisor  psm: system started, coldStart 0

O primeiro token é o horário absoluto do PC de captura, o segundo é o tick do
dispositivo em segundos fracionários, seguidos de módulo, tarefa e mensagem
(que inclui o nome da facility).
"""
import math
from enum import Enum
from datetime import datetime
from dataclasses import dataclass
from typing import Optional, Tuple
from .errors import MalformedLine
from .ticks import TICK_MASK, TICKS_PER_SECOND
from .dialects import FirmwareDialect
WALL_TIME_FORMATS = ('%Y%m%dT%H:%M:%S.%f', '%Y%m%dT%H:%M:%S')
@dataclass(frozen=True)
class DecodedEvent:
    """
    Um evento do log já decodificado.

    Attributes:
        wall_time (Optional[datetime]): Horário absoluto da captura, se legível
        tick (int): Contador do dispositivo em ms (32 bits, com volta)
        module (str): Identificador do módulo do firmware
        task (str): Tarefa que emitiu a mensagem
        message (str): Restante da linha, incluindo a facility
        line_number (int): Linha de origem no arquivo (1-based)
    """
    wall_time: Optional[datetime]
    tick: int
    module: str
    task: str
    message: str
    line_number: int = 0
class BoundaryKind(Enum):
    CYCLE_START = 'cycle-start'
    CYCLE_END = 'cycle-end'
    UNKNOWN = 'unknown'
def parse_wall_time(token: str) -> Optional[datetime]:
    for fmt in WALL_TIME_FORMATS:
        try:
            return datetime.strptime(token, fmt)
        except ValueError:
            pass
    try:
        return datetime.fromisoformat(token)
    except ValueError:
        return None
def parse_tick(token: str) -> int:
    seconds = float(token)
    ms = seconds * TICKS_PER_SECOND
    if not math.isfinite(ms) or seconds < 0:
        raise ValueError(f"tick out of range: {token}")
    return round(ms) & TICK_MASK
def decode_line(line: str, line_number: int = 0) -> DecodedEvent:
    """
    Converte uma linha de texto em um DecodedEvent.

    Args:
        line (str): Linha crua do log
        line_number (int): Número da linha no arquivo de entrada

    Returns:
        DecodedEvent: Evento com tick em milissegundos inteiros

    Raises:
        MalformedLine: Se a linha não tiver o token de tick ou ele não for numérico
    """
    words = line.split()
    if len(words) < 2:
        raise MalformedLine(line, 'missing tick token', line_number)
    try:
        tick = parse_tick(words[1])
    except ValueError:
        raise MalformedLine(line, f"tick token is not numeric: {words[1]!r}", line_number) from None
    rest = words[2:]
    return DecodedEvent(
        wall_time=parse_wall_time(words[0]),
        tick=tick,
        module=rest[0] if len(rest) > 0 else '',
        task=rest[1] if len(rest) > 1 else '',
        message=' '.join(rest[2:]),
        line_number=line_number,
    )
def classify_boundary(message: str, dialect: FirmwareDialect) -> Tuple[BoundaryKind, Optional[bool]]:
    m = dialect.cycle_start.search(message)
    if m:
        return BoundaryKind.CYCLE_START, m.group(1) == '1'
    if dialect.cycle_end.search(message):
        return BoundaryKind.CYCLE_END, None
    return BoundaryKind.UNKNOWN, None
