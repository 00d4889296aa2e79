"""
Reconstrução do estado de sinais digitais (GPIO) ao longo de um ciclo.

É uma visão de diagnóstico: o ciclo é reproduzido evento a evento, mantendo o
último estado conhecido de cada sinal rastreado, e cada mudança vira uma linha
do trace. Entre as transições aparecem anotações para eventos despachados pelo
PSCm, sequenciamento de energia dos dispositivos externos e início do shutdown.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple
from .errors import UnknownSignal
from .segmenter import Cycle
from .ticks import tick_diff
from .dialects import FirmwareDialect
logger = logging.getLogger(__name__)
STATE_UNKNOWN = -1
@dataclass(frozen=True)
class IOSignal:
    name: str
    port: int
    pin: int
@dataclass
class NamedIOState:
    name: str
    port: int
    pin: int
    state: int = STATE_UNKNOWN
    last_change_tick: Optional[int] = None
@dataclass(frozen=True)
class TraceLine:
    line_number: int
    tick: int
    delta_ms: int
    label: str
    detail: str
def parse_port(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"invalid port: {value!r}")
    if isinstance(value, int):
        return value
    return int(str(value).strip(), 0)
def parse_signal_definition(definition: str) -> IOSignal:
    """
    Interpreta uma definição inline de sinal no formato NOME=PORTA:PINO.

    Exemplo:
        parse_signal_definition("BKP_EN=0x48000400:5") -> IOSignal('BKP_EN', 0x48000400, 5)
    """
    name, sep, location = definition.partition('=')
    port, sep2, pin = location.rpartition(':')
    if not sep or not sep2 or not name.strip():
        raise ValueError(f"Invalid signal definition '{definition}', expected NAME=PORT:PIN")
    return IOSignal(name=name.strip(), port=parse_port(port), pin=int(pin))
def load_io_map(map_path: str) -> Optional[Dict[str, IOSignal]]:
    """
    Carrega o catálogo de sinais de um arquivo JSON.

    Formato:
        {"BKP_EN": {"port": "0x48000400", "pin": 5}, ...}

    Entradas inválidas são reportadas e ignoradas. Retorna None se o arquivo não
    puder ser lido ou não for um objeto JSON.
    """
    try:
        with open(map_path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.error("IO map file not found: %s", map_path)
        return None
    except json.JSONDecodeError as e:
        logger.error("Could not decode JSON from IO map file %s: %s", map_path, e)
        return None
    except OSError as e:
        logger.error("Could not read IO map file %s: %s", map_path, e)
        return None
    if not isinstance(raw, dict):
        logger.error("IO map content in %s is not an object.", map_path)
        return None
    catalog: Dict[str, IOSignal] = {}
    for name, entry in raw.items():
        if not isinstance(entry, dict) or 'port' not in entry or 'pin' not in entry:
            logger.error("Entry '%s' in IO map %s needs 'port' and 'pin'.", name, map_path)
            continue
        try:
            catalog[name] = IOSignal(name=name, port=parse_port(entry['port']), pin=int(entry['pin']))
        except (TypeError, ValueError) as e:
            logger.error("Entry '%s' in IO map %s is invalid: %s", name, map_path, e)
    return catalog
def resolve_signals(names: Iterable[str], catalog: Dict[str, IOSignal]) -> List[IOSignal]:
    signals = []
    for name in names:
        if name not in catalog:
            raise UnknownSignal(name, list(catalog))
        signals.append(catalog[name])
    return signals
def _annotation(message: str, dialect: FirmwareDialect) -> Optional[Tuple[str, str]]:
    m = dialect.psm_dispatch.search(message)
    if m:
        return 'PSM', f"dispatch {m.group(1)}"
    if dialect.ext_power_up.search(message):
        return 'EXT-POWER', 'up'
    if dialect.ext_power_down.search(message):
        return 'EXT-POWER', 'down'
    if dialect.shutdown_start.search(message):
        return 'SHUTDOWN', 'start shutdown detected'
    return None
def reconstruct_io_trace(cycle: Cycle, signals: Iterable[IOSignal], dialect: FirmwareDialect) -> List[TraceLine]:
    """
    Reproduz os eventos do ciclo e gera as linhas do trace.

    Args:
        cycle (Cycle): Ciclo já verificado
        signals (Iterable[IOSignal]): Sinais a rastrear
        dialect (FirmwareDialect): Padrões do firmware

    Returns:
        List[TraceLine]: Linhas em ordem de chegada; delta_ms é relativo à linha
        emitida anterior (ou ao primeiro evento do ciclo)
    """
    states: Dict[Tuple[int, int], NamedIOState] = {
        (s.port, s.pin): NamedIOState(name=s.name, port=s.port, pin=s.pin) for s in signals
    }
    trace: List[TraceLine] = []
    last_tick = cycle.events[0].tick if cycle.events else 0
    def emit(ev, label, detail):
        nonlocal last_tick
        trace.append(TraceLine(ev.line_number, ev.tick, tick_diff(last_tick, ev.tick), label, detail))
        last_tick = ev.tick
    for ev in cycle.events:
        m = dialect.gpio.search(ev.message)
        if m:
            try:
                key = (int(m.group('port'), 0), int(m.group('pin')))
            except ValueError:
                key = None
            io = states.get(key)
            new_state = int(m.group('state'))
            if io is not None and io.state != new_state:
                io.state = new_state
                io.last_change_tick = ev.tick
                emit(ev, io.name, str(new_state))
            continue
        note = _annotation(ev.message, dialect)
        if note:
            emit(ev, *note)
    return trace
def format_trace_header(cycle: Cycle) -> str:
    return f"=== {cycle.title} (coldStart {int(cycle.cold_start)})"
def format_trace_line(line: TraceLine) -> str:
    return f"{line.line_number:>8} {line.tick / 1000:>12.3f} {line.delta_ms / 1000:>+9.3f}  {line.label:<20} {line.detail}"
