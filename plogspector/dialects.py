"""
Tabelas de padrões por dialeto de firmware.

Todos os marcadores literais usados pelo segmentador, pelo verificador de
saúde, pelas métricas e pelo trace de IO ficam aqui, agrupados por nome em um
FirmwareDialect. Suportar uma nova revisão de firmware é adicionar uma entrada
em DIALECTS.
"""
import re
from dataclasses import dataclass, replace
from typing import Dict, Pattern, Tuple
def _literals(*texts: str) -> Pattern:
    return re.compile('|'.join(re.escape(t) for t in texts))
# PADRÕES COMUNS A TODOS OS DIALETOS
CYCLE_START_PATTERN = re.compile(r'system (?:re)?started.*coldStart ([01])')
PSM_CYCLE_END_PATTERN = _literals('shutdown took', 'enter psm wait-for-reset')
DPRINTF_CYCLE_END_PATTERN = _literals('shutdown took', 'enter psm wait-for-reset', 'dprintf buf used')
LINE_DAMAGE_PATTERN = _literals('*Error:*', 'bad format')
FATAL_MARKERS = (
    'watchdog reset detected',
    'invalid powerdown detected',
    'assertion failed',
    'logging stopped',
)
GPIO_PATTERN = re.compile(
    r'gpio\s+port\s*[=:]?\s*(?P<port>0x[0-9a-f]+|\d+)\s*[,;]?\s*'
    r'pin\s*[=:]?\s*(?P<pin>\d+)\s*[,;]?\s*'
    r'(?:state|level|value)\s*[=:]?\s*(?P<state>[01])\b',
    re.IGNORECASE)
@dataclass(frozen=True)
class FirmwareDialect:
    """
    Conjunto nomeado de padrões de uma revisão de firmware.

    Attributes:
        name (str): Nome do dialeto (usado em --dialect)
        cycle_start (Pattern): Início de ciclo; grupo 1 é a flag coldStart
        cycle_end (Pattern): Marcador terminal de um ciclo
        fatal_markers (Tuple[str, ...]): Condições fatais que rejeitam o ciclo
    """
    name: str
    description: str
    cycle_start: Pattern = CYCLE_START_PATTERN
    cycle_end: Pattern = PSM_CYCLE_END_PATTERN
    line_damage: Pattern = LINE_DAMAGE_PATTERN
    fatal_markers: Tuple[str, ...] = FATAL_MARKERS
    ext_power_up: Pattern = _literals('power up external devices')
    ext_power_down: Pattern = _literals('power down external devices')
    backup_marker: Pattern = _literals('save ram-back')
    shutdown_reason_update: Pattern = re.compile(r'update shutdown reason to ([0-9]+)')
    shutdown_reason_write: Pattern = re.compile(r'writing shutdown reason ([0-9]+) for shutdown')
    shutdown_reason_done: Pattern = re.compile(r'writ(?:e|ing) shutdown reason succeeded')
    shutdown_reason_backup_write: Pattern = re.compile(
        r'update shutdown reason to 3$|writing shutdown reason 3 for shutdown')
    capacitor_end: Pattern = PSM_CYCLE_END_PATTERN
    capacitor_transition: Pattern = re.compile(r'PSCm send event PowerBelow(?:Powersave|Shutdown)Level')
    capacitor_start: Pattern = _literals('power supply state switch: Normal -> FilteringTime')
    backup_start: Pattern = _literals('PSCm send slaves with event stop')
    backup_end: Pattern = _literals('PSCm send slaves with event WaitForTaskCompletion')
    io_drain: Pattern = re.compile(r'waiting ubi drain took ([0-9]+) ms')
    shutdown_delay: Pattern = re.compile(r'delayed ([0-9]+) ms before handling power down')
    meas_v1_probe: Pattern = _literals('MultiModuleSystemApplicationApp::stopMeasurementSystemAndWaitData')
    meas_v2_probe: Pattern = _literals('stopping meas processing')
    meas_v1_start: Pattern = _literals('start shutdown')
    meas_v1_end: Pattern = _literals('PSCm send slaves with event stop', 'non-backup done')
    meas_v2_start: Pattern = re.compile(r'stopping meas processing$')
    meas_v2_end: Pattern = _literals('stopping meas processing: done')
    bridge_low: Pattern = _literals('handle PowerBelowPowersaveLevel')
    bridge_high: Pattern = _literals('handle PowerBelowShutdownLevel')
    power_recovered: Pattern = re.compile(r'handle ?PowerAboveStartupLevel')
    normal_operation: Pattern = _literals('enter normal-operation')
    power_state: Pattern = re.compile(r'enter PowerStateMaster\s*(?P<state>.*)|enter (?P<named>normal-operation|infr-ready)')
    psm_dispatch: Pattern = re.compile(r'PSCm send (?:slaves with )?event (\w+)')
    shutdown_start: Pattern = _literals('start shutdown')
    gpio: Pattern = GPIO_PATTERN
    def find_fatal(self, message: str):
        for marker in self.fatal_markers:
            if marker in message:
                return marker
        return None
PSM_DIALECT = FirmwareDialect(
    name='psm',
    description="cycle ends on 'shutdown took' or 'enter psm wait-for-reset'",
)
DPRINTF_DIALECT = replace(
    PSM_DIALECT,
    name='dprintf',
    description="as psm, cycle may also end on 'dprintf buf used'",
    cycle_end=DPRINTF_CYCLE_END_PATTERN,
)
DIALECTS: Dict[str, FirmwareDialect] = {d.name: d for d in (PSM_DIALECT, DPRINTF_DIALECT)}
DEFAULT_DIALECT = PSM_DIALECT.name
def get_dialect(name: str) -> FirmwareDialect:
    try:
        return DIALECTS[name]
    except KeyError:
        raise ValueError(f"Unknown firmware dialect '{name}'. Known dialects: {', '.join(sorted(DIALECTS))}") from None
