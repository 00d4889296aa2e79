"""Fixtures compartilhadas: construção de linhas de log e ciclos sintéticos."""
from typing import List, Sequence, Tuple
import pytest
from plogspector.decoder import decode_line
from plogspector.dialects import PSM_DIALECT
from plogspector.segmenter import Cycle
WALL_TIME = '20240105T10:22:31.125'
def make_line(tick_s: float, message: str, module: str = 'PSM', task: str = 'PowerSupervisor') -> str:
    return f"{WALL_TIME} {tick_s:.3f} {module} {task} {message}"
# Ciclo completo com backup, usado como base em vários testes.
HEALTHY_CYCLE: List[Tuple[float, str]] = [
    (100.000, 'psm: system started, coldStart 0'),
    (100.200, 'psm: power up external devices'),
    (100.500, 'psm: enter normal-operation'),
    (200.000, 'psc: power supply state switch: Normal -> FilteringTime'),
    (200.010, 'psc: PSCm send event PowerBelowPowersaveLevel'),
    (200.020, 'psm: handle PowerBelowPowersaveLevel'),
    (200.030, 'psm: delayed 20 ms before handling power down'),
    (200.100, 'psc: PSCm send event PowerBelowShutdownLevel'),
    (200.110, 'psm: handle PowerBelowShutdownLevel'),
    (200.120, 'psm: start shutdown'),
    (200.130, 'psm: power down external devices'),
    (200.140, 'meas: stopping meas processing'),
    (200.190, 'meas: stopping meas processing: done'),
    (200.200, 'bkp: save ram-back'),
    (200.210, 'psm: PSCm send slaves with event stop'),
    (200.510, 'psm: PSCm send slaves with event WaitForTaskCompletion'),
    (200.600, 'psm: update shutdown reason to 3'),
    (200.650, 'psm: write shutdown reason succeeded'),
    (200.700, 'psm: shutdown took 700 ms'),
]
def build_cycle(entries: Sequence[Tuple[float, str]], seqno: int = 0, first_line: int = 1,
                cold_start: bool = False) -> Cycle:
    events = [decode_line(make_line(t, msg), first_line + i) for i, (t, msg) in enumerate(entries)]
    return Cycle(
        seqno=seqno,
        line_start=first_line,
        cold_start=cold_start,
        events=events,
        line_end=first_line + len(entries) - 1,
    )
def without(entries: Sequence[Tuple[float, str]], *fragments: str) -> List[Tuple[float, str]]:
    return [(t, m) for t, m in entries if not any(f in m for f in fragments)]
@pytest.fixture
def dialect():
    return PSM_DIALECT
@pytest.fixture
def healthy_entries() -> List[Tuple[float, str]]:
    return list(HEALTHY_CYCLE)
@pytest.fixture
def healthy_cycle() -> Cycle:
    return build_cycle(HEALTHY_CYCLE)
@pytest.fixture
def healthy_lines() -> List[str]:
    return [make_line(t, m) for t, m in HEALTHY_CYCLE]
