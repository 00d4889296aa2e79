"""
Orquestração de uma execução: linhas -> ciclos -> verificação -> métricas -> CSV.

Processamento síncrono e sob demanda: cada linha é decodificada e segmentada,
e o ciclo que ela fecha é verificado e medido antes da próxima leitura.
Ciclos rejeitados ou com métricas incompletas são registrados e pulados sem
interromper a execução.
"""
import sys
import csv
import logging
from contextlib import contextmanager
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, TextIO
from .errors import IncompleteInterval, RejectedCycle
from .segmenter import Cycle, segment_cycles
from .health import check_cycle_health, require_healthy
from .config import AnalyzerConfig
from .iotrace import IOSignal, format_trace_header, format_trace_line, reconstruct_io_trace
from .dialects import FirmwareDialect, get_dialect
from .metrics import METRIC_PIPELINE, MetricCalculator, MetricRecord, MetricValue, metric_names, run_pipeline
logger = logging.getLogger(__name__)
CSV_FIXED_COLUMNS = ('SequenceNo', 'LineFrom', 'LineTo', 'ColdStart')
SUMMARY_GROUP_METRIC = 'LastPowerState'
SUMMARY_TIME_METRIC = 'CapacitorTime'
@dataclass
class CycleProblem:
    seqno: int
    line_start: int
    line_end: Optional[int]
    kind: str
    reason: str
@dataclass
class RunStats:
    lines_read: int = 0
    malformed_lines: int = 0
    cycles_closed: int = 0
    cycles_discarded: int = 0
    cycles_rejected: int = 0
    cycles_skipped: int = 0
    cycles_ignored: int = 0
    rows_written: int = 0
    problems: List[CycleProblem] = field(default_factory=list)
    shutdown_times: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))
def format_metric_value(value: MetricValue) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)
class CsvMetricSink:
    """Escreve o cabeçalho uma vez e uma linha por ciclo saudável."""
    def __init__(self, stream: TextIO, pipeline: Sequence[MetricCalculator] = METRIC_PIPELINE):
        self._writer = csv.writer(stream, lineterminator='\n')
        self._stream = stream
        self._writer.writerow(list(CSV_FIXED_COLUMNS) + metric_names(pipeline))
    def write(self, record: MetricRecord) -> None:
        row = [record.seqno, record.line_from, record.line_to, format_metric_value(record.cold_start)]
        row.extend(format_metric_value(v) for v in record.values.values())
        self._writer.writerow(row)
    def flush(self) -> None:
        self._stream.flush()
@contextmanager
def open_line_source(path: Optional[str]) -> Iterator[Iterable[str]]:
    """Abre o log para leitura preguiçosa; None ou '-' lê da entrada padrão."""
    if path is None or path == '-':
        sys.stdin.reconfigure(encoding='utf-8', errors='replace')
        yield sys.stdin
        return
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        yield f
def handle_cycle(cycle: Cycle, dialect: FirmwareDialect, sink: CsvMetricSink, stats: RunStats,
                 pipeline: Sequence[MetricCalculator] = METRIC_PIPELINE) -> Optional[MetricRecord]:
    """
    Verifica um ciclo fechado e, se saudável, grava sua linha de métricas.

    Returns:
        Optional[MetricRecord]: O registro gravado, ou None se o ciclo foi rejeitado/pulado
    """
    logger.info("%s", cycle.title)
    verdict = check_cycle_health(cycle, dialect)
    if not verdict.ok:
        logger.warning("cycle %d from line %d to %d has an error: %s",
                       cycle.seqno, cycle.line_start, cycle.line_end, verdict.reason)
        stats.cycles_rejected += 1
        stats.problems.append(CycleProblem(cycle.seqno, cycle.line_start, cycle.line_end, 'rejected', verdict.reason))
        return None
    try:
        record = run_pipeline(cycle, dialect, pipeline)
    except IncompleteInterval as e:
        logger.error("cycle %d from line %d to %d skipped: %s",
                     cycle.seqno, cycle.line_start, cycle.line_end, e)
        stats.cycles_skipped += 1
        stats.problems.append(CycleProblem(cycle.seqno, cycle.line_start, cycle.line_end, 'skipped', str(e)))
        return None
    sink.write(record)
    stats.rows_written += 1
    group = record.values.get(SUMMARY_GROUP_METRIC)
    shutdown_time = record.values.get(SUMMARY_TIME_METRIC)
    if group is not None and isinstance(shutdown_time, float):
        stats.shutdown_times[str(group)].append(shutdown_time)
    return record
def analyze_lines(lines: Iterable[str], sink: CsvMetricSink, config: AnalyzerConfig,
                  pipeline: Sequence[MetricCalculator] = METRIC_PIPELINE) -> RunStats:
    dialect = get_dialect(config.dialect)
    stats = RunStats()
    ignored = set(config.ignore)
    for cycle in segment_cycles(lines, dialect, max_lines=config.max_lines, stats=stats):
        if cycle.seqno in ignored:
            logger.info("%s ignored by request", cycle.title)
            stats.cycles_ignored += 1
            continue
        handle_cycle(cycle, dialect, sink, stats, pipeline)
    return stats
def run_stat(log_path: Optional[str], config: AnalyzerConfig) -> RunStats:
    """
    Executa a análise completa de um log e grava <data_name>.csv.

    O arquivo CSV é aberto uma vez no início e fechado uma vez ao fim da entrada.
    """
    get_dialect(config.dialect)
    with open_line_source(log_path) as lines, open(config.csv_path, 'w', encoding='utf-8', newline='') as csv_file:
        sink = CsvMetricSink(csv_file)
        stats = analyze_lines(lines, sink, config)
        sink.flush()
    logger.info("Metrics written to %s (%d rows)", config.csv_path, stats.rows_written)
    return stats
def format_summary(stats: RunStats) -> List[str]:
    out = [f"Analyzed {stats.rows_written} power cycles:", '']
    for state, times in sorted(stats.shutdown_times.items()):
        out.append(f"  power down after {state}: {len(times)};"
                   f" capacitor time min {min(times):.3f} max {max(times):.3f}")
    out.append('')
    out.append(f"Lines read: {stats.lines_read}, malformed: {stats.malformed_lines}")
    out.append(f"Cycles closed: {stats.cycles_closed}, discarded incomplete: {stats.cycles_discarded},"
               f" ignored: {stats.cycles_ignored}")
    out.append(f"{len(stats.problems)} cycles without metrics:")
    for p in stats.problems:
        out.append(f"  cycle {p.seqno} [{p.line_start}, {p.line_end}] {p.kind}: {p.reason}")
    return out
def print_summary(stats: RunStats) -> None:
    for line in format_summary(stats):
        print(line)
def trace_lines(lines: Iterable[str], signals: Sequence[IOSignal], config: AnalyzerConfig,
                write: Callable[[str], None] = print) -> RunStats:
    """
    Modo de diagnóstico: imprime o trace de IO dos ciclos saudáveis selecionados.

    Args:
        lines (Iterable[str]): Fonte de linhas
        signals (Sequence[IOSignal]): Sinais já resolvidos no catálogo
        config (AnalyzerConfig): config.cycles restringe os ciclos (vazio = todos)
        write (Callable[[str], None]): Destino das linhas de texto
    """
    dialect = get_dialect(config.dialect)
    stats = RunStats()
    wanted = set(config.cycles)
    for cycle in segment_cycles(lines, dialect, max_lines=config.max_lines, stats=stats):
        if wanted and cycle.seqno not in wanted:
            continue
        try:
            require_healthy(cycle, dialect)
        except RejectedCycle as e:
            logger.warning("%s not traced: %s", cycle.title, e.reason)
            stats.cycles_rejected += 1
            stats.problems.append(CycleProblem(cycle.seqno, cycle.line_start, cycle.line_end, 'rejected', e.reason))
            continue
        write(format_trace_header(cycle))
        for line in reconstruct_io_trace(cycle, signals, dialect):
            write(format_trace_line(line))
    return stats
def run_iotrace(log_path: Optional[str], signals: Sequence[IOSignal], config: AnalyzerConfig) -> RunStats:
    get_dialect(config.dialect)
    with open_line_source(log_path) as lines:
        return trace_lines(lines, signals, config)
