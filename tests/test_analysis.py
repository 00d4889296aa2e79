"""Testes de ponta a ponta da análise: linhas -> ciclos -> CSV."""
import csv
import io
import logging
import pytest
from plogspector.analysis import CsvMetricSink, analyze_lines, format_metric_value, format_summary, run_stat, trace_lines
from plogspector.config import AnalyzerConfig
from conftest import HEALTHY_CYCLE, make_line, without
HEADER = [
    'SequenceNo', 'LineFrom', 'LineTo', 'ColdStart', 'ShutdownType', 'CapacitorTime', 'BackupTime', 'WaitIoDrain',
    'ShutdownDelay', 'WaitMeas', 'Bridging', 'WrShutdownReason', 'BridgeCount', 'NormalOperation', 'LastPowerState',
]
NO_BACKUP_CYCLE = [
    (1000.000, 'psm: system started, coldStart 0'),
    (1001.000, 'psc: power supply state switch: Normal -> FilteringTime'),
    (1001.100, 'psc: PSCm send event PowerBelowPowersaveLevel'),
    (1001.200, 'psm: delayed 30 ms before handling power down'),
    (1001.500, 'psm: shutdown took 400 ms'),
]
WATCHDOG_CYCLE = [
    (3000.000, 'psm: system started, coldStart 1'),
    (3000.500, 'wdg: watchdog reset detected'),
    (3001.000, 'psm: shutdown took 10 ms'),
]
def _log(*cycles):
    return [make_line(t, m) + '\n' for cycle in cycles for t, m in cycle]
def _run(lines, **kwargs):
    out = io.StringIO()
    stats = analyze_lines(lines, CsvMetricSink(out), AnalyzerConfig(plot=False, **kwargs))
    rows = list(csv.reader(io.StringIO(out.getvalue())))
    return stats, rows
class TestCsvOutput:
    def test_header_and_rows(self):
        stats, rows = _run(_log(HEALTHY_CYCLE, NO_BACKUP_CYCLE))
        assert rows[0] == HEADER
        assert rows[1] == ['0', '1', '19', 'false', 'With Backup', '0.700', '0.300', '0.000', '0.020', '0.050',
                           '0.090', '0.050', '0', 'true', 'normal-operation']
        assert rows[2] == ['1', '20', '24', 'false', 'No Backup', '0.500', '0.000', '0.000', '0.030', '0.000',
                           '0.000', '0.000', '0', 'false', 'None']
        assert stats.rows_written == 2
        assert stats.cycles_closed == 2
    def test_header_written_without_rows(self):
        stats, rows = _run([])
        assert rows == [HEADER]
        assert stats.lines_read == 0
    def test_incomplete_capacitor_interval_skips_row(self, caplog):
        broken = without(NO_BACKUP_CYCLE, 'FilteringTime')
        with caplog.at_level(logging.ERROR):
            stats, rows = _run(_log(broken, NO_BACKUP_CYCLE))
        assert [r[0] for r in rows[1:]] == ['1']
        assert stats.cycles_skipped == 1
        assert stats.problems[0].kind == 'skipped'
        assert 'CapacitorTime' in stats.problems[0].reason
        assert 'cycle 0 from line 1 to 4 skipped' in caplog.text
    def test_rejected_cycle_has_no_row(self, caplog):
        with caplog.at_level(logging.WARNING):
            stats, rows = _run(_log(WATCHDOG_CYCLE, HEALTHY_CYCLE))
        assert [r[0] for r in rows[1:]] == ['1']
        assert rows[1][1:3] == ['4', '22']
        assert stats.cycles_rejected == 1
        assert stats.problems[0].reason == 'watchdog reset detected'
        assert 'cycle 0 from line 1 to 3 has an error: watchdog reset detected' in caplog.text
    def test_superseded_cycle_and_noise(self):
        lines = _log(NO_BACKUP_CYCLE[:2], HEALTHY_CYCLE) + ['\n', 'junk\n', make_line(5000.0, 'psm: system started, coldStart 0')]
        stats, rows = _run(lines)
        assert [r[:3] for r in rows[1:]] == [['1', '3', '21']]
        assert stats.cycles_discarded == 1
        assert stats.malformed_lines == 1
        assert stats.lines_read == 24
    def test_ignore_and_max_lines(self):
        stats, rows = _run(_log(HEALTHY_CYCLE, NO_BACKUP_CYCLE), ignore=(0,))
        assert [r[0] for r in rows[1:]] == ['1']
        assert stats.cycles_ignored == 1
        stats, rows = _run(_log(HEALTHY_CYCLE, NO_BACKUP_CYCLE), max_lines=19)
        assert [r[0] for r in rows[1:]] == ['0']
        assert stats.lines_read == 19
    def test_cold_start_flag(self):
        cold = [(1000.000, 'psm: system started, coldStart 1')] + NO_BACKUP_CYCLE[1:]
        stats, rows = _run(_log(cold))
        assert rows[1][3] == 'true'
    @pytest.mark.parametrize('value, text', [(True, 'true'), (False, 'false'), (0.5, '0.500'), (3, '3'), ('x', 'x')])
    def test_format_metric_value(self, value, text):
        assert format_metric_value(value) == text
class TestSummary:
    def test_grouped_by_last_power_state(self):
        stats, _ = _run(_log(HEALTHY_CYCLE, NO_BACKUP_CYCLE, WATCHDOG_CYCLE))
        summary = format_summary(stats)
        assert summary[0] == 'Analyzed 2 power cycles:'
        assert '  power down after None: 1; capacitor time min 0.500 max 0.500' in summary
        assert '  power down after normal-operation: 1; capacitor time min 0.700 max 0.700' in summary
        assert '1 cycles without metrics:' in summary
        assert summary[-1] == '  cycle 2 [25, 27] rejected: watchdog reset detected'
class TestRunStat:
    def test_writes_csv_file(self, tmp_path):
        log = tmp_path / 'power.log'
        log.write_text(''.join(_log(HEALTHY_CYCLE)), encoding='utf-8')
        config = AnalyzerConfig(data_name='run', work_dir=str(tmp_path), plot=False)
        stats = run_stat(str(log), config)
        assert stats.rows_written == 1
        with open(tmp_path / 'run.csv', encoding='utf-8', newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0] == HEADER
        assert len(rows) == 2
class TestTraceLines:
    def test_only_healthy_selected_cycles(self):
        out = []
        stats = trace_lines(_log(WATCHDOG_CYCLE, HEALTHY_CYCLE), [], AnalyzerConfig(), write=out.append)
        assert out[0] == '=== cycle 1: lno: 4 to 22 (coldStart 0)'
        assert len(out) > 1
        assert stats.cycles_rejected == 1
    def test_cycle_filter(self):
        out = []
        trace_lines(_log(HEALTHY_CYCLE, HEALTHY_CYCLE), [], AnalyzerConfig(cycles=(1,)), write=out.append)
        headers = [line for line in out if line.startswith('===')]
        assert headers == ['=== cycle 1: lno: 20 to 38 (coldStart 0)']
