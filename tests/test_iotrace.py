"""Testes do trace de sinais de IO."""
import json
import pytest
from plogspector.errors import UnknownSignal
from plogspector.iotrace import (
    IOSignal, format_trace_header, format_trace_line, load_io_map, parse_signal_definition,
    reconstruct_io_trace, resolve_signals,
)
from conftest import build_cycle
BKP_EN = IOSignal('BKP_EN', 0x48000400, 5)
TRACE_CYCLE = [
    (1.000, 'psm: system started, coldStart 0'),
    (1.100, 'psm: power up external devices'),
    (1.150, 'io: gpio port 0x48000400 pin 5 state 1'),
    (1.160, 'io: gpio port 0x48000400 pin 5 state 1'),
    (1.200, 'io: gpio port 0x10 pin 2 state 0'),
    (1.300, 'psc: PSCm send event PowerBelowPowersaveLevel'),
    (1.400, 'psm: start shutdown'),
    (1.450, 'io: gpio port 0x48000400 pin 5 state 0'),
    (1.500, 'psm: shutdown took 500 ms'),
]
@pytest.fixture
def trace_cycle():
    return build_cycle(TRACE_CYCLE)
class TestReconstruct:
    def test_transitions_and_annotations(self, trace_cycle, dialect):
        trace = reconstruct_io_trace(trace_cycle, [BKP_EN], dialect)
        assert [(t.line_number, t.label, t.detail) for t in trace] == [
            (2, 'EXT-POWER', 'up'),
            (3, 'BKP_EN', '1'),
            (6, 'PSM', 'dispatch PowerBelowPowersaveLevel'),
            (7, 'SHUTDOWN', 'start shutdown detected'),
            (8, 'BKP_EN', '0'),
        ]
    def test_delta_is_relative_to_previous_emitted_line(self, trace_cycle, dialect):
        trace = reconstruct_io_trace(trace_cycle, [BKP_EN], dialect)
        assert [t.delta_ms for t in trace] == [100, 50, 150, 100, 50]
    def test_untracked_signal_is_silent(self, trace_cycle, dialect):
        trace = reconstruct_io_trace(trace_cycle, [IOSignal('OTHER', 0x20, 1)], dialect)
        assert all(t.label != 'OTHER' for t in trace)
        assert len(trace) == 3
    def test_decimal_port_matches(self, dialect):
        cycle = build_cycle([
            (1.0, 'psm: system started, coldStart 1'),
            (1.2, 'io: GPIO port=16, pin=2, level=1'),
            (1.5, 'psm: shutdown took 500 ms'),
        ])
        trace = reconstruct_io_trace(cycle, [IOSignal('LED', 0x10, 2)], dialect)
        assert [(t.label, t.detail, t.delta_ms) for t in trace] == [('LED', '1', 200)]
    def test_formatting(self, trace_cycle, dialect):
        trace = reconstruct_io_trace(trace_cycle, [BKP_EN], dialect)
        assert format_trace_header(trace_cycle) == '=== cycle 0: lno: 1 to 9 (coldStart 0)'
        assert format_trace_line(trace[1]).split() == ['3', '1.150', '+0.050', 'BKP_EN', '1']
class TestSignalCatalog:
    def test_parse_signal_definition(self):
        assert parse_signal_definition('BKP_EN=0x48000400:5') == BKP_EN
        assert parse_signal_definition('LED=16:2') == IOSignal('LED', 16, 2)
    @pytest.mark.parametrize('definition', ['BKP_EN', 'BKP_EN=0x10', '=0x10:1', 'X=zz:1'])
    def test_parse_signal_definition_invalid(self, definition):
        with pytest.raises(ValueError):
            parse_signal_definition(definition)
    def test_resolve_unknown_signal(self):
        with pytest.raises(UnknownSignal) as exc:
            resolve_signals(['BKP_EN', 'FOO'], {'BKP_EN': BKP_EN})
        assert "unknown IO signal 'FOO'" in str(exc.value)
        assert 'BKP_EN' in str(exc.value)
    def test_load_io_map(self, tmp_path):
        path = tmp_path / 'io.json'
        path.write_text(json.dumps({
            'BKP_EN': {'port': '0x48000400', 'pin': 5},
            'LED': {'port': 16, 'pin': '2'},
            'BROKEN': {'pin': 1},
            'BAD_PORT': {'port': 'xyz', 'pin': 1},
        }), encoding='utf-8')
        catalog = load_io_map(str(path))
        assert catalog == {'BKP_EN': BKP_EN, 'LED': IOSignal('LED', 16, 2)}
    def test_load_io_map_failures(self, tmp_path):
        assert load_io_map(str(tmp_path / 'missing.json')) is None
        bad = tmp_path / 'bad.json'
        bad.write_text('{not json', encoding='utf-8')
        assert load_io_map(str(bad)) is None
        listed = tmp_path / 'list.json'
        listed.write_text('[1, 2]', encoding='utf-8')
        assert load_io_map(str(listed)) is None
