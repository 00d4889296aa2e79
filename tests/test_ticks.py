"""Testes da aritmética de ticks com volta em 2^32."""
import pytest
from plogspector.ticks import TICK_HALF_PERIOD, TICK_MODULUS, seconds_between, tick_diff, ticks_to_seconds
class TestTickDiff:
    def test_simple_forward_difference(self):
        assert tick_diff(1000, 1500) == 500
    def test_backward_difference_is_negative(self):
        assert tick_diff(1500, 1000) == -500
    def test_across_wraparound(self):
        assert tick_diff(4294967290, 5) == 11
    def test_backward_across_wraparound(self):
        assert tick_diff(5, 4294967290) == -11
    @pytest.mark.parametrize("a,b", [
        (0, 0), (0, 1), (123456, 7890), (TICK_MODULUS - 1, 0), (2 ** 31 - 5, 2 ** 31 + 5), (17, TICK_MODULUS - 3),
    ])
    def test_antisymmetric(self, a, b):
        assert tick_diff(a, b) == -tick_diff(b, a)
    def test_half_period_boundary_is_positive_both_ways(self):
        assert tick_diff(0, TICK_HALF_PERIOD) == TICK_HALF_PERIOD
        assert tick_diff(TICK_HALF_PERIOD, 0) == TICK_HALF_PERIOD
    def test_result_range(self):
        for a, b in [(0, TICK_HALF_PERIOD + 1), (10, 9), (TICK_MODULUS - 1, TICK_HALF_PERIOD)]:
            assert -TICK_HALF_PERIOD < tick_diff(a, b) <= TICK_HALF_PERIOD
class TestSeconds:
    def test_ticks_to_seconds(self):
        assert ticks_to_seconds(1500) == pytest.approx(1.5)
    def test_seconds_between_wraps(self):
        assert seconds_between(TICK_MODULUS - 250, 250) == pytest.approx(0.5)
