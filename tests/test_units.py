"""Tests for signal and throughput conversions."""

import pytest

from wifisurvey.core.units import (
    average,
    percentage_to_rssi,
    round_half_up,
    rssi_to_percentage,
    to_mbps,
)


class TestRounding:
    @pytest.mark.parametrize("value,expected", [
        (0.5, 1), (1.4, 1), (2.5, 3), (-64.5, -64), (-0.5, 0),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_average(self):
        assert average([70, 71, 73]) == 71
        assert average([70, 71]) == 71
        assert average([]) == 0


class TestSignalConversion:
    @pytest.mark.parametrize("pct,rssi", [(0, -100), (70, -65), (71, -64), (100, -50)])
    def test_percentage_to_rssi(self, pct, rssi):
        assert percentage_to_rssi(pct) == rssi

    @pytest.mark.parametrize("rssi,pct", [(-110, 0), (-100, 0), (-65, 70), (-50, 100), (-30, 100)])
    def test_rssi_to_percentage(self, rssi, pct):
        assert rssi_to_percentage(rssi) == pct

    def test_round_trip_for_even_percentages(self):
        for pct in range(0, 101, 2):
            assert rssi_to_percentage(percentage_to_rssi(pct)) == pct


def test_to_mbps():
    assert to_mbps(123_456_789) == "123.46"
    assert to_mbps(0) == "0.00"
