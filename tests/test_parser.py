"""Tests for iperf3 JSON parsing."""

import pytest

from wifisurvey.survey.parser import (
    IperfParseError,
    NewSchema,
    OldSchema,
    detect_schema,
    parse_iperf_result,
)

NEW_TCP = {
    "end": {
        "sum_sent": {"bits_per_second": 95_000_000.0, "retransmits": 7},
        "sum_received": {"bits_per_second": 94_000_000.0},
    }
}

NEW_UDP = {
    "end": {
        "sum": {
            "bits_per_second": 80_000_000.0,
            "jitter_ms": 0.12,
            "lost_packets": 4,
            "packets": 6900,
        },
        "sum_sent": {"bits_per_second": 81_000_000.0},
        "sum_received": {"bits_per_second": 12_000_000.0},
    }
}

OLD_TCP = {"end": {"sum": {"bits_per_second": 50_000_000.0, "retransmits": 3}}}

OLD_UDP = {
    "end": {
        "sum": {
            "bits_per_second": 40_000_000.0,
            "jitter_ms": 1.5,
            "lost_packets": 0,
            "packets": 3400,
        }
    }
}


class TestDetectSchema:
    def test_split_summaries_are_new(self):
        assert isinstance(detect_schema(NEW_TCP), NewSchema)

    def test_single_sum_is_old(self):
        assert isinstance(detect_schema(OLD_TCP), OldSchema)

    def test_empty_sum_received_is_old(self):
        raw = {"end": {"sum_received": {}, "sum": {"bits_per_second": 1.0}}}
        assert isinstance(detect_schema(raw), OldSchema)

    def test_missing_end(self):
        with pytest.raises(IperfParseError, match="no 'end'"):
            detect_schema({"start": {}})

    def test_not_an_object(self):
        with pytest.raises(IperfParseError):
            detect_schema([1, 2, 3])


class TestParseTcp:
    def test_new_schema_uses_received_side(self):
        result = parse_iperf_result(NEW_TCP, is_udp=False)
        assert result.bits_per_second == 94_000_000.0
        assert result.retransmits == 7
        assert result.jitter_ms is None
        assert result.lost_packets is None
        assert result.packets_received is None

    def test_old_schema(self):
        result = parse_iperf_result(OLD_TCP, is_udp=False)
        assert result.bits_per_second == 50_000_000.0
        assert result.retransmits == 3

    def test_missing_retransmits_default_to_zero(self):
        raw = {"end": {"sum": {"bits_per_second": 10.0}}}
        assert parse_iperf_result(raw, is_udp=False).retransmits == 0


class TestParseUdp:
    def test_new_schema_uses_overall_sum(self):
        result = parse_iperf_result(NEW_UDP, is_udp=True)
        assert result.bits_per_second == 80_000_000.0
        assert result.jitter_ms == 0.12
        assert result.lost_packets == 4
        assert result.packets_received == 6900

    def test_old_schema(self):
        result = parse_iperf_result(OLD_UDP, is_udp=True)
        assert result.bits_per_second == 40_000_000.0
        assert result.jitter_ms == 1.5
        assert result.packets_received == 3400

    def test_zero_lost_packets_kept(self):
        assert parse_iperf_result(OLD_UDP, is_udp=True).lost_packets == 0


class TestParseErrors:
    def test_zero_bits_per_second(self):
        raw = {"end": {"sum": {"bits_per_second": 0}}}
        with pytest.raises(IperfParseError, match="No bits per second"):
            parse_iperf_result(raw, is_udp=False)

    def test_missing_bits_per_second(self):
        with pytest.raises(IperfParseError, match="No bits per second"):
            parse_iperf_result({"end": {"sum": {}}}, is_udp=True)

    def test_new_udp_without_sum(self):
        raw = {"end": {"sum_received": {"bits_per_second": 5.0}}}
        with pytest.raises(IperfParseError):
            parse_iperf_result(raw, is_udp=True)

    def test_parse_error_is_value_error(self):
        assert issubclass(IperfParseError, ValueError)
