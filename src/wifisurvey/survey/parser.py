"""iperf3 JSON parsing: schema detection, then per-schema extraction.

iperf3 has shipped two incompatible `end` summaries:

- newer releases (3.17+) split the totals into `sum_sent` and
  `sum_received`. For TCP the received side is the real throughput. For UDP
  the received side only reflects a partial capture, so the overall `sum` is
  used instead.
- older releases (e.g. 3.9) report everything in a single `sum`.

detect_schema() tags the raw result once; each variant then owns its
extraction rules.
"""

from dataclasses import dataclass

from ..core.models import ThroughputResult


class IperfParseError(ValueError):
    """The iperf3 output holds no usable throughput figure."""


@dataclass(frozen=True)
class NewSchema:
    """`end` with split `sum_sent` / `sum_received` summaries."""
    end: dict

    def bits_per_second(self, is_udp: bool) -> float:
        summary = self.end.get("sum") if is_udp else self.end.get("sum_received")
        return (summary or {}).get("bits_per_second") or 0

    def retransmits(self) -> int:
        return (self.end.get("sum_sent") or {}).get("retransmits") or 0


@dataclass(frozen=True)
class OldSchema:
    """`end` with a single overall `sum`."""
    end: dict

    def bits_per_second(self, is_udp: bool) -> float:
        return (self.end.get("sum") or {}).get("bits_per_second") or 0

    def retransmits(self) -> int:
        return (self.end.get("sum") or {}).get("retransmits") or 0


IperfSchema = NewSchema | OldSchema


def detect_schema(raw: dict) -> IperfSchema:
    """Tag a raw iperf3 result with the summary layout it uses."""
    if not isinstance(raw, dict):
        raise IperfParseError(f"iperf3 result is not a JSON object: {type(raw).__name__}")
    end = raw.get("end")
    if not isinstance(end, dict):
        raise IperfParseError("iperf3 result has no 'end' summary")
    if end.get("sum_received"):
        return NewSchema(end)
    return OldSchema(end)


def parse_iperf_result(raw: dict, is_udp: bool) -> ThroughputResult:
    """Normalize raw iperf3 JSON into a ThroughputResult.

    Args:
        raw: Parsed `iperf3 -J` output
        is_udp: Whether the probe was a UDP test

    Returns:
        ThroughputResult; jitter / lost / packet counts are set for UDP only

    Raises:
        IperfParseError: when the chosen bits-per-second figure is zero or missing
    """
    schema = detect_schema(raw)
    bits_per_second = schema.bits_per_second(is_udp)
    if not bits_per_second:
        raise IperfParseError("No bits per second found in iperf results")

    result = ThroughputResult(
        bits_per_second=float(bits_per_second),
        retransmits=int(schema.retransmits()),
    )
    if is_udp:
        udp_sum = schema.end.get("sum") or {}
        result.jitter_ms = udp_sum.get("jitter_ms")
        result.lost_packets = udp_sum.get("lost_packets")
        result.packets_received = udp_sum.get("packets")
    return result
