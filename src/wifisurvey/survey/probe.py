"""iperf3 throughput probe: one server, one direction, one protocol.

The blocking subprocess call runs in a worker thread so the survey's event
loop only suspends while the probe is in flight. A probe is never
interrupted; cancellation is honored by the caller between probes.
"""

import asyncio
import json
import subprocess

from ..core.constants import DIRECTION_DOWN, PROTOCOL_UDP
from ..core.log import get_logger
from ..core.models import ThroughputResult
from .parser import parse_iperf_result

logger = get_logger(__name__)


class ProbeError(Exception):
    """iperf3 could not be run or reported an error."""


def split_server_port(server: str) -> tuple[str, str]:
    """Split "host:port" into (host, port). Port is "" when absent.

    Bare IPv6 literals (more than one colon) are returned unchanged.
    """
    host, sep, port = server.rpartition(":")
    if not sep or ":" in host or not port.isdigit():
        return server, ""
    return host, port


class ThroughputProbe:
    """Runs `iperf3 -J` against a server and parses the result."""

    def __init__(self, executable: str = "iperf3", timeout_margin: float = 10.0):
        self.executable = executable
        self.timeout_margin = timeout_margin

    def build_command(self, server: str, duration: int, direction: str, protocol: str) -> list[str]:
        host, port = split_server_port(server)
        cmd = [self.executable, "-c", host]
        if port:
            cmd.extend(["-p", port])
        cmd.extend(["-t", str(duration)])
        # Reverse mode: server sends, client receives
        if direction == DIRECTION_DOWN:
            cmd.append("-R")
        # Unlimited target bandwidth for UDP
        if protocol == PROTOCOL_UDP:
            cmd.extend(["-u", "-b", "0"])
        cmd.append("-J")
        return cmd

    async def probe(self, server: str, duration: int, direction: str, protocol: str) -> ThroughputResult:
        """Run one probe. Raises ProbeError or IperfParseError on failure."""
        cmd = self.build_command(server, duration, direction, protocol)
        logger.debug("Running: %s", " ".join(cmd))
        raw = await asyncio.to_thread(self._run, cmd, duration + self.timeout_margin)
        result = parse_iperf_result(raw, protocol == PROTOCOL_UDP)
        logger.debug(
            "%s %s via %s: %.0f bps", protocol, direction, server, result.bits_per_second,
        )
        return result

    def _run(self, cmd: list[str], timeout: float) -> dict:
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"iperf3 timed out after {timeout:.0f}s") from e
        except FileNotFoundError as e:
            raise ProbeError(f"iperf3 not found: {self.executable}") from e

        try:
            raw = json.loads(proc.stdout) if proc.stdout.strip() else {}
        except json.JSONDecodeError as e:
            raise ProbeError(f"iperf3 produced invalid JSON: {e}") from e

        error = raw.get("error") if isinstance(raw, dict) else None
        if proc.returncode != 0 or error:
            detail = error or proc.stderr.strip() or f"exit code {proc.returncode}"
            raise ProbeError(f"iperf3 failed: {detail}")
        return raw
