"""Linux Wi-Fi backend built on NetworkManager's `nmcli`.

Uses terse output (`nmcli -t`), where fields are separated by ':' and
literal colons (as in BSSIDs) are escaped as '\\:'.
"""

import asyncio
import subprocess

from ..core.config import SurveySettings, get_tool_path
from ..core.constants import DEFAULT_IPERF_PORT
from ..core.log import get_logger
from ..core.models import ScannedNetwork, WifiReading
from ..core.units import percentage_to_rssi
from ..survey.probe import split_server_port
from .base import WifiActions, WifiReadError

logger = get_logger(__name__)

SCAN_FIELDS = ["IN-USE", "SSID", "BSSID", "SIGNAL", "CHAN", "FREQ", "SECURITY"]
READ_FIELDS = [
    "IN-USE", "SSID", "BSSID", "SIGNAL", "CHAN", "FREQ", "RATE", "BANDWIDTH", "SECURITY",
]


def split_terse_line(line: str) -> list[str]:
    """Split one `nmcli -t` line on unescaped colons, unescaping fields."""
    fields: list[str] = []
    current: list[str] = []
    chars = iter(line)
    for ch in chars:
        if ch == "\\":
            current.append(next(chars, ""))
        elif ch == ":":
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def parse_leading_number(value: str) -> float:
    """Leading number of a field such as '5180 MHz' or '540 Mbit/s' (0.0 if none)."""
    token = value.strip().split(" ", 1)[0] if value.strip() else ""
    try:
        return float(token)
    except ValueError:
        return 0.0


def frequency_to_band(mhz: float) -> float:
    """Band in GHz for a channel centre frequency."""
    if mhz <= 0:
        return 0.0
    if mhz < 3000:
        return 2.4
    if mhz < 5925:
        return 5.0
    return 6.0


def _rows(output: str, field_names: list[str]) -> list[dict[str, str]]:
    rows = []
    for line in output.splitlines():
        if not line.strip():
            continue
        values = split_terse_line(line)
        if len(values) != len(field_names):
            logger.debug("Skipping malformed nmcli line: %r", line)
            continue
        rows.append(dict(zip(field_names, values)))
    return rows


def parse_scan_output(output: str) -> list[ScannedNetwork]:
    """Parse `nmcli -t -f <SCAN_FIELDS> device wifi list`."""
    networks = []
    for row in _rows(output, SCAN_FIELDS):
        networks.append(ScannedNetwork(
            ssid=row["SSID"],
            bssid=row["BSSID"].lower(),
            current_ssid=row["IN-USE"].strip() == "*",
            signal_strength=int(parse_leading_number(row["SIGNAL"])),
            channel=int(parse_leading_number(row["CHAN"])),
            band=frequency_to_band(parse_leading_number(row["FREQ"])),
            security=row["SECURITY"],
        ))
    return networks


def parse_current_output(output: str) -> list[WifiReading]:
    """Parse `nmcli -t -f <READ_FIELDS> device wifi list`, keeping the in-use row(s)."""
    readings = []
    for row in _rows(output, READ_FIELDS):
        if row["IN-USE"].strip() != "*":
            continue
        signal = int(parse_leading_number(row["SIGNAL"]))
        readings.append(WifiReading(
            ssid=row["SSID"],
            bssid=row["BSSID"].lower(),
            rssi=percentage_to_rssi(signal),
            signal_strength=signal,
            channel=int(parse_leading_number(row["CHAN"])),
            band=frequency_to_band(parse_leading_number(row["FREQ"])),
            security=row["SECURITY"],
            tx_rate=parse_leading_number(row["RATE"]),
            channel_width=int(parse_leading_number(row["BANDWIDTH"])),
        ))
    return readings


class NmcliWifiActions(WifiActions):
    name = "nmcli"

    def _nmcli(self) -> str:
        return self.config.get("tools", {}).get("nmcli") or "nmcli"

    def _timeout(self) -> float:
        return float(self.config.get("wifi", {}).get("server_check_timeout", 3.0))

    async def preflight_settings(self, settings: SurveySettings) -> str:
        if settings.test_duration <= 0:
            return "Test duration must be a positive number of seconds"
        try:
            get_tool_path(self.config, "nmcli")
        except FileNotFoundError:
            return "nmcli not found: the nmcli backend needs NetworkManager"
        if not settings.throughput_disabled:
            try:
                get_tool_path(self.config, "iperf3")
            except FileNotFoundError:
                return "iperf3 not found on PATH"
        return ""

    async def check_iperf_server(self, settings: SurveySettings) -> str:
        host, port = split_server_port(settings.iperf_server)
        port_num = int(port) if port else DEFAULT_IPERF_PORT
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port_num), timeout=self._timeout(),
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug("iperf3 server %s:%d unreachable: %s", host, port_num, e)
            return f"Cannot connect to iperf3 server at {host}:{port_num}"
        writer.close()
        await writer.wait_closed()
        return ""

    async def scan_wifi(self, settings: SurveySettings) -> list[ScannedNetwork]:
        output = await self._list(settings, SCAN_FIELDS, rescan="auto")
        return parse_scan_output(output)

    async def get_wifi(self, settings: SurveySettings) -> list[WifiReading]:
        output = await self._list(settings, READ_FIELDS, rescan="no")
        readings = parse_current_output(output)
        if not readings:
            raise WifiReadError("nmcli reports no active Wi-Fi connection")
        return readings

    async def _list(self, settings: SurveySettings, field_names: list[str], rescan: str) -> str:
        cmd = [self._nmcli(), "-t", "-f", ",".join(field_names), "device", "wifi", "list"]
        if settings.interface:
            cmd.extend(["ifname", settings.interface])
        cmd.extend(["--rescan", rescan])
        return await asyncio.to_thread(self._run, cmd)

    def _run(self, cmd: list[str]) -> str:
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise WifiReadError(f"nmcli failed: {e}") from e
        if proc.returncode != 0:
            raise WifiReadError(f"nmcli failed: {proc.stderr.strip() or proc.returncode}")
        return proc.stdout
