"""Shared test fixtures and collaborator doubles."""

import pytest
import tomli_w

from wifisurvey.core.config import SurveySettings
from wifisurvey.core.context import SurveyContext
from wifisurvey.core.models import ScannedNetwork, ThroughputResult, WifiReading
from wifisurvey.survey.fallback import ServerFallbackRunner
from wifisurvey.survey.orchestrator import SurveyOrchestrator
from wifisurvey.survey.probe import ProbeError
from wifisurvey.wifi.base import WifiActions

BSSID_A = "aa:bb:cc:00:00:01"
BSSID_B = "aa:bb:cc:00:00:02"


def make_reading(**overrides) -> WifiReading:
    values = {
        "ssid": "office",
        "bssid": BSSID_A,
        "rssi": -65,
        "signal_strength": 70,
        "channel": 36,
        "band": 5.0,
        "security": "WPA2",
        "tx_rate": 866.7,
    }
    values.update(overrides)
    return WifiReading(**values)


class FakeWifi(WifiActions):
    """Scripted Wi-Fi collaborator.

    `readings` is consumed one entry per get_wifi() call (the last entry
    repeats); an Exception entry is raised instead of returned. `on_read`
    is called with the 1-based read count before each read.
    """

    name = "fake"

    def __init__(self, readings=None, preflight_reason="", server_reasons=None,
                 networks=None, scan_error=None):
        super().__init__({})
        self.readings = list(readings) if readings is not None else [make_reading()]
        self.preflight_reason = preflight_reason
        self.server_reasons = server_reasons or {}
        self.networks = networks if networks is not None else [
            ScannedNetwork(ssid="office", bssid=BSSID_A, current_ssid=True),
            ScannedNetwork(ssid="guest", bssid="aa:bb:cc:00:00:99"),
        ]
        self.scan_error = scan_error
        self.checked_servers: list[str] = []
        self.scans = 0
        self.reads = 0
        self.on_read = None

    async def preflight_settings(self, settings):
        return self.preflight_reason

    async def check_iperf_server(self, settings):
        self.checked_servers.append(settings.iperf_server)
        return self.server_reasons.get(settings.iperf_server, "")

    async def scan_wifi(self, settings):
        self.scans += 1
        if self.scan_error is not None:
            raise self.scan_error
        return self.networks

    async def get_wifi(self, settings):
        self.reads += 1
        if self.on_read is not None:
            self.on_read(self.reads)
        item = self.readings[min(self.reads - 1, len(self.readings) - 1)]
        if isinstance(item, Exception):
            raise item
        return [item]


class FakeProbe:
    """Records probe calls; fails for listed servers or protocols."""

    def __init__(self, failing_servers=(), failing_protocols=(), bps=100_000_000.0):
        self.failing_servers = set(failing_servers)
        self.failing_protocols = set(failing_protocols)
        self.bps = bps
        self.calls: list[tuple[str, str, str]] = []
        self.on_probe = None

    async def probe(self, server, duration, direction, protocol):
        self.calls.append((server, direction, protocol))
        if self.on_probe is not None:
            self.on_probe(server, direction, protocol)
        if server in self.failing_servers or protocol in self.failing_protocols:
            raise ProbeError(f"iperf3 failed: {server} unreachable")
        if protocol == "UDP":
            return ThroughputResult(bits_per_second=self.bps, jitter_ms=0.5,
                                    lost_packets=3, packets_received=1000)
        return ThroughputResult(bits_per_second=self.bps, retransmits=2)


class RecordingSink:
    def __init__(self):
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)

    @property
    def headers(self):
        return [m.header for m in self.messages]


@pytest.fixture
def context():
    ctx = SurveyContext()
    sink = RecordingSink()
    ctx.progress.register_sink(sink)
    ctx.sink = sink
    return ctx


@pytest.fixture
def make_orchestrator(context):
    """Build an orchestrator around a FakeWifi and FakeProbe with no phase delay."""
    def _make(wifi=None, probe=None):
        wifi = wifi or FakeWifi()
        probe = probe or FakeProbe()
        orchestrator = SurveyOrchestrator(
            wifi, context, fallback=ServerFallbackRunner(probe), disabled_delay=0,
        )
        return orchestrator, wifi, probe
    return _make


@pytest.fixture
def settings():
    return SurveySettings(iperf_server="primary", iperf_server_backup="backup", test_duration=1)


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    """Temporary defaults.toml using the simulated backend."""
    config = {
        "survey": {
            "iperf_server": "localhost",
            "iperf_server_backup": "",
            "test_duration": 1,
            "max_attempts": 3,
        },
        "wifi": {"backend": "simulated", "interface": "", "server_check_timeout": 1.0},
        "tools": {"iperf3": "iperf3", "nmcli": "nmcli"},
        "logging": {"level": "WARNING"},
        "web": {"host": "127.0.0.1", "port": 8765},
    }
    toml_path = tmp_path / "defaults.toml"
    with open(toml_path, "wb") as f:
        tomli_w.dump(config, f)
    monkeypatch.setattr("wifisurvey.core.config.DEFAULTS_PATH", toml_path)
    return toml_path
