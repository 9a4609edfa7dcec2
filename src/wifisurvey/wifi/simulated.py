"""Simulated Wi-Fi backend for demos and testing."""

import random

from ..core.config import SurveySettings
from ..core.models import ScannedNetwork, WifiReading
from ..core.units import percentage_to_rssi
from .base import WifiActions


class SimulatedWifiActions(WifiActions):
    """Reports a fixed association with a jittering signal level."""

    name = "simulated"

    def __init__(self, config: dict | None = None, seed: int | None = None,
                 bssid_sequence: list[str] | None = None):
        """Initialize with optional seed and a scripted BSSID sequence.

        `bssid_sequence` is consumed one entry per get_wifi() call (the last
        entry repeats), which lets callers simulate roaming between readings.
        """
        super().__init__(config or {})
        self._random = random.Random(seed)
        self._bssids = list(bssid_sequence or [])

        # Simulation parameters
        self.ssid = "survey-lab"
        self.bssid = "aa:bb:cc:dd:ee:01"
        self.channel = 36
        self.band = 5.0
        self.base_signal = 70
        self.signal_variance = 4.0
        self.reads = 0

    async def preflight_settings(self, settings: SurveySettings) -> str:
        return ""

    async def check_iperf_server(self, settings: SurveySettings) -> str:
        return ""

    async def scan_wifi(self, settings: SurveySettings) -> list[ScannedNetwork]:
        return [
            ScannedNetwork(ssid=self.ssid, bssid=self.bssid, current_ssid=True,
                           signal_strength=self.base_signal, channel=self.channel, band=self.band),
            ScannedNetwork(ssid="neighbour", bssid="aa:bb:cc:dd:ee:99",
                           signal_strength=35, channel=6, band=2.4),
        ]

    async def get_wifi(self, settings: SurveySettings) -> list[WifiReading]:
        if self._bssids:
            bssid = self._bssids[min(self.reads, len(self._bssids) - 1)]
        else:
            bssid = self.bssid
        self.reads += 1

        signal = self.base_signal + self._random.gauss(0, self.signal_variance)
        signal = int(max(0, min(100, round(signal))))
        return [WifiReading(
            ssid=self.ssid,
            bssid=bssid,
            rssi=percentage_to_rssi(signal),
            signal_strength=signal,
            channel=self.channel,
            band=self.band,
            security="WPA2",
            tx_rate=866.7,
            phy_mode="802.11ac",
            channel_width=80,
        )]
