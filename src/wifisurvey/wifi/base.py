"""Abstract Wi-Fi collaborator interface for platform backends."""

from abc import ABC, abstractmethod

from ..core.config import SurveySettings
from ..core.models import ScannedNetwork, WifiReading


class WifiReadError(Exception):
    """The platform could not report the current wireless association."""


class WifiActions(ABC):
    """Abstract base for Wi-Fi backends (nmcli, simulated, etc.)."""

    def __init__(self, config: dict):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier for this backend."""

    @abstractmethod
    async def preflight_settings(self, settings: SurveySettings) -> str:
        """Validate settings and platform prerequisites.

        Returns:
            "" to proceed, otherwise a human-readable rejection reason
        """

    @abstractmethod
    async def check_iperf_server(self, settings: SurveySettings) -> str:
        """Check that settings.iperf_server accepts connections.

        Returns:
            "" if usable, otherwise the reason it is not
        """

    @abstractmethod
    async def scan_wifi(self, settings: SurveySettings) -> list[ScannedNetwork]:
        """List visible networks; the associated one has current_ssid=True."""

    @abstractmethod
    async def get_wifi(self, settings: SurveySettings) -> list[WifiReading]:
        """Read the current association. The first element is the one measured."""
