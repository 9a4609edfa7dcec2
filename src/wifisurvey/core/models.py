"""Data models for survey measurements."""

from dataclasses import asdict, dataclass, field

from .constants import STATE_DONE, STATE_ERROR, STATE_PENDING


@dataclass(frozen=True)
class WifiReading:
    """Snapshot of the current wireless association."""

    ssid: str
    bssid: str
    rssi: int  # dBm
    signal_strength: int  # 0-100 percentage
    channel: int
    band: float  # GHz
    security: str = ""
    tx_rate: float = 0.0  # Mbit/s
    phy_mode: str = ""
    channel_width: int = 0  # MHz

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ScannedNetwork:
    """One network seen by a neighbourhood scan."""

    ssid: str
    bssid: str = ""
    current_ssid: bool = False
    signal_strength: int = 0
    channel: int = 0
    band: float = 0.0
    security: str = ""


@dataclass
class ThroughputResult:
    """Normalized result of one iperf3 probe."""

    bits_per_second: float
    retransmits: int = 0
    jitter_ms: float | None = None  # UDP only
    lost_packets: int | None = None  # UDP only
    packets_received: int | None = None  # UDP only


@dataclass
class ThroughputResults:
    """The four probes of a survey point, each possibly missing."""

    tcp_download: ThroughputResult | None = None
    tcp_upload: ThroughputResult | None = None
    udp_download: ThroughputResult | None = None
    udp_upload: ThroughputResult | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SurveyOutcome:
    """Terminal value of one orchestration run."""

    wifi_data: WifiReading | None
    throughput: ThroughputResults | None
    status: str = ""  # empty means success

    def __post_init__(self):
        """A failure status never carries measurement data."""
        if self.status:
            self.wifi_data = None
            self.throughput = None

    @property
    def ok(self) -> bool:
        return not self.status

    def to_dict(self) -> dict:
        return {
            "wifi_data": self.wifi_data.to_dict() if self.wifi_data else None,
            "throughput": self.throughput.to_dict() if self.throughput else None,
            "status": self.status,
        }


@dataclass
class SurveyResult:
    """Last known result of a run, tagged with its lifecycle state."""

    state: str  # "pending" | "done" | "error"
    explanation: str = ""
    outcome: SurveyOutcome | None = field(default=None)

    @classmethod
    def pending(cls) -> "SurveyResult":
        return cls(state=STATE_PENDING)

    @classmethod
    def from_outcome(cls, outcome: SurveyOutcome) -> "SurveyResult":
        if outcome.status:
            return cls(state=STATE_ERROR, explanation=outcome.status)
        if outcome.wifi_data is None:
            return cls(state=STATE_ERROR, explanation="wifi data is null")
        # Throughput may be None here; the point is still usable
        return cls(state=STATE_DONE, outcome=outcome)

    @classmethod
    def from_error(cls, error: BaseException) -> "SurveyResult":
        return cls(state=STATE_ERROR, explanation=str(error))

    def to_dict(self) -> dict:
        data = {"state": self.state}
        if self.explanation:
            data["explanation"] = self.explanation
        if self.outcome is not None:
            data["results"] = {
                "wifi_data": self.outcome.wifi_data.to_dict() if self.outcome.wifi_data else None,
                "throughput": self.outcome.throughput.to_dict() if self.outcome.throughput else None,
            }
        return data
