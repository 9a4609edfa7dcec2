"""Progress message protocol for CLI and web streaming."""

from dataclasses import asdict, dataclass

from .constants import KIND_UPDATE

NO_VALUE = "-"
NO_THROUGHPUT = "-/- Mbps"


@dataclass(frozen=True)
class ProgressMessage:
    """A progress update published by a survey run.

    Used by both CLI (Rich console) and web (SSE streaming and polling).
    """
    kind: str  # "update" | "done"
    header: str  # short phase label
    status: str  # multi-line detail

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DisplayState:
    """Mutable display fields of one run, rendered into ProgressMessages."""
    kind: str = KIND_UPDATE
    header: str = "In progress"
    strength: str = NO_VALUE
    tcp: str = NO_THROUGHPUT
    udp: str = NO_THROUGHPUT

    def reset(self, header: str) -> None:
        self.kind = KIND_UPDATE
        self.header = header
        self.strength = NO_VALUE
        self.tcp = NO_THROUGHPUT
        self.udp = NO_THROUGHPUT

    def message(self) -> ProgressMessage:
        strength = self.strength
        if strength != NO_VALUE:
            strength += "%"
        return ProgressMessage(
            kind=self.kind,
            header=self.header,
            status=f"Signal strength: {strength}\nTCP: {self.tcp}\nUDP: {self.udp}",
        )
