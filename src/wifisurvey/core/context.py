"""Per-run context: progress channel, cancellation token and result slot.

The orchestrator never touches module globals; everything it publishes or
polls goes through the SurveyContext handed to it. Cancellation is
cooperative: the token is polled at fixed checkpoints, so a stop request
takes effect at the next checkpoint and never interrupts a probe in flight.
"""

from dataclasses import dataclass, field
from typing import Callable

from .events import ProgressMessage
from .log import get_logger
from .models import SurveyResult

logger = get_logger(__name__)

ProgressSink = Callable[[ProgressMessage], None]


class SurveyCancelled(Exception):
    """Raised at a checkpoint once a stop was requested."""


class ProgressChannel:
    """Single slot holding the latest progress message, plus an optional push sink."""

    def __init__(self):
        self._latest: ProgressMessage | None = None
        self._sink: ProgressSink | None = None

    @property
    def latest(self) -> ProgressMessage | None:
        return self._latest

    @property
    def has_sink(self) -> bool:
        return self._sink is not None

    def register_sink(self, sink: ProgressSink) -> None:
        self._sink = sink

    def clear_sink(self, sink: ProgressSink) -> None:
        """Unregister `sink`, unless another sink has replaced it since."""
        if self._sink is sink:
            self._sink = None

    def clear_latest(self) -> None:
        self._latest = None

    def publish(self, message: ProgressMessage) -> None:
        # Retained even without a sink so pollers can read it
        self._latest = message
        sink = self._sink
        if sink is not None:
            sink(message)
        else:
            logger.warning("No progress sink registered: %s", message.header)


class CancellationToken:
    """Cooperative stop flag. Polling never clears it; reset() re-arms."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def reset(self) -> None:
        self._cancelled = False

    def check(self) -> None:
        if self._cancelled:
            raise SurveyCancelled()


@dataclass
class SurveyContext:
    """Everything a run shares with its owner."""
    progress: ProgressChannel = field(default_factory=ProgressChannel)
    cancel: CancellationToken = field(default_factory=CancellationToken)
    result: SurveyResult | None = None
