"""Ordered multi-server fallback around ThroughputProbe."""

from typing import Callable

from ..core.log import get_logger
from ..core.models import ThroughputResult
from .probe import ThroughputProbe
from .retry import first_success

logger = get_logger(__name__)


class ServerFallbackRunner:
    """Tries each server in order until one probe succeeds.

    `announce` receives a header line before each server is tried and after
    each failure; the orchestrator uses it to publish progress.
    """

    def __init__(self, probe: ThroughputProbe | None = None):
        self.probe = probe or ThroughputProbe()

    async def run_with_fallback(
        self,
        servers: list[str],
        duration: int,
        direction: str,
        protocol: str,
        attempt_counters: dict[str, int],
        *,
        attempt: int = 1,
        max_attempts: int = 1,
        announce: Callable[[str], None] | None = None,
    ) -> ThroughputResult:
        """Probe `servers` in order; re-raise the last failure if all fail."""
        prefix = f"Attempt {attempt}/{max_attempts}"

        async def try_server(server: str) -> ThroughputResult:
            attempt_counters[server] = attempt_counters.get(server, 0) + 1
            if announce:
                announce(f"{prefix}: trying {server}")
            return await self.probe.probe(server, duration, direction, protocol)

        def on_failure(server: str, error: Exception) -> None:
            logger.warning(
                "%s %s test failed on %s (try %d), trying next if available: %s",
                protocol, direction, server, attempt_counters[server], error,
            )
            if announce:
                announce(f"{prefix}: {server} failed, trying next")

        return await first_success(
            try_server,
            servers,
            on_failure=on_failure,
            empty_message="No servers provided for iperf test",
        )
