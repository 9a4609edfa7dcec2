"""Survey orchestrator: Wi-Fi readings and iperf3 probes for one survey point.

A run goes through preflight, server selection, then up to `max_attempts`
attempts. Each attempt reads the Wi-Fi link before, between and after the
TCP and UDP phases. The first attempt whose before/after readings describe
the same network produces the result.

Failure handling:
- preflight rejection ends the run with the rejection as status
- unreachable servers only disable throughput testing
- probe failures fall back to the next server, then degrade to "iperf failed"
- a changed network (or failed read) abandons the current attempt only
- cancellation, polled at six checkpoints per attempt, ends the run at once
- anything raised outside the attempt loop is published as an error and re-raised
"""

import asyncio
from dataclasses import replace

from ..core.config import SurveySettings
from ..core.constants import (
    DIRECTION_DOWN,
    DIRECTION_UP,
    DISABLED_PHASE_DELAY_S,
    KIND_DONE,
    PROTOCOL_TCP,
    PROTOCOL_UDP,
    REASON_NOT_PERFORMED,
    REASON_SERVER_UNREACHABLE,
    STATUS_CANCELLED,
    STATUS_NO_WIFI_DATA,
)
from ..core.context import SurveyCancelled, SurveyContext
from ..core.events import DisplayState, ProgressMessage
from ..core.log import get_logger
from ..core.models import ScannedNetwork, SurveyOutcome, ThroughputResults, WifiReading
from ..core.units import average, percentage_to_rssi, to_mbps
from ..wifi.base import WifiActions, WifiReadError
from .consistency import InconsistentReadingError, is_consistent
from .fallback import ServerFallbackRunner
from .retry import attempt_schedule, first_success

logger = get_logger(__name__)


class SurveyOrchestrator:
    """Runs one end-to-end survey-point measurement."""

    def __init__(
        self,
        wifi: WifiActions,
        context: SurveyContext,
        *,
        fallback: ServerFallbackRunner | None = None,
        max_attempts: int | None = None,
        disabled_delay: float = DISABLED_PHASE_DELAY_S,
    ):
        self.wifi = wifi
        self.context = context
        self.fallback = fallback or ServerFallbackRunner()
        self.max_attempts = max_attempts
        self.disabled_delay = disabled_delay

        # Per-run state, reset by run()
        self._display = DisplayState()
        self._attempts_by_server: dict[str, int] = {}
        self._throughput = ThroughputResults()
        self._throughput_ok = False

    @property
    def attempts_by_server(self) -> dict[str, int]:
        return dict(self._attempts_by_server)

    async def run(self, settings: SurveySettings) -> SurveyOutcome:
        """Measure one survey point. Raises only on infrastructure failure."""
        try:
            return await self._run(settings)
        except Exception:
            logger.exception("Error running measurement tests")
            self.context.progress.publish(ProgressMessage(
                kind=KIND_DONE, header="Error", status="Error taking measurements",
            ))
            raise

    async def _run(self, settings: SurveySettings) -> SurveyOutcome:
        reason = await self.wifi.preflight_settings(settings)
        if reason:
            logger.info("Preflight rejected settings: %s", reason)
            return SurveyOutcome(wifi_data=None, throughput=None, status=reason)

        servers, disabled_reason = await self._select_servers(settings)
        max_attempts = self.max_attempts or settings.max_attempts

        self._attempts_by_server = {}
        self._throughput = ThroughputResults()
        self._throughput_ok = False
        self._display.reset("Measurement beginning")
        self._publish()
        self._display.header = "Measurement in progress..."

        ssid_name = _current_ssid(await self.wifi.scan_wifi(settings))
        header = "Measuring Wi-Fi"
        if "redacted" not in ssid_name:
            header += f" ({ssid_name})"

        async def attempt(plan: tuple[int, list[str]]) -> WifiReading:
            number, ordered_servers = plan
            return await self._attempt(
                settings, number, max_attempts, ordered_servers, header, disabled_reason,
            )

        def attempt_failed(plan: tuple[int, list[str]], error: Exception) -> None:
            logger.error("Attempt %d failed: %s", plan[0], error, exc_info=error)

        try:
            wifi_data = await first_success(
                attempt,
                attempt_schedule(servers, max_attempts),
                on_failure=attempt_failed,
                propagate=(SurveyCancelled,),
            )
        except SurveyCancelled:
            logger.info("Survey cancelled")
            self._publish_stopped(STATUS_CANCELLED)
            return SurveyOutcome(wifi_data=None, throughput=None, status=STATUS_CANCELLED)
        except Exception:
            # Every attempt failed; each was logged by attempt_failed
            wifi_data = None

        throughput = self._throughput if self._throughput_ok else None
        if wifi_data is None:
            self._publish_stopped(STATUS_NO_WIFI_DATA)
            return SurveyOutcome(wifi_data=None, throughput=throughput, status=STATUS_NO_WIFI_DATA)

        self._display.kind = KIND_DONE
        self._display.header = "Measurement complete"
        self._publish()
        logger.info(
            "Survey point measured: ssid=%s signal=%d%% throughput=%s",
            wifi_data.ssid, wifi_data.signal_strength, "yes" if throughput else "no",
        )
        return SurveyOutcome(wifi_data=wifi_data, throughput=throughput, status="")

    async def _select_servers(self, settings: SurveySettings) -> tuple[list[str], str | None]:
        """Ordered server list, or ([], reason) when throughput testing is off."""
        if settings.throughput_disabled:
            return [], REASON_NOT_PERFORMED

        primary = settings.iperf_server
        backup = settings.usable_backup

        primary_reason = await self.wifi.check_iperf_server(settings)
        logger.debug("Server check (primary %s): %r", primary, primary_reason)
        if not primary_reason:
            return [primary] + ([backup] if backup else []), None

        if backup is None:
            return [], primary_reason or REASON_SERVER_UNREACHABLE

        backup_reason = await self.wifi.check_iperf_server(replace(settings, iperf_server=backup))
        logger.debug("Server check (backup %s): %r", backup, backup_reason)
        if not backup_reason:
            logger.info("Primary server %s unreachable, using backup %s", primary, backup)
            return [backup, primary], None

        return [], primary_reason or backup_reason or REASON_SERVER_UNREACHABLE

    async def _attempt(
        self,
        settings: SurveySettings,
        attempt: int,
        max_attempts: int,
        servers: list[str],
        header: str,
        disabled_reason: str | None,
    ) -> WifiReading:
        cancel = self.context.cancel
        strengths: list[int] = []

        cancel.check()
        self._display.header = header

        before = await self._read_wifi(settings, strengths)
        cancel.check()
        self._publish()

        await self._throughput_phase(PROTOCOL_TCP, settings, servers, attempt, max_attempts, disabled_reason)
        cancel.check()
        self._publish()

        await self._read_wifi(settings, strengths)
        cancel.check()
        self._publish()

        await self._throughput_phase(PROTOCOL_UDP, settings, servers, attempt, max_attempts, disabled_reason)
        cancel.check()
        self._publish()

        after = await self._read_wifi(settings, strengths)
        cancel.check()

        if not is_consistent(before, after):
            raise InconsistentReadingError(
                "Wifi configuration changed between scans! Cancelling instead of giving wrong results."
            )

        strength = average(strengths)
        return replace(before, signal_strength=strength, rssi=percentage_to_rssi(strength))

    async def _read_wifi(self, settings: SurveySettings, strengths: list[int]) -> WifiReading:
        readings = await self.wifi.get_wifi(settings)
        if not readings:
            raise WifiReadError("No current Wi-Fi association reported")
        reading = readings[0]
        strengths.append(reading.signal_strength)
        self._display.strength = str(average(strengths))
        return reading

    async def _throughput_phase(
        self,
        protocol: str,
        settings: SurveySettings,
        servers: list[str],
        attempt: int,
        max_attempts: int,
        disabled_reason: str | None,
    ) -> None:
        """Download then upload for one protocol. Failures degrade, never raise."""
        if disabled_reason is not None:
            await asyncio.sleep(self.disabled_delay)
            self._set_phase_text(protocol, disabled_reason)
            return

        slot = protocol.lower()
        results = []
        try:
            for direction in (DIRECTION_DOWN, DIRECTION_UP):
                result = await self.fallback.run_with_fallback(
                    servers,
                    settings.test_duration,
                    direction,
                    protocol,
                    self._attempts_by_server,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    announce=self._announce,
                )
                suffix = "download" if direction == DIRECTION_DOWN else "upload"
                setattr(self._throughput, f"{slot}_{suffix}", result)
                results.append(result)
        except Exception as e:
            logger.warning("%s iperf tests failed: %s", protocol, e)
            self._set_phase_text(protocol, "iperf failed")
            if protocol == PROTOCOL_TCP:
                self._throughput_ok = False
            return

        down, up = results
        self._set_phase_text(
            protocol, f"{to_mbps(down.bits_per_second)} / {to_mbps(up.bits_per_second)} Mbps",
        )
        self._throughput_ok = True

    def _set_phase_text(self, protocol: str, text: str) -> None:
        if protocol == PROTOCOL_TCP:
            self._display.tcp = text
        else:
            self._display.udp = text

    def _announce(self, header: str) -> None:
        self._display.header = header
        self._publish()

    def _publish(self) -> None:
        self.context.progress.publish(self._display.message())

    def _publish_stopped(self, status: str) -> None:
        self.context.progress.publish(ProgressMessage(
            kind=KIND_DONE, header="Measurement stopped", status=status,
        ))


def _current_ssid(networks: list[ScannedNetwork]) -> str:
    current = [n for n in networks if n.current_ssid]
    if not current:
        raise WifiReadError("Not associated with any Wi-Fi network")
    return current[0].ssid
