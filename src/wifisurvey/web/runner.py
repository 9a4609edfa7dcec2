"""Background survey runner: browser-independent execution.

A run executes in a daemon thread with its own event loop. HTTP pollers read
the shared SurveyContext (last progress message, result slot); the SSE
endpoint registers itself as the context's progress sink. Disconnecting a
browser has no effect on the run.

Only one run may be active at a time: start_survey() rejects a second start
instead of overlapping measurements on the same radio.
"""

import asyncio
import threading

from ..core.config import SurveySettings
from ..core.context import SurveyContext
from ..core.events import ProgressMessage
from ..core.log import get_logger
from ..core.models import SurveyResult
from ..survey.fallback import ServerFallbackRunner
from ..survey.orchestrator import SurveyOrchestrator
from ..survey.probe import ThroughputProbe
from ..wifi.base import WifiActions
from ..wifi.registry import get_wifi_actions

logger = get_logger(__name__)


class SurveyBusyError(Exception):
    """A survey run is already in progress."""


class SurveyRunner:
    """Executes one survey run in a background daemon thread."""

    def __init__(self, settings: SurveySettings, wifi: WifiActions, config: dict,
                 context: SurveyContext):
        self._settings = settings
        self._context = context
        tools = config.get("tools", {})
        probe = ThroughputProbe(executable=tools.get("iperf3") or "iperf3")
        self._orchestrator = SurveyOrchestrator(
            wifi, context, fallback=ServerFallbackRunner(probe),
        )
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def cancel(self) -> None:
        self._context.cancel.cancel()

    def _run(self) -> None:
        try:
            outcome = asyncio.run(self._orchestrator.run(self._settings))
        except Exception as e:
            # Already logged and published by the orchestrator
            self._context.result = SurveyResult.from_error(e)
            return
        self._context.result = SurveyResult.from_outcome(outcome)
        logger.debug("Survey finished: %s", self._context.result.state)


# ── Module-level API ──────────────────────────────────────────────

_context = SurveyContext()
_runner: SurveyRunner | None = None
_runner_lock = threading.Lock()


def get_context() -> SurveyContext:
    return _context


def get_runner() -> SurveyRunner | None:
    with _runner_lock:
        return _runner


def start_survey(settings: SurveySettings, config: dict,
                 wifi: WifiActions | None = None) -> SurveyRunner:
    """Start a run. Raises SurveyBusyError while another run is active."""
    global _runner
    with _runner_lock:
        if _runner is not None and _runner.is_running:
            raise SurveyBusyError("A survey is already running")
        if wifi is None:
            backend = config.get("wifi", {}).get("backend", "nmcli")
            wifi = get_wifi_actions(backend, config)
        _context.cancel.reset()
        # A stale "done" would end new event streams at once
        _context.progress.clear_latest()
        _context.result = SurveyResult.pending()
        runner = SurveyRunner(settings, wifi, config, _context)
        _runner = runner
    logger.info("Survey started: server=%s backup=%s duration=%ds",
                settings.iperf_server, settings.iperf_server_backup or "-", settings.test_duration)
    runner.start()
    return runner


def stop_survey() -> None:
    """Request cancellation; honored at the run's next checkpoint."""
    _context.cancel.cancel()
    logger.info("Survey stop requested")


def poll_status() -> ProgressMessage | None:
    return _context.progress.latest


def poll_result() -> SurveyResult | None:
    return _context.result
