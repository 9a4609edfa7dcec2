"""wifisurvey measure: measure one survey point from the terminal."""

import asyncio
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..core.config import SurveySettings, load_config
from ..core.context import SurveyContext
from ..core.events import ProgressMessage
from ..core.log import configure_logging
from ..core.models import SurveyOutcome, ThroughputResult
from ..core.units import to_mbps
from ..survey.fallback import ServerFallbackRunner
from ..survey.orchestrator import SurveyOrchestrator
from ..survey.probe import ThroughputProbe
from ..wifi.registry import get_wifi_actions

console = Console()


def measure(
    server: str = typer.Option(
        None,
        "--server", "-s",
        help="iperf3 server (host or host:port); 'localhost' skips throughput tests",
    ),
    backup: str = typer.Option(
        None,
        "--backup", "-b",
        help="Fallback iperf3 server",
    ),
    duration: int = typer.Option(
        None,
        "--duration", "-t",
        help="Seconds per throughput probe",
    ),
    backend: str = typer.Option(
        None,
        "--backend",
        help="Wi-Fi backend (nmcli, simulated)",
    ),
    config_file: Path = typer.Option(
        None,
        "--config", "-c",
        help="TOML file merged over the defaults",
    ),
) -> None:
    """Measure Wi-Fi link quality and throughput at the current location."""
    config = load_config(config_file)
    configure_logging(config.get("logging", {}).get("level"))

    settings = SurveySettings.from_config(config, {
        "iperf_server": server,
        "iperf_server_backup": backup,
        "test_duration": duration,
    })

    backend_name = backend or config.get("wifi", {}).get("backend", "nmcli")
    try:
        wifi = get_wifi_actions(backend_name, config)
    except KeyError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    context = SurveyContext()
    context.progress.register_sink(_print_progress)
    probe = ThroughputProbe(executable=config.get("tools", {}).get("iperf3") or "iperf3")
    orchestrator = SurveyOrchestrator(wifi, context, fallback=ServerFallbackRunner(probe))

    console.print(f"[bold]Measuring survey point[/bold] (backend: {wifi.name})")
    console.print(f"Server:   {settings.iperf_server}")
    if settings.iperf_server_backup:
        console.print(f"Backup:   {settings.iperf_server_backup}")
    console.print()

    try:
        outcome = asyncio.run(_measure(orchestrator, settings, context))
    except Exception as e:
        console.print(f"[red]Measurement failed:[/red] {e}")
        raise typer.Exit(1)

    if not outcome.ok:
        console.print(f"\n[red]{outcome.status}[/red]")
        raise typer.Exit(1)

    console.print()
    console.print(_outcome_table(outcome))


async def _measure(orchestrator: SurveyOrchestrator, settings: SurveySettings,
                   context: SurveyContext) -> SurveyOutcome:
    loop = asyncio.get_running_loop()
    try:
        # Ctrl-C stops at the next checkpoint instead of killing a probe
        loop.add_signal_handler(signal.SIGINT, context.cancel.cancel)
    except (NotImplementedError, RuntimeError):
        pass  # not supported here (Windows, non-main thread): Ctrl-C aborts
    return await orchestrator.run(settings)


def _print_progress(message: ProgressMessage) -> None:
    style = "green" if message.kind == "done" else "cyan"
    console.print(f"[bold {style}]{message.header}[/bold {style}]")
    for line in message.status.splitlines():
        console.print(f"  [dim]{line}[/dim]")


def _outcome_table(outcome: SurveyOutcome) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Measurement", style="cyan")
    table.add_column("Value")

    wifi = outcome.wifi_data
    table.add_row("SSID", wifi.ssid)
    table.add_row("BSSID", wifi.bssid)
    table.add_row("Signal", f"{wifi.signal_strength}% ({wifi.rssi} dBm)")
    width = f", {wifi.channel_width} MHz" if wifi.channel_width else ""
    table.add_row("Channel", f"{wifi.channel} ({wifi.band:g} GHz{width})")
    if wifi.tx_rate:
        table.add_row("Tx rate", f"{wifi.tx_rate:g} Mbit/s")

    throughput = outcome.throughput
    if throughput is None:
        table.add_row("Throughput", "[dim]not measured[/dim]")
        return table

    rows = [
        ("TCP download", throughput.tcp_download),
        ("TCP upload", throughput.tcp_upload),
        ("UDP download", throughput.udp_download),
        ("UDP upload", throughput.udp_upload),
    ]
    for label, result in rows:
        table.add_row(label, _describe(result))
    return table


def _describe(result: ThroughputResult | None) -> str:
    if result is None:
        return "[dim]-[/dim]"
    text = f"{to_mbps(result.bits_per_second)} Mbps"
    if result.jitter_ms is not None:
        text += f", jitter {result.jitter_ms:.2f} ms"
    if result.lost_packets is not None:
        text += f", lost {result.lost_packets}/{result.packets_received or 0}"
    elif result.retransmits:
        text += f", {result.retransmits} retransmits"
    return text
