"""wifisurvey config: show or update the global defaults."""

import typer
from rich.console import Console
from rich.table import Table

from ..core import config as core_config
from ..core.config import load_defaults, save_defaults, set_config_value

console = Console()


def config(
    set_values: list[str] = typer.Option(
        None,
        "--set",
        help="Update a value, e.g. --set survey.iperf_server=10.0.0.5 (repeatable)",
    ),
) -> None:
    """Show the configuration, or update values with --set."""
    cfg = load_defaults()

    if set_values:
        for item in set_values:
            key, sep, value = item.partition("=")
            if not sep:
                console.print(f"[red]Expected section.key=value, got {item!r}[/red]")
                raise typer.Exit(1)
            try:
                set_config_value(cfg, key.strip(), value.strip())
            except ValueError as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)
        save_defaults(cfg)
        console.print(f"[green]Saved[/green] {core_config.DEFAULTS_PATH}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for section, values in cfg.items():
        if not isinstance(values, dict):
            table.add_row(section, str(values))
            continue
        for key, value in values.items():
            table.add_row(f"{section}.{key}", str(value))
    console.print(table)
