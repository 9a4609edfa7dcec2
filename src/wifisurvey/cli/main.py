"""wifisurvey CLI: Typer application with subcommands."""

import typer

from .config_cmd import config
from .measure_cmd import measure
from .web_cmd import web

app = typer.Typer(
    name="wifisurvey",
    help="Wi-Fi survey point measurement: link quality and iperf3 throughput.",
    no_args_is_help=True,
)

app.command()(measure)
app.command()(web)
app.command()(config)


if __name__ == "__main__":
    app()
