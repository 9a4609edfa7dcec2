"""wifisurvey web: start the measurement service."""

import typer
from rich.console import Console

from ..core.config import load_defaults
from ..core.log import configure_logging

console = Console()


def web(
    port: int = typer.Option(
        None,
        "--port",
        help="HTTP port (default from [web] port)",
    ),
    host: str = typer.Option(
        None,
        "--host",
        help="Host to bind to (default from [web] host)",
    ),
) -> None:
    """Start the survey service (start/stop/status/results + SSE events)."""
    import uvicorn

    config = load_defaults()
    web_cfg = config.get("web", {})
    port = port or int(web_cfg.get("port", 8000))
    host = host or web_cfg.get("host", "0.0.0.0")
    configure_logging(config.get("logging", {}).get("level"))

    console.print("[bold]Starting wifisurvey service[/bold]")
    console.print(f"URL: http://localhost:{port}")
    console.print()

    uvicorn.run(
        "wifisurvey.web.app:app",
        host=host,
        port=port,
        reload=False,
    )
