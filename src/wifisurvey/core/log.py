"""Logging utilities: Rich console output for every wifisurvey logger.

The level comes from WIFISURVEY_LOG_LEVEL when set, otherwise from the
[logging] level setting passed to configure_logging(), otherwise INFO.
"""

import logging
import os

from rich.logging import RichHandler

ENV_LOG_LEVEL = "WIFISURVEY_LOG_LEVEL"
ROOT_LOGGER = "wifisurvey"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_level(configured: str | None = None) -> int:
    """Pick the effective level: environment, then config, then INFO."""
    name = os.environ.get(ENV_LOG_LEVEL) or configured or "INFO"
    return LOG_LEVELS.get(name.upper(), logging.INFO)


def configure_logging(level: str | None = None) -> None:
    """Attach a RichHandler to the package root logger (once)."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(resolve_level(level))
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        root.addHandler(handler)
    root.debug("Logging configured: level=%s", logging.getLevelName(root.level))


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package root so it shares its handler."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
