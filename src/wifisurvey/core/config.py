"""TOML config loader: defaults + optional override file, and run settings."""

import shutil
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path

import tomli_w

from .constants import MAX_ATTEMPTS, NO_SERVER

DEFAULTS_PATH = Path(__file__).parent.parent.parent.parent / "config" / "defaults.toml"


def load_defaults() -> dict:
    """Load the global defaults.toml."""
    with open(DEFAULTS_PATH, "rb") as f:
        return tomllib.load(f)


def save_defaults(config: dict) -> None:
    """Write the global defaults.toml."""
    with open(DEFAULTS_PATH, "wb") as f:
        tomli_w.dump(config, f)


def load_config(overrides_path: Path | None = None) -> dict:
    """Load defaults, merged with an optional override TOML."""
    config = load_defaults()
    if overrides_path is not None and overrides_path.exists():
        with open(overrides_path, "rb") as f:
            overrides = tomllib.load(f)
        _deep_merge(config, overrides)
    return config


def set_config_value(config: dict, dotted_key: str, raw_value: str) -> None:
    """Set `section.key` from a string, coerced to the type already stored there."""
    section, sep, key = dotted_key.partition(".")
    if not sep or not key:
        raise ValueError(f"Expected section.key, got {dotted_key!r}")
    table = config.setdefault(section, {})
    table[key] = _coerce(raw_value, table.get(key))


def get_tool_path(config: dict, tool_name: str) -> str:
    """Resolve a tool executable from [tools], falling back to PATH lookup by name."""
    configured = config.get("tools", {}).get(tool_name) or tool_name
    found = shutil.which(configured)
    if not found:
        raise FileNotFoundError(f"Tool not found: {configured}")
    return found


@dataclass
class SurveySettings:
    """Settings for one survey run."""
    iperf_server: str = NO_SERVER
    iperf_server_backup: str = ""
    test_duration: int = 10  # seconds per probe
    max_attempts: int = MAX_ATTEMPTS
    interface: str = ""

    @classmethod
    def from_config(cls, config: dict, overrides: dict | None = None) -> "SurveySettings":
        """Build settings from the [survey]/[wifi] config sections plus overrides."""
        values = dict(config.get("survey", {}))
        interface = config.get("wifi", {}).get("interface", "")
        if interface:
            values.setdefault("interface", interface)
        values.update({k: v for k, v in (overrides or {}).items() if v is not None})
        known = {f.name for f in fields(cls)}
        settings = cls(**{k: v for k, v in values.items() if k in known})
        settings.iperf_server = str(settings.iperf_server).strip()
        settings.iperf_server_backup = str(settings.iperf_server_backup or "").strip()
        settings.test_duration = int(settings.test_duration)
        settings.max_attempts = int(settings.max_attempts)
        return settings

    @property
    def throughput_disabled(self) -> bool:
        return is_no_server(self.iperf_server)

    @property
    def usable_backup(self) -> str | None:
        """The backup address, if configured, not the sentinel and not the primary."""
        backup = self.iperf_server_backup
        if backup and not is_no_server(backup) and backup != self.iperf_server:
            return backup
        return None


def is_no_server(address: str) -> bool:
    return address.strip().lower() == NO_SERVER


def _coerce(raw: str, current):
    if isinstance(current, bool):
        return raw.lower() in ("true", "1", "yes", "on")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place, recursing into dicts."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
