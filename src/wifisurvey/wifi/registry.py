"""Wi-Fi backends selectable through `[wifi] backend` or `--backend`."""

from .base import WifiActions
from .nmcli import NmcliWifiActions
from .simulated import SimulatedWifiActions

BACKENDS: dict[str, type[WifiActions]] = {
    NmcliWifiActions.name: NmcliWifiActions,
    SimulatedWifiActions.name: SimulatedWifiActions,
}


def get_wifi_actions(name: str, config: dict) -> WifiActions:
    """Instantiate the backend called `name`, handing it the full config.

    Raises KeyError naming the configured value and the supported backends.
    """
    try:
        backend_cls = BACKENDS[name.strip().lower()]
    except KeyError:
        raise KeyError(
            f"Unknown Wi-Fi backend {name!r}: set wifi.backend to one of {', '.join(BACKENDS)}"
        ) from None
    return backend_cls(config)


def list_backends() -> list[str]:
    return list(BACKENDS)
