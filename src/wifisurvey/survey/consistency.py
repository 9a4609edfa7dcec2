"""Check that two Wi-Fi readings describe the same association."""

from ..core.log import get_logger
from ..core.models import WifiReading

logger = get_logger(__name__)

IDENTITY_FIELDS = ("bssid", "ssid", "band", "channel")


class InconsistentReadingError(Exception):
    """Network identity changed between the readings of one attempt."""


def is_consistent(before: WifiReading, after: WifiReading) -> bool:
    """True iff bssid, ssid, band and channel match. Signal levels are ignored."""
    consistent = all(getattr(before, f) == getattr(after, f) for f in IDENTITY_FIELDS)
    if not consistent:
        logger.debug("Wi-Fi changed between readings: %r -> %r", before.bssid, after.bssid)
    return consistent
