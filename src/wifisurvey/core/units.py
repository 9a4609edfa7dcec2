"""Signal and throughput unit conversions."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


def average(values: list[int]) -> int:
    """Integer average of signal samples (0 for an empty list)."""
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def percentage_to_rssi(percentage: float) -> int:
    """Map a 0-100 signal quality percentage to dBm."""
    return round_half_up(-100 + percentage / 2)


def rssi_to_percentage(rssi: float) -> int:
    """Map dBm to a 0-100 signal quality percentage."""
    if rssi <= -100:
        return 0
    if rssi >= -50:
        return 100
    return round_half_up(2 * (rssi + 100))


def to_mbps(bits_per_second: float) -> str:
    return f"{bits_per_second / 1_000_000:.2f}"
