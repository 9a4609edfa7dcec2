"""Wi-Fi survey point measurement: link metadata plus iperf3 throughput."""

__version__ = "0.1.0"
