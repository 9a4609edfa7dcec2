"""Constants for the wifisurvey measurement core."""


# Server address that disables throughput testing for a run
NO_SERVER = "localhost"
DEFAULT_IPERF_PORT = 5201

MAX_ATTEMPTS = 3

# Pause used in place of a throughput phase when testing is disabled
DISABLED_PHASE_DELAY_S = 0.5

# Probe directions and protocols
DIRECTION_DOWN = "Down"
DIRECTION_UP = "Up"
PROTOCOL_TCP = "TCP"
PROTOCOL_UDP = "UDP"

# Outcome status strings
STATUS_CANCELLED = "test was cancelled"
STATUS_NO_WIFI_DATA = "No valid wifi data after attempts"
REASON_NOT_PERFORMED = "Not performed"
REASON_SERVER_UNREACHABLE = "Cannot connect to iperf3 server."

# Progress message kinds
KIND_UPDATE = "update"
KIND_DONE = "done"

# Result lifecycle states exposed to pollers
STATE_PENDING = "pending"
STATE_DONE = "done"
STATE_ERROR = "error"
