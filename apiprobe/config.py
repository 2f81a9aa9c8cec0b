"""
Centralised configuration: all tunables in one place.
Override via environment variables where noted.
"""

import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ── Network ────────────────────────────────────────────────────────
REQUEST_TIMEOUT_MS = int(os.getenv("APIPROBE_REQUEST_TIMEOUT_MS", "2000"))
DEBUG_PATH_TIMEOUT_MS = int(os.getenv("APIPROBE_DEBUG_PATH_TIMEOUT_MS", "2000"))
VERIFY_TLS = _env_bool("APIPROBE_VERIFY_TLS", "0")
FOLLOW_REDIRECTS = _env_bool("APIPROBE_FOLLOW_REDIRECTS", "1")
MAX_CONNECTIONS = int(os.getenv("APIPROBE_MAX_CONNECTIONS", "100"))
MAX_KEEPALIVE_CONNECTIONS = int(os.getenv("APIPROBE_MAX_KEEPALIVE", "20"))
RESPONSE_BODY_CAP = 1_000_000  # max chars kept per response body

# ── Rate limiting probe ────────────────────────────────────────────
RATE_LIMIT_BURST_SIZE = int(os.getenv("APIPROBE_RATE_LIMIT_BURST", "50"))
RATE_LIMIT_WINDOW_MS = int(os.getenv("APIPROBE_RATE_LIMIT_WINDOW_MS", "5000"))
RATE_LIMIT_MAX_CONCURRENT = int(os.getenv("APIPROBE_RATE_LIMIT_CONCURRENCY", "50"))
# Share of the burst that must succeed for each verdict (strictly greater than)
RATE_LIMIT_NO_LIMIT_THRESHOLD = float(os.getenv("APIPROBE_NO_LIMIT_THRESHOLD", "0.8"))
RATE_LIMIT_BYPASS_THRESHOLD = float(os.getenv("APIPROBE_BYPASS_THRESHOLD", "0.5"))

# ── Brute force probe ──────────────────────────────────────────────
BRUTE_FORCE_BURST_SIZE = int(os.getenv("APIPROBE_BRUTE_FORCE_BURST", "20"))

# ── Orchestrator ───────────────────────────────────────────────────
CONCURRENT_PROBES = _env_bool("APIPROBE_CONCURRENT_PROBES", "0")
CONTROL_POLL_INTERVAL = 0.5    # seconds between checks while paused

# ── Logging ────────────────────────────────────────────────────────
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"

# ── Default request headers ──────────────────────────────────────
# Applied to every outgoing probe request; probe headers take priority.
DEFAULT_HEADERS = {
    "User-Agent": "api-security-tester/1.0.0",
    "Accept": "application/json, text/plain, */*",
}
