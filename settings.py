import logging

# ---------- Requests ----------
DEFAULT_TIMEOUT_SECONDS = 10.0  # per-request timeout, override with --timeout
CHECK_TIMEOUT_SECONDS = 3.0     # connectivity pre-check (--check)
DEFAULT_CLIENT = "aiohttp"      # or "requests"

# ---------- Rate limiter ----------
RATE_WINDOW = 1.0  # seconds window for admission counting

# ---------- Results ----------
NO_STATUS = "N/A"  # status of a request that never got a response
MISSING_TIMESTAMP = "-"  # start time of a request that never started
BYTES_PER_MB = 1024 * 1024
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
PERCENTILES = (50, 90, 95, 99)

# ---------- Logging ----------
LOG_LEVEL = logging.WARNING  # --verbose switches to DEBUG
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
