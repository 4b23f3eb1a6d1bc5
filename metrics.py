import json
import time
from datetime import datetime
from typing import List, NamedTuple, Optional, Union

from settings import BYTES_PER_MB, MISSING_TIMESTAMP, TIMESTAMP_FORMAT


class RequestOutcome(NamedTuple):
    request_number: int
    elapsed_ms: int
    status: Union[int, str]  # HTTP status or NO_STATUS
    success: bool
    size_bytes: int
    error: Optional[str]
    started_at: float  # epoch seconds


class RunResult(NamedTuple):
    url: str
    total_requests: int
    time_window_seconds: float
    rate_per_second: int
    successful_requests: int
    failed_requests: int
    outcomes: List[RequestOutcome]  # completion order
    total_elapsed_ms: int
    first_start_timestamp: Optional[float]
    last_start_timestamp: Optional[float]
    total_response_size_bytes: int

    # Everything below is derived from the fields above on every access.

    @property
    def error_rate(self):
        return self.failed_requests / self.total_requests if self.total_requests else 0.0

    @property
    def error_rate_percent(self):
        return self.error_rate * 100

    @property
    def average_response_time_ms(self):
        if not self.outcomes:
            return 0.0
        return sum(o.elapsed_ms for o in self.outcomes) / len(self.outcomes)

    @property
    def total_response_size_mb(self):
        return self.total_response_size_bytes / BYTES_PER_MB

    @property
    def throughput_mb_per_s(self):
        if self.total_elapsed_ms <= 0:
            return 0.0
        return self.total_response_size_mb / (self.total_elapsed_ms / 1000)

    def latency_percentile(self, percentile):
        return latency_percentile([o.elapsed_ms for o in self.outcomes], percentile)

    def outcomes_by_request_number(self):
        return sorted(self.outcomes, key=lambda o: o.request_number)


def latency_percentile(latencies_ms, percentile):
    """Nearest-rank percentile; 0 for an empty list."""
    if not latencies_ms:
        return 0
    ordered = sorted(latencies_ms)
    idx = min(int(len(ordered) * (percentile / 100.0)), len(ordered) - 1)
    return ordered[idx]


def estimate_response_size(headers=None, body=None):
    """
    Best-effort byte count of a response.

    Uses Content-Length when present and parseable, otherwise the UTF-8
    length of the body (non-text bodies are JSON-encoded first). Headers and
    transport framing are not counted, so this is an approximation of the
    bytes on the wire, not an exact figure.
    """
    for name, value in (headers or {}).items():
        if name.lower() != "content-length":
            continue
        try:
            size = int(str(value).strip())
        except ValueError:
            break
        if size >= 0:
            return size
        break

    if body is None:
        return 0
    if isinstance(body, (bytes, bytearray)):
        return len(body)
    if isinstance(body, memoryview):
        return body.nbytes
    if isinstance(body, str):
        return len(body.encode("utf-8"))
    return len(json.dumps(body, separators=(",", ":"), ensure_ascii=False, default=str).encode("utf-8"))


def elapsed_ms_since(start):
    """Whole milliseconds since a time.perf_counter() reading."""
    return max(0, int(round((time.perf_counter() - start) * 1000)))


def format_timestamp(timestamp):
    if timestamp is None:
        return MISSING_TIMESTAMP
    return datetime.fromtimestamp(timestamp).strftime(TIMESTAMP_FORMAT)
