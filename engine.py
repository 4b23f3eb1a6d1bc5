"""
Load engine: spreads `total_requests` GETs over a time window.

The rate is computed once, ceil(total_requests / time_window_seconds), and
handed to the RateLimiter. Every request is submitted up front; the limiter
decides when each one starts. If the target is slower than the window
allows, the run simply takes longer than the window.

Usage:
    result = run_load_test("https://example.com", 100, 10)
    print(result.successful_requests, result.average_response_time_ms)
"""

import asyncio
import functools
import logging
import threading
import time

from client import AiohttpClient, TransportError
from metrics import RequestOutcome, RunResult, elapsed_ms_since, estimate_response_size
from rate_limit import RateLimiter
from settings import DEFAULT_TIMEOUT_SECONDS, NO_STATUS
from validation import requests_per_second, validate_inputs

logger = logging.getLogger(__name__)


def compute_rate(total_requests, time_window_seconds):
    """Requests per second needed to fit total_requests into the window."""
    return requests_per_second(total_requests, time_window_seconds)


class _Recorder:
    """Aggregate state shared by every in-flight request, guarded by one lock."""

    def __init__(self, total_requests):
        self.total_requests = total_requests
        self.lock = threading.Lock()
        self.outcomes = []
        self.successful = 0
        self.failed = 0
        self.total_bytes = 0
        self.first_start = None
        self.last_start = None

    def mark_start(self, index, timestamp):
        with self.lock:
            if index == 0:
                self.first_start = timestamp
            if index == self.total_requests - 1:
                self.last_start = timestamp

    def record(self, outcome):
        with self.lock:
            self.outcomes.append(outcome)
            if outcome.success:
                self.successful += 1
            else:
                self.failed += 1
            self.total_bytes += outcome.size_bytes


class LoadEngine:
    def __init__(self, client=None, timeout=DEFAULT_TIMEOUT_SECONDS, limiter=None, on_outcome=None):
        self.client = client
        self.timeout = timeout
        self.limiter = limiter if limiter is not None else RateLimiter()
        self.on_outcome = on_outcome  # called with each RequestOutcome once recorded

    async def run(self, url, total_requests, time_window_seconds):
        validate_inputs(url, total_requests, time_window_seconds)
        rate = compute_rate(total_requests, time_window_seconds)
        self.limiter.configure(rate)

        client = self.client if self.client is not None else AiohttpClient()
        recorder = _Recorder(total_requests)
        logger.info("Starting load test: %s, %d requests over %gs (%d req/s)",
                    url, total_requests, time_window_seconds, rate)

        async with client:
            run_start = time.perf_counter()
            tasks = [
                self.limiter.submit(functools.partial(self._request, client, url, index, recorder))
                for index in range(total_requests)
            ]
            await asyncio.gather(*tasks)
            total_elapsed_ms = elapsed_ms_since(run_start)

        logger.info("Load test finished in %d ms: %d ok, %d failed",
                    total_elapsed_ms, recorder.successful, recorder.failed)
        return RunResult(
            url=url,
            total_requests=total_requests,
            time_window_seconds=time_window_seconds,
            rate_per_second=rate,
            successful_requests=recorder.successful,
            failed_requests=recorder.failed,
            outcomes=list(recorder.outcomes),
            total_elapsed_ms=total_elapsed_ms,
            first_start_timestamp=recorder.first_start,
            last_start_timestamp=recorder.last_start,
            total_response_size_bytes=recorder.total_bytes,
        )

    async def _request(self, client, url, index, recorder):
        started_at = time.time()
        recorder.mark_start(index, started_at)
        start = time.perf_counter()
        try:
            response = await client.get(url, self.timeout)
        except TransportError as e:
            attached = e.response
            outcome = RequestOutcome(
                request_number=index + 1,
                elapsed_ms=e.elapsed_ms if e.elapsed_ms is not None else elapsed_ms_since(start),
                status=attached.status if attached is not None else NO_STATUS,
                success=False,
                size_bytes=estimate_response_size(attached.headers, attached.body) if attached is not None else 0,
                error=e.message or type(e).__name__,
                started_at=started_at,
            )
        except Exception as e:
            logger.warning("Request #%d raised %s", index + 1, type(e).__name__, exc_info=True)
            outcome = RequestOutcome(index + 1, elapsed_ms_since(start), NO_STATUS, False, 0,
                                     str(e) or type(e).__name__, started_at)
        else:
            outcome = RequestOutcome(
                request_number=index + 1,
                elapsed_ms=response.elapsed_ms if response.elapsed_ms is not None else elapsed_ms_since(start),
                status=response.status,
                success=True,
                size_bytes=estimate_response_size(response.headers, response.body),
                error=None,
                started_at=started_at,
            )

        recorder.record(outcome)
        logger.debug("Request #%d: %s ms, status=%s, success=%s",
                     outcome.request_number, outcome.elapsed_ms, outcome.status, outcome.success)
        if self.on_outcome is not None:
            self.on_outcome(outcome)
        return outcome


def run_load_test(url, total_requests, time_window_seconds, client=None,
                  timeout=DEFAULT_TIMEOUT_SECONDS, on_outcome=None):
    """Blocking wrapper around LoadEngine.run()."""
    engine = LoadEngine(client=client, timeout=timeout, on_outcome=on_outcome)
    return asyncio.run(engine.run(url, total_requests, time_window_seconds))
