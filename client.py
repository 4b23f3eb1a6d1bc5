"""
HTTP clients for the load engine.

Both clients are async context managers exposing the same coroutine:

    async with AiohttpClient() as client:
        response = await client.get("https://example.com", timeout=10)

`get` returns an HttpResponse(status, headers, body) or raises
TransportError. A non-2xx response is returned as-is unless the client was
created with raise_for_status=True, in which case it is raised as a
TransportError that carries the response.
"""

import asyncio
import threading
import time
from typing import Any, Dict, NamedTuple, Optional

import aiohttp
import requests

from metrics import elapsed_ms_since
from settings import CHECK_TIMEOUT_SECONDS


class HttpResponse(NamedTuple):
    status: int
    headers: Dict[str, str]
    body: Any
    elapsed_ms: Optional[int] = None  # measured around the call itself, when the client can


class TransportError(Exception):
    """A request that did not complete (timeout, connection error, ...)."""

    def __init__(self, message, response: Optional[HttpResponse] = None, elapsed_ms: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.response = response
        if elapsed_ms is None and response is not None:
            elapsed_ms = response.elapsed_ms
        self.elapsed_ms = elapsed_ms


def timeout_message(timeout):
    return f"timeout of {timeout:g}s exceeded"


class BaseClient:
    """No-op session handling; subclasses implement get()."""

    def __init__(self, raise_for_status=False):
        self.raise_for_status = raise_for_status

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def get(self, url, timeout):
        raise NotImplementedError

    def check_status(self, response):
        if self.raise_for_status and not (200 <= response.status < 300):
            raise TransportError(f"Request failed with status code {response.status}", response)
        return response


# ---------- asyncio client ----------
class AiohttpClient(BaseClient):
    def __init__(self, raise_for_status=False):
        super().__init__(raise_for_status)
        self._session = None

    async def __aenter__(self):
        # limit=0: how many requests start is the rate limiter's decision
        self._session = aiohttp.ClientSession(connector=aiohttp.TCPConnector(limit=0))
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def get(self, url, timeout):
        if self._session is None:
            raise RuntimeError("AiohttpClient.get() called outside 'async with'")
        try:
            async with self._session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
                body = await resp.read()  # fully read response
                response = HttpResponse(resp.status, dict(resp.headers), body)
        except asyncio.TimeoutError:
            raise TransportError(timeout_message(timeout)) from None
        except aiohttp.ClientError as e:
            raise TransportError(str(e) or type(e).__name__) from e
        return self.check_status(response)


# ---------- thread-per-request client ----------
class RequestsClient(BaseClient):
    """Blocking requests.get() calls, one new thread per in-flight request."""

    def __init__(self, raise_for_status=False):
        super().__init__(raise_for_status)
        self._threads = None

    async def __aenter__(self):
        self._threads = []
        return self

    async def __aexit__(self, exc_type, exc, tb):
        threads, self._threads = self._threads, None
        for t in threads or ():
            t.join()

    def _get_blocking(self, url, timeout):
        start = time.perf_counter()
        try:
            resp = requests.get(url, timeout=timeout)
        except requests.Timeout:
            raise TransportError(timeout_message(timeout), elapsed_ms=elapsed_ms_since(start)) from None
        except requests.RequestException as e:
            raise TransportError(str(e) or type(e).__name__, elapsed_ms=elapsed_ms_since(start)) from e
        response = HttpResponse(resp.status_code, dict(resp.headers), resp.content, elapsed_ms_since(start))
        return self.check_status(response)

    async def get(self, url, timeout):
        if self._threads is None:
            raise RuntimeError("RequestsClient.get() called outside 'async with'")
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def deliver(result, error):
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

        def worker():
            try:
                result = self._get_blocking(url, timeout)
            except Exception as e:
                loop.call_soon_threadsafe(deliver, None, e)
            else:
                loop.call_soon_threadsafe(deliver, result, None)

        # spawn thread per request, nothing waits for a free worker
        t = threading.Thread(target=worker, name=f"loadtest-{len(self._threads)}", daemon=True)
        self._threads.append(t)
        t.start()
        return await future


CLIENTS = {
    "aiohttp": AiohttpClient,
    "requests": RequestsClient,
}


def check_connectivity(url, timeout=CHECK_TIMEOUT_SECONDS):
    """Return (reachable, detail) for a single pre-flight GET."""
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        return False, str(e)
    return True, f"HTTP {response.status_code}"
