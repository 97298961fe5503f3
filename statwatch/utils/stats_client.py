"""
Statistics endpoint client: one GET, one comma-separated body, one ServerStats.
"""
from __future__ import annotations

import re
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

import httpx
from loguru import logger

DEFAULT_STATS_URL = "http://srv.msk01.gigacorp.local/_stats"
STATS_FIELD_COUNT = 7

_INT_TOKEN = re.compile(r"[+-]?[0-9]+")
# Values must fit a signed 64-bit integer
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


@dataclass(frozen=True)
class ServerStats:
    load_average: int
    total_memory: int
    used_memory: int
    total_disk: int
    used_disk: int
    total_network: int
    used_network: int


class FetchErrorKind(str, Enum):
    TRANSPORT = "Transport"
    BAD_STATUS = "BadStatus"
    READ_ERROR = "ReadError"
    BAD_SHAPE = "BadShape"
    BAD_NUMBER = "BadNumber"


class FetchError(Exception):
    """Base class for every way a single stats fetch can fail."""

    kind: FetchErrorKind

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class TransportError(FetchError):
    kind = FetchErrorKind.TRANSPORT

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"failed to fetch server stats: {cause}")
        self.cause = cause


class BadStatusError(FetchError):
    kind = FetchErrorKind.BAD_STATUS

    def __init__(self, status_code: int) -> None:
        super().__init__(f"unexpected status code: {status_code}")
        self.status_code = status_code


class ReadError(FetchError):
    kind = FetchErrorKind.READ_ERROR

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"failed to read response body: {cause}")
        self.cause = cause


class BadShapeError(FetchError):
    kind = FetchErrorKind.BAD_SHAPE

    def __init__(self, token_count: int) -> None:
        super().__init__(f"invalid data length: expected {STATS_FIELD_COUNT}, got {token_count}")
        self.token_count = token_count


class BadNumberError(FetchError):
    kind = FetchErrorKind.BAD_NUMBER

    def __init__(self, token: str) -> None:
        super().__init__(f"invalid data format: {token!r} is not a valid integer")
        self.token = token


def parse_stats_body(body: str) -> ServerStats:
    """
    Parse "load,total_mem,used_mem,total_disk,used_disk,total_net,used_net".
    Surrounding whitespace is trimmed; tokens themselves must be bare integers.
    """
    tokens = body.strip().split(",")
    if len(tokens) != STATS_FIELD_COUNT:
        raise BadShapeError(len(tokens))
    values: List[int] = []
    for tok in tokens:
        # int() alone would also accept padding and "1_000"
        if not _INT_TOKEN.fullmatch(tok):
            raise BadNumberError(tok)
        value = int(tok)
        if not _INT_MIN <= value <= _INT_MAX:
            raise BadNumberError(tok)
        values.append(value)
    return ServerStats(*values)


class StatsClient:
    """
    Thin synchronous wrapper around httpx for the stats endpoint.
    Every call performs exactly one request and always releases the response.
    """

    def __init__(
        self,
        url: str = DEFAULT_STATS_URL,
        *,
        timeout: float = 5.0,
        deadline: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        # httpx timeouts apply per network operation; deadline bounds the whole body read
        self._client = httpx.Client(timeout=httpx.Timeout(timeout, connect=timeout), transport=transport)
        self.deadline = timeout if deadline is None else deadline
        # Rolling latency samples, successful and failed requests alike
        self._lat_samples: deque[float] = deque(maxlen=200)

    def fetch(self) -> ServerStats:
        t0 = time.time()
        started = time.monotonic()
        try:
            with self._client.stream("GET", self.url) as resp:
                if resp.status_code != 200:
                    # Drain so the connection can be reused; the status is what gets reported
                    try:
                        self._read_body(resp, started)
                    except (httpx.HTTPError, ReadError) as e:
                        logger.debug("Discarding unreadable {} body: {}", resp.status_code, e)
                    raise BadStatusError(resp.status_code)
                try:
                    raw = self._read_body(resp, started)
                except httpx.HTTPError as e:
                    raise ReadError(e) from e
        except httpx.HTTPError as e:
            raise TransportError(e) from e
        finally:
            elapsed_ms = (time.time() - t0) * 1000.0
            self._lat_samples.append(elapsed_ms)
            logger.debug("GET {} latency_ms={:.1f}", self.url, elapsed_ms)

        # Undecodable bytes become U+FFFD and fail the integer check
        body = raw.decode("utf-8", errors="replace")
        stats = parse_stats_body(body)
        logger.debug("Parsed stats: {}", stats)
        return stats

    def _read_body(self, resp: httpx.Response, started: float) -> bytes:
        chunks: List[bytes] = []
        for chunk in resp.iter_bytes():
            chunks.append(chunk)
            if time.monotonic() - started >= self.deadline:
                raise ReadError(httpx.ReadTimeout(f"response not complete within {self.deadline}s"))
        return b"".join(chunks)

    def latency_summary(self) -> Dict[str, float]:
        """
        Return rolling request latency stats: count, mean, p50, p90 (ms).
        """
        if not self._lat_samples:
            return {}
        vals = sorted(self._lat_samples)
        n = len(vals)

        def perc(p: float) -> float:
            idx = max(0, min(n - 1, int(round(p * (n - 1)))))
            return vals[idx]

        return {
            "count": float(n),
            "mean_ms": float(sum(vals) / n),
            "p50_ms": float(perc(0.5)),
            "p90_ms": float(perc(0.9)),
        }

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "StatsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
