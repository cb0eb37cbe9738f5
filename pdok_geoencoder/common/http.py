"""HTTP client with timeouts and optional request throttling."""

from __future__ import annotations

import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests

from pdok_geoencoder.common.constants import USER_AGENT
from pdok_geoencoder.common.errors import PipelineError


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 30.0


class HttpRequestError(PipelineError):
    error_code = "HTTP_ERROR"


class TokenBucket:
    def __init__(self, rate_per_sec: float, capacity: float | None = None) -> None:
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity if capacity is not None else max(rate_per_sec, 1.0)
        self.tokens = self.capacity
        self.updated_at = time.monotonic()

    def acquire(self, tokens: float = 1.0) -> None:
        while True:
            now = time.monotonic()
            elapsed = now - self.updated_at
            self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_sec)
            self.updated_at = now
            if self.tokens >= tokens:
                self.tokens -= tokens
                return
            deficit = tokens - self.tokens
            time.sleep(max(deficit / self.rate_per_sec, 0.01))


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        rate_per_sec: float | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.session = requests.Session()
        self.limiter = TokenBucket(rate_per_sec) if rate_per_sec else None

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status(self, response: requests.Response) -> None:
        status = response.status_code
        if status >= 400:
            raise HttpRequestError(f"HTTP status: {status}")

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        req_timeout = timeout or self.timeout
        if self.limiter is not None:
            self.limiter.acquire()

        try:
            response = self.session.request(
                method="GET",
                url=url,
                params=params,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.RequestException as exc:
            raise HttpRequestError(f"Request to {url} failed: {exc}") from exc
        self._raise_for_status(response)

        try:
            return response.json()
        except ValueError as exc:
            raise HttpRequestError(f"Invalid JSON payload from {url}") from exc
