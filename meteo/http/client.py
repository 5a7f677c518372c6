from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple

import requests
from requests import Response

from ..errors import ErrorCode, ProviderError


logger = logging.getLogger(__name__)

CACHE_HIT_HEADERS = ("X-Cache", "CF-Cache-Status")
READ_CHUNK_SIZE = 64 * 1024


@dataclass
class RequestConfig:
    timeout: float = 10.0
    retries: int = 2
    retry_delay: float = 1.0


@dataclass(frozen=True)
class FetchResult:
    data: Any
    cached: bool = False


def classify_status(status: int) -> Optional[ErrorCode]:
    if status < 400:
        return None
    if status in (401, 403):
        return ErrorCode.INVALID_API_KEY
    if status == 404:
        return ErrorCode.NOT_FOUND
    if status == 429:
        return ErrorCode.RATE_LIMITED
    if status >= 500:
        return ErrorCode.PROVIDER_ERROR
    return ErrorCode.UNKNOWN


class FetchClient:
    """JSON GET with a per-attempt timeout and exponential-backoff retries.

    The timeout bounds the whole attempt, body included. An attempt still
    downloading when it expires is abandoned and reported as ``TIMEOUT``.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        config: Optional[RequestConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or RequestConfig()
        self.session = session or requests.Session()
        self._sleep = sleep
        self._log = logging.getLogger(self.__class__.__name__)

    def fetch(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        provider: Optional[str] = None,
    ) -> FetchResult:
        retries = max(0, self.config.retries)
        attempt = 0
        while True:
            try:
                return self._attempt(url, params=params, headers=headers, provider=provider)
            except ProviderError as exc:
                if not exc.retryable:
                    raise
                if attempt == retries:
                    self._log.error("Giving up on %s after %s attempts: %s", url, retries + 1, exc)
                    raise
                delay = self.config.retry_delay * (2 ** attempt)
                self._log.warning(
                    "Retry %s/%s for %s in %.2fs (%s)", attempt + 1, retries, url, delay, exc.code.value
                )
                self._sleep(delay)
                attempt += 1

    # helpers ------------------------------------------------------------
    def _attempt(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]],
        headers: Optional[Mapping[str, str]],
        provider: Optional[str],
    ) -> FetchResult:
        timeout = self.config.timeout
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fetch")
        future = executor.submit(self._download, url, params, headers, time.monotonic() + timeout)
        try:
            response, body = future.result(timeout=timeout)
        except (FutureTimeout, requests.Timeout) as exc:
            raise ProviderError(
                ErrorCode.TIMEOUT,
                f"Request exceeded the time limit ({timeout}s)",
                provider=provider,
            ) from exc
        except requests.RequestException as exc:
            raise ProviderError(
                ErrorCode.NETWORK_ERROR,
                f"Network error: {exc}",
                provider=provider,
                details={"original_error": str(exc)},
            ) from exc
        finally:
            executor.shutdown(wait=False)
        self._handle_status(response, body, provider)
        return FetchResult(data=self._json(body, provider), cached=self._is_cache_hit(response))

    def _download(
        self,
        url: str,
        params: Optional[Mapping[str, Any]],
        headers: Optional[Mapping[str, str]],
        deadline: float,
    ) -> Tuple[Response, bytes]:
        chunks = []
        with self.session.get(
            url, params=params, headers=headers, timeout=self.config.timeout, stream=True
        ) as response:
            for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise requests.exceptions.ReadTimeout(f"body not received before the deadline: {url}")
                chunks.append(chunk)
        return response, b"".join(chunks)

    def _handle_status(self, response: Response, body: bytes, provider: Optional[str]) -> None:
        code = classify_status(response.status_code)
        if code is None:
            return
        self._log.error("Provider returned %s: %s", response.status_code, body[:200].decode("utf-8", "replace"))
        raise ProviderError(
            code,
            f"HTTP {response.status_code}",
            provider=provider,
            details={"status": response.status_code, "reason": response.reason},
        )

    def _json(self, body: bytes, provider: Optional[str]) -> Any:
        try:
            return json.loads(body)
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise ProviderError(ErrorCode.PROVIDER_ERROR, "invalid json", provider=provider) from exc

    def _is_cache_hit(self, response: Response) -> bool:
        return any(str(response.headers.get(name, "")).upper() == "HIT" for name in CACHE_HIT_HEADERS)


__all__ = ["FetchClient", "FetchResult", "RequestConfig", "classify_status"]
