"""
Generic JSON HTTP client with response caching and retry.

``RequestClient`` consults its :class:`HttpCache` first, dispatches through
the retry policy on a miss, and stores successful responses when the request
asks for caching.
"""

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import anyio
import httpx

from ...application.cache import HttpCache
from ...config import Settings
from ...domain.exceptions import TransportError
from ...logging import debug, error, is_debug_enabled, warning, LogRecord, LogEvent
from .http_client_factory import HttpClientFactory
from .retry import RetryPolicy, ShouldRetry, response_status

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryConfig:
    """Per-request retry overrides; unset fields fall back to the client policy."""

    max_retries: Optional[int] = None
    retry_delay: Optional[float] = None
    should_retry: Optional[ShouldRetry] = None


@dataclass(frozen=True)
class CacheConfig:
    """Per-request caching; presence of this object enables caching.

    Attributes:
        ttl: Lifetime in seconds, the cache default when ``None``
        key: Explicit cache key replacing the derived one
    """

    ttl: Optional[float] = None
    key: Optional[str] = None


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of one logical request."""

    method: str = "GET"
    url: str = ""
    params: Optional[Mapping[str, Any]] = None
    body: Any = None
    headers: Optional[Mapping[str, str]] = None
    retry: Optional[RetryConfig] = None
    cache: Optional[CacheConfig] = None


def _stable_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def canonical_cache_key(descriptor: RequestDescriptor) -> str:
    """Derive the cache key from method, url, params and body.

    An explicit ``cache.key`` wins over the derived one.
    """
    if descriptor.cache is not None and descriptor.cache.key:
        return descriptor.cache.key
    return "-".join(
        [
            (descriptor.method or "GET").upper(),
            descriptor.url,
            _stable_json(descriptor.params),
            _stable_json(descriptor.body),
        ]
    )


class RequestClient:
    """
    Explicitly constructed JSON API client.

    Each instance owns its cache; construct one per process (or per test) and
    inject it where needed.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: Optional[HttpCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: SleepFunc = anyio.sleep,
    ):
        """
        Initialize the client.

        Args:
            client: httpx client performing the I/O; its ``base_url`` applies
            cache: Response cache, a fresh default-TTL cache when omitted
            retry_policy: Default retry policy
            sleep: Coroutine used for backoff waits
        """
        self._client = client
        self._cache = cache if cache is not None else HttpCache()
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        base_url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "RequestClient":
        client = HttpClientFactory.create_client(
            settings,
            base_url=settings.api_base_url if base_url is None else base_url,
            headers=headers,
        )
        HttpClientFactory.log_client_configuration(client, settings)
        return cls(
            client=client,
            cache=HttpCache(ttl_seconds=settings.http_cache_ttl_s),
            retry_policy=RetryPolicy(
                max_retries=settings.http_max_retries,
                base_delay=settings.http_retry_base_delay,
            ),
        )

    @property
    def cache(self) -> HttpCache:
        return self._cache

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def cache_key(self, descriptor: RequestDescriptor) -> str:
        return canonical_cache_key(descriptor)

    async def request(self, descriptor: RequestDescriptor) -> Any:
        """
        Execute ``descriptor`` and return the decoded response body.

        Returns:
            Parsed JSON, response text for non-JSON bodies, ``None`` for empty bodies

        Raises:
            TransportError: If the request fails with a non-retryable error or
                retries are exhausted
        """
        key: Optional[str] = None
        if descriptor.cache is not None:
            key = self.cache_key(descriptor)
            entry = self._cache.lookup(key, descriptor.cache.ttl)
            if entry is not None:
                debug(
                    LogRecord(
                        event=LogEvent.CACHE_EVENT.value,
                        message="Returned cached response",
                        data={"key": key, "url": descriptor.url},
                    )
                )
                return entry.value

        data = await self._send_with_retry(descriptor)

        if key is not None:
            self._cache.put(key, data, descriptor.cache.ttl)  # type: ignore[union-attr]
        return data

    def _policy_for(self, descriptor: RequestDescriptor) -> RetryPolicy:
        overrides = descriptor.retry
        if overrides is None:
            return self._retry_policy
        return self._retry_policy.with_overrides(
            max_retries=overrides.max_retries,
            base_delay=overrides.retry_delay,
            should_retry=overrides.should_retry,
        )

    async def _send_with_retry(self, descriptor: RequestDescriptor) -> Any:
        policy = self._policy_for(descriptor)
        method = (descriptor.method or "GET").upper()
        attempt = 0
        while True:
            try:
                return await self._send_once(method, descriptor)
            except httpx.HTTPError as e:
                decision = policy.decide(e, attempt)
                if not decision.retry:
                    transport_error = self._transport_error(
                        method, descriptor, e, attempt + 1
                    )
                    error(
                        LogRecord(
                            event=LogEvent.HTTP_FAILURE.value,
                            message=transport_error.message,
                            data={
                                "status_code": transport_error.status_code,
                                "attempts": transport_error.attempts,
                            },
                        )
                    )
                    raise transport_error from e
                warning(
                    LogRecord(
                        event=LogEvent.HTTP_RETRY.value,
                        message=(
                            f"{method} {descriptor.url} failed, retrying in "
                            f"{decision.delay:.2f}s (attempt {attempt + 1}/{policy.max_retries})"
                        ),
                        data={
                            "status_code": response_status(e),
                            "error": str(e),
                            "delay_s": decision.delay,
                        },
                    )
                )
                await self._sleep(decision.delay)
                attempt += 1

    async def _send_once(self, method: str, descriptor: RequestDescriptor) -> Any:
        response = await self._client.request(
            method,
            descriptor.url,
            params=dict(descriptor.params) if descriptor.params else None,
            json=descriptor.body,
            headers=dict(descriptor.headers) if descriptor.headers else None,
        )
        if is_debug_enabled():
            debug(
                LogRecord(
                    event=LogEvent.HTTP_REQUEST.value,
                    message=f"{method} {descriptor.url} -> {response.status_code}",
                    data={"params": descriptor.params},
                )
            )
        response.raise_for_status()
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            # Covers malformed JSON and bodies that are not valid UTF-8
            return response.text

    @staticmethod
    def _transport_error(
        method: str, descriptor: RequestDescriptor, exc: httpx.HTTPError, attempts: int
    ) -> TransportError:
        status = response_status(exc)
        if status is not None:
            message = f"{method} {descriptor.url} failed with status {status}"
        else:
            message = f"{method} {descriptor.url} failed: {exc}"
        return TransportError(
            message,
            status_code=status,
            attempts=attempts,
            details={"error_type": type(exc).__name__},
        )

    async def get(self, url: str, **options: Any) -> Any:
        return await self.request(RequestDescriptor(method="GET", url=url, **options))

    async def post(self, url: str, body: Any = None, **options: Any) -> Any:
        return await self.request(
            RequestDescriptor(method="POST", url=url, body=body, **options)
        )

    async def put(self, url: str, body: Any = None, **options: Any) -> Any:
        return await self.request(
            RequestDescriptor(method="PUT", url=url, body=body, **options)
        )

    async def delete(self, url: str, **options: Any) -> Any:
        return await self.request(RequestDescriptor(method="DELETE", url=url, **options))

    def clear_cache(self) -> None:
        self._cache.clear()

    def invalidate(self, key: str) -> bool:
        return self._cache.invalidate(key)

    async def aclose(self) -> None:
        await HttpClientFactory.close_client(self._client)

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
