"""Tests for the caching, retrying RequestClient."""

import json
from typing import List

import httpx
import pytest
import respx
from httpx import Response

from mentorhub.application.cache import HttpCache
from mentorhub.domain.exceptions import TransportError
from mentorhub.infrastructure.http.request_client import (
    CacheConfig,
    RequestClient,
    RequestDescriptor,
    RetryConfig,
    canonical_cache_key,
)
from mentorhub.infrastructure.http.retry import RetryPolicy

BASE_URL = "https://api.test"


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
async def client(sleep):
    http = httpx.AsyncClient(base_url=BASE_URL)
    request_client = RequestClient(http, retry_policy=RetryPolicy(), sleep=sleep)
    yield request_client
    await request_client.aclose()


class TestCanonicalCacheKey:
    def test_includes_method_url_params_body(self):
        key = canonical_cache_key(
            RequestDescriptor(method="post", url="/users", params={"b": 2, "a": 1}, body={"x": 1})
        )
        assert key == 'POST-/users-{"a":1,"b":2}-{"x":1}'

    def test_param_order_does_not_matter(self):
        a = RequestDescriptor(url="/users", params={"a": 1, "b": 2})
        b = RequestDescriptor(url="/users", params={"b": 2, "a": 1})
        assert canonical_cache_key(a) == canonical_cache_key(b)

    def test_explicit_key_wins(self):
        descriptor = RequestDescriptor(url="/users", cache=CacheConfig(key="users"))
        assert canonical_cache_key(descriptor) == "users"


class TestRequest:
    @pytest.mark.anyio
    @respx.mock
    async def test_get_returns_decoded_json(self, client):
        respx.get(f"{BASE_URL}/users").mock(return_value=Response(200, json=[{"id": 1}]))
        assert await client.get("/users") == [{"id": 1}]

    @pytest.mark.anyio
    @respx.mock
    async def test_empty_body_decodes_to_none(self, client):
        respx.delete(f"{BASE_URL}/users/1").mock(return_value=Response(204))
        assert await client.delete("/users/1") is None

    @pytest.mark.anyio
    @respx.mock
    async def test_text_body_returned_as_text(self, client):
        respx.get(f"{BASE_URL}/ping").mock(return_value=Response(200, text="pong"))
        assert await client.get("/ping") == "pong"

    @pytest.mark.anyio
    @respx.mock
    async def test_undecodable_body_returned_as_text(self, client):
        respx.get(f"{BASE_URL}/blob").mock(return_value=Response(200, content=b"\x80\x81abc"))
        body = await client.get("/blob")
        assert isinstance(body, str)
        assert body.endswith("abc")

    @pytest.mark.anyio
    @respx.mock
    async def test_post_sends_json_body_and_params(self, client):
        route = respx.post(f"{BASE_URL}/items").mock(return_value=Response(201, json={"ok": True}))
        await client.post("/items", body={"name": "x"}, params={"upsert": "true"})
        sent = route.calls.last.request
        assert sent.url.params["upsert"] == "true"
        assert json.loads(sent.content) == {"name": "x"}


class TestRetry:
    @pytest.mark.anyio
    @respx.mock
    async def test_server_error_retried_until_cap(self, client, sleep):
        route = respx.get(f"{BASE_URL}/flaky").mock(return_value=Response(503))

        with pytest.raises(TransportError) as exc_info:
            await client.get("/flaky")

        assert route.call_count == 4
        assert sleep.delays == [1.0, 2.0, 4.0]
        assert exc_info.value.status_code == 503
        assert exc_info.value.attempts == 4

    @pytest.mark.anyio
    @respx.mock
    async def test_client_error_not_retried(self, client, sleep):
        route = respx.get(f"{BASE_URL}/missing").mock(return_value=Response(404))

        with pytest.raises(TransportError) as exc_info:
            await client.get("/missing")

        assert route.call_count == 1
        assert sleep.delays == []
        assert exc_info.value.status_code == 404

    @pytest.mark.anyio
    @respx.mock
    async def test_rate_limit_retried_then_succeeds(self, client, sleep):
        route = respx.get(f"{BASE_URL}/limited").mock(
            side_effect=[Response(429), Response(200, json={"ok": True})]
        )
        assert await client.get("/limited") == {"ok": True}
        assert route.call_count == 2
        assert sleep.delays == [1.0]

    @pytest.mark.anyio
    @respx.mock
    async def test_network_error_retried(self, client, sleep):
        route = respx.get(f"{BASE_URL}/net").mock(
            side_effect=[httpx.ConnectError, Response(200, json=[])]
        )
        assert await client.get("/net") == []
        assert route.call_count == 2

    @pytest.mark.anyio
    @respx.mock
    async def test_network_error_exhausted_has_no_status(self, client):
        respx.get(f"{BASE_URL}/down").mock(side_effect=httpx.ConnectError)
        with pytest.raises(TransportError) as exc_info:
            await client.get("/down")
        assert exc_info.value.status_code is None
        assert exc_info.value.attempts == 4

    @pytest.mark.anyio
    @respx.mock
    async def test_per_request_overrides(self, client, sleep):
        route = respx.get(f"{BASE_URL}/flaky").mock(return_value=Response(500))
        with pytest.raises(TransportError):
            await client.get("/flaky", retry=RetryConfig(max_retries=1, retry_delay=0.25))
        assert route.call_count == 2
        assert sleep.delays == [0.25]

    @pytest.mark.anyio
    @respx.mock
    async def test_custom_should_retry(self, client):
        route = respx.get(f"{BASE_URL}/conflict").mock(return_value=Response(409))
        with pytest.raises(TransportError):
            await client.get(
                "/conflict",
                retry=RetryConfig(max_retries=2, should_retry=lambda e: True),
            )
        assert route.call_count == 3


class TestCaching:
    @pytest.mark.anyio
    @respx.mock
    async def test_cache_hit_performs_no_io(self, client):
        route = respx.get(f"{BASE_URL}/users").mock(return_value=Response(200, json=[1]))

        first = await client.get("/users", cache=CacheConfig())
        second = await client.get("/users", cache=CacheConfig())

        assert first == second == [1]
        assert route.call_count == 1

    @pytest.mark.anyio
    @respx.mock
    async def test_uncached_requests_always_hit_network(self, client):
        route = respx.get(f"{BASE_URL}/users").mock(return_value=Response(200, json=[1]))
        await client.get("/users")
        await client.get("/users")
        assert route.call_count == 2
        assert len(client.cache) == 0

    @pytest.mark.anyio
    @respx.mock
    async def test_different_params_cached_separately(self, client):
        route = respx.get(f"{BASE_URL}/users").mock(return_value=Response(200, json=[]))
        await client.get("/users", params={"page": 1}, cache=CacheConfig())
        await client.get("/users", params={"page": 2}, cache=CacheConfig())
        assert route.call_count == 2

    @pytest.mark.anyio
    @respx.mock
    async def test_invalidate_explicit_key(self, client):
        route = respx.get(f"{BASE_URL}/skills").mock(return_value=Response(200, json=[]))
        await client.get("/skills", cache=CacheConfig(key="skills:u1"))
        assert client.invalidate("skills:u1") is True
        await client.get("/skills", cache=CacheConfig(key="skills:u1"))
        assert route.call_count == 2

    @pytest.mark.anyio
    @respx.mock
    async def test_clear_cache(self, client):
        route = respx.get(f"{BASE_URL}/users").mock(return_value=Response(200, json=[]))
        await client.get("/users", cache=CacheConfig())
        client.clear_cache()
        await client.get("/users", cache=CacheConfig())
        assert route.call_count == 2

    @pytest.mark.anyio
    @respx.mock
    async def test_expired_entry_refetched(self, sleep):
        now = [0.0]
        cache = HttpCache(ttl_seconds=10, clock=lambda: now[0])
        route = respx.get(f"{BASE_URL}/users").mock(return_value=Response(200, json=[]))
        async with RequestClient(
            httpx.AsyncClient(base_url=BASE_URL), cache=cache, sleep=sleep
        ) as client:
            await client.get("/users", cache=CacheConfig())
            now[0] = 10.0
            await client.get("/users", cache=CacheConfig())
        assert route.call_count == 2

    @pytest.mark.anyio
    @respx.mock
    async def test_failures_are_not_cached(self, client):
        route = respx.get(f"{BASE_URL}/users").mock(
            side_effect=[Response(404), Response(200, json=[1])]
        )
        with pytest.raises(TransportError):
            await client.get("/users", cache=CacheConfig())
        assert await client.get("/users", cache=CacheConfig()) == [1]
        assert route.call_count == 2


class TestFromSettings:
    def test_uses_settings(self, test_settings):
        settings = test_settings.model_copy(
            update={"http_cache_ttl_s": 60, "http_max_retries": 1, "http_retry_base_delay": 0.5}
        )
        client = RequestClient.from_settings(settings, base_url=BASE_URL)
        assert client.cache.ttl_seconds == 60
        assert client.retry_policy.max_retries == 1
        assert client.retry_policy.base_delay == 0.5
