import httpx
import pytest

from mentorhub.infrastructure.http.retry import (
    RetryDecision,
    RetryPolicy,
    is_transient,
    response_status,
)


def status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.test/resource")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"{status}", request=request, response=response)


def connect_error() -> httpx.ConnectError:
    return httpx.ConnectError(
        "connection refused", request=httpx.Request("GET", "https://api.test/")
    )


class TestClassifier:
    @pytest.mark.parametrize("status", [500, 502, 503, 504, 429])
    def test_transient_statuses(self, status):
        assert is_transient(status_error(status))

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422])
    def test_client_errors_not_retried(self, status):
        assert not is_transient(status_error(status))

    def test_responseless_failures_retried(self):
        assert is_transient(connect_error())
        assert is_transient(
            httpx.ReadTimeout("timed out", request=httpx.Request("GET", "https://a/"))
        )

    def test_unrelated_errors_not_retried(self):
        assert not is_transient(ValueError("boom"))

    def test_response_status(self):
        assert response_status(status_error(503)) == 503
        assert response_status(connect_error()) is None


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.base_delay == 1.0

    def test_exponential_delays(self):
        policy = RetryPolicy(base_delay=1.0)
        assert [policy.delay_for(a) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_stops_after_max_retries(self):
        policy = RetryPolicy(max_retries=3)
        error = status_error(503)
        assert [policy.should_retry(error, a) for a in range(5)] == [
            True,
            True,
            True,
            False,
            False,
        ]

    def test_decide(self):
        policy = RetryPolicy(max_retries=2, base_delay=0.5)
        assert policy.decide(status_error(500), 1) == RetryDecision(retry=True, delay=1.0)
        assert policy.decide(status_error(404), 0) == RetryDecision(retry=False)

    def test_zero_retries_never_retries(self):
        assert not RetryPolicy(max_retries=0).should_retry(status_error(503), 0)

    def test_custom_classifier(self):
        policy = RetryPolicy(should_retry=lambda e: isinstance(e, ValueError))
        assert policy.should_retry(ValueError(), 0)
        assert not policy.should_retry(status_error(503), 0)

    def test_with_overrides_keeps_unset_fields(self):
        policy = RetryPolicy(max_retries=5, base_delay=2.0)
        copy = policy.with_overrides(max_retries=1)
        assert copy.max_retries == 1
        assert copy.base_delay == 2.0
        assert policy.max_retries == 5

    @pytest.mark.parametrize("kwargs", [{"max_retries": -1}, {"base_delay": -0.1}])
    def test_rejects_negative_values(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)
