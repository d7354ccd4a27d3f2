"""Tests unitarios para la política de reintentos."""

from store_migrator.utils.error_handler import ShopifyAPIException, ValidationException
from store_migrator.utils.retry_handler import RetryPolicy, parse_retry_after


class TestRetryPolicy:
    """Tests para RetryPolicy."""

    def test_retries_only_rate_limits_and_server_errors(self):
        """Debe reintentar 429 y 5xx y no los 4xx ni las validaciones."""
        policy = RetryPolicy(max_attempts=3)

        assert policy.should_retry(ShopifyAPIException("HTTP 429", api_response_code=429, rate_limited=True), 1)
        assert policy.should_retry(ShopifyAPIException("HTTP 502", api_response_code=502), 2)
        assert not policy.should_retry(ShopifyAPIException("HTTP 502", api_response_code=502), 3)
        assert not policy.should_retry(ShopifyAPIException("HTTP 404", api_response_code=404), 1)
        assert not policy.should_retry(ValidationException("bad", field="x"), 1)
        assert not policy.should_retry(ValueError("boom"), 1)

    def test_exponential_delay_with_retry_after(self):
        """Debe crecer exponencialmente, sumar Retry-After y respetar el máximo."""
        policy = RetryPolicy(base_delay=1.0, max_delay=10.0)

        assert policy.calculate_delay(1) == 1.0
        assert policy.calculate_delay(3) == 4.0
        assert policy.calculate_delay(2, retry_after=2.5) == 4.5
        assert policy.calculate_delay(10) == 10.0

    def test_parse_retry_after(self):
        """Debe ignorar valores no numéricos o negativos."""
        assert parse_retry_after("2.0") == 2.0
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") is None
        assert parse_retry_after("-1") is None
        assert parse_retry_after(None) is None
