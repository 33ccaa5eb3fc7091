"""Tests for retry utilities with exponential backoff."""

import unittest
from unittest.mock import AsyncMock, patch

from stashbox.utils.retry_utils import calculate_delay, is_transient_error, retry_with_backoff


class MockHTTPResponse:
    """Mock HTTP response object with status_code attribute."""

    def __init__(self, status_code, message: str = ""):
        self.status_code = status_code
        self.message = message


class MockHTTPExceptionWithResponse(Exception):
    """Mock HTTP exception with response attribute."""

    def __init__(self, response: MockHTTPResponse, message: str = ""):
        super().__init__(message)
        self.response = response


class MockHTTPExceptionWithStatus(Exception):
    """Mock HTTP exception with direct status_code attribute."""

    def __init__(self, status_code, message: str = ""):
        super().__init__(message)
        self.status_code = status_code


class TestIsTransientError(unittest.TestCase):
    """Test suite for transient error detection."""

    def test_timeout_error_is_transient(self):
        """Test that timeout errors are detected as transient."""
        assert is_transient_error(TimeoutError("Connection timeout"))

    def test_bare_timeout_error_is_transient_by_type(self):
        assert is_transient_error(TimeoutError())

    def test_connection_error_in_message(self):
        assert is_transient_error(Exception("Connection reset by peer"))

    def test_rate_limit_error_is_transient(self):
        assert is_transient_error(Exception("Rate limit exceeded, try again later"))

    def test_service_unavailable_is_transient(self):
        assert is_transient_error(Exception("503 Service Unavailable"))

    def test_gateway_errors_are_transient(self):
        """Test that gateway errors are transient."""
        assert is_transient_error(Exception("502 Bad Gateway"))
        assert is_transient_error(Exception("504 Gateway Timeout"))

    def test_validation_error_is_not_transient(self):
        assert not is_transient_error(ValueError("Invalid parameter"))

    def test_constraint_violation_is_not_transient(self):
        error = Exception('duplicate key value violates unique constraint "tags_name_key"')
        assert not is_transient_error(error)

    def test_auth_error_is_not_transient(self):
        assert not is_transient_error(Exception("401 Unauthorized"))

    def test_http_error_with_429_status_is_transient(self):
        """Test HTTP error with 429 status code via response.status_code."""
        error = MockHTTPExceptionWithResponse(MockHTTPResponse(429), "Rate limited")
        assert is_transient_error(error)

    def test_http_error_with_500_status_is_transient(self):
        error = MockHTTPExceptionWithResponse(MockHTTPResponse(500), "boom")
        assert is_transient_error(error)

    def test_http_error_with_404_is_not_transient(self):
        error = MockHTTPExceptionWithResponse(MockHTTPResponse(404), "Resource not found")
        assert not is_transient_error(error)

    def test_direct_status_code_408_is_transient(self):
        assert is_transient_error(MockHTTPExceptionWithStatus(408, "slow"))

    def test_direct_status_code_503_is_transient(self):
        assert is_transient_error(MockHTTPExceptionWithStatus(503, "down"))

    def test_direct_status_code_400_is_not_transient(self):
        assert not is_transient_error(MockHTTPExceptionWithStatus(400, "bad input"))

    def test_client_status_wins_over_message_keywords(self):
        """A 4xx whose message mentions a transient keyword is still permanent."""
        error = MockHTTPExceptionWithStatus(400, "Could not find the 'connection_note' column")
        assert not is_transient_error(error)

        error = MockHTTPExceptionWithResponse(MockHTTPResponse(404), "Service unavailable")
        assert not is_transient_error(error)

    def test_direct_status_code_invalid_type(self):
        """Test error with invalid direct status_code type doesn't crash."""
        error = MockHTTPExceptionWithStatus("invalid", "Some error message")
        assert is_transient_error(error) is False


class TestCalculateDelay(unittest.TestCase):
    def test_delay_doubles_per_attempt(self):
        assert calculate_delay(0, 0.5, 10.0, 0.0) == 0.5
        assert calculate_delay(1, 0.5, 10.0, 0.0) == 1.0
        assert calculate_delay(2, 0.5, 10.0, 0.0) == 2.0

    def test_delay_is_capped(self):
        assert calculate_delay(10, 0.5, 3.0, 0.0) == 3.0

    def test_jitter_stays_within_factor(self):
        for _ in range(20):
            delay = calculate_delay(0, 1.0, 10.0, 0.1)
            assert 1.0 <= delay <= 1.1


@patch("stashbox.utils.retry_utils.asyncio.sleep", new_callable=AsyncMock)
class TestRetryWithBackoff(unittest.IsolatedAsyncioTestCase):
    """Test suite for retry_with_backoff function."""

    async def test_success_on_first_try(self, sleep):
        mock_func = AsyncMock(return_value="success")

        result = await retry_with_backoff(mock_func, max_retries=3)

        assert result == "success"
        assert mock_func.call_count == 1
        sleep.assert_not_awaited()

    async def test_success_after_retries(self, sleep):
        """Test that function succeeds after transient failures."""
        call_count = 0

        async def flaky_func():
            nonlocal call_count
            call_count += 1
            if call_count <= 2:
                raise Exception("Network error")
            return "finally worked"

        result = await retry_with_backoff(flaky_func, max_retries=3)

        assert result == "finally worked"
        assert call_count == 3
        assert sleep.await_count == 2

    async def test_last_error_raised_after_all_retries(self, sleep):
        mock_func = AsyncMock(side_effect=TimeoutError("Timeout"))

        with self.assertRaises(TimeoutError):
            await retry_with_backoff(mock_func, max_retries=2)

        assert mock_func.call_count == 3  # Initial + 2 retries

    async def test_non_transient_error_no_retry(self, sleep):
        mock_func = AsyncMock(side_effect=ValueError("Invalid parameter"))

        with self.assertRaises(ValueError):
            await retry_with_backoff(mock_func, max_retries=3)

        assert mock_func.call_count == 1
        sleep.assert_not_awaited()

    async def test_custom_predicate(self, sleep):
        mock_func = AsyncMock(side_effect=[KeyError("x"), "ok"])

        result = await retry_with_backoff(
            mock_func, should_retry=lambda exc: isinstance(exc, KeyError), max_retries=1
        )

        assert result == "ok"

    async def test_zero_retries(self, sleep):
        mock_func = AsyncMock(side_effect=Exception("Timeout"))

        with self.assertRaises(Exception, msg="Timeout"):
            await retry_with_backoff(mock_func, max_retries=0)

        assert mock_func.call_count == 1
