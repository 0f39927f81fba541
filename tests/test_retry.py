"""Tests for retry module."""

from unittest.mock import MagicMock

import httpx
import pytest

from multipart_uploader.retry import (
    RetryExhausted,
    is_retryable_error,
    retry_with_backoff,
)


def status_error(status_code: int) -> httpx.HTTPStatusError:
    response = MagicMock()
    response.status_code = status_code
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=MagicMock(), response=response)


class TestIsRetryableError:
    """Tests for error classification."""

    def test_connection_timeout_is_retryable(self):
        assert is_retryable_error(httpx.ConnectTimeout("Connection timed out")) is True

    def test_connect_error_is_retryable(self):
        assert is_retryable_error(httpx.ConnectError("Connection refused")) is True

    def test_read_timeout_is_retryable(self):
        assert is_retryable_error(httpx.ReadTimeout("Read timed out")) is True

    def test_write_timeout_is_retryable(self):
        """Large part bodies can time out while being sent."""
        assert is_retryable_error(httpx.WriteTimeout("Write timed out")) is True

    @pytest.mark.parametrize("status_code", [429, 500, 502, 503, 504])
    def test_transient_statuses_are_retryable(self, status_code):
        assert is_retryable_error(status_error(status_code)) is True

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404])
    def test_client_errors_are_not_retryable(self, status_code):
        """403 usually means an expired or mismatched signature."""
        assert is_retryable_error(status_error(status_code)) is False

    def test_generic_exception_is_not_retryable(self):
        assert is_retryable_error(ValueError("Some error")) is False


class TestRetryWithBackoff:
    """Tests for retry_with_backoff function."""

    def test_success_on_first_attempt(self):
        mock_func = MagicMock(return_value="success")

        result = retry_with_backoff(mock_func, max_attempts=3, delays=[1, 2, 4])

        assert result == "success"
        assert mock_func.call_count == 1

    def test_single_attempt_reraises_original_error(self):
        """With one attempt, even transient errors surface unchanged."""
        error = httpx.ConnectError("refused")
        mock_func = MagicMock(side_effect=error)
        sleep = MagicMock()

        with pytest.raises(httpx.ConnectError):
            retry_with_backoff(mock_func, sleep=sleep)

        assert mock_func.call_count == 1
        sleep.assert_not_called()

    def test_success_after_retries(self):
        mock_func = MagicMock(
            side_effect=[
                httpx.ConnectError("fail1"),
                status_error(503),
                "success",
            ]
        )
        sleep = MagicMock()

        result = retry_with_backoff(mock_func, max_attempts=3, delays=[0.5, 1.5], sleep=sleep)

        assert result == "success"
        assert mock_func.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.5]

    def test_last_delay_is_reused(self):
        mock_func = MagicMock(side_effect=[httpx.ConnectError("x")] * 3 + ["ok"])
        sleep = MagicMock()

        retry_with_backoff(mock_func, max_attempts=4, delays=[1.0], sleep=sleep)

        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 1.0, 1.0]

    def test_failure_after_max_retries_exceeded(self):
        mock_func = MagicMock(side_effect=httpx.ConnectError("Always fails"))

        with pytest.raises(RetryExhausted) as exc_info:
            retry_with_backoff(mock_func, max_attempts=3, sleep=MagicMock())

        assert mock_func.call_count == 3
        assert exc_info.value.attempts == 3
        assert "3 attempts" in str(exc_info.value)

    def test_non_retryable_error_raises_immediately(self):
        mock_func = MagicMock(side_effect=status_error(403))

        with pytest.raises(httpx.HTTPStatusError):
            retry_with_backoff(mock_func, max_attempts=3, sleep=MagicMock())

        assert mock_func.call_count == 1

    def test_passes_args_and_kwargs_to_function(self):
        mock_func = MagicMock(return_value="success")

        retry_with_backoff(
            mock_func,
            args=("url", b"data"),
            kwargs={"timeout": 5},
        )

        mock_func.assert_called_with("url", b"data", timeout=5)

    def test_last_error_preserved_in_retry_exhausted(self):
        last_error = httpx.ConnectTimeout("Final timeout")
        mock_func = MagicMock(
            side_effect=[
                httpx.ConnectError("First"),
                httpx.ConnectError("Second"),
                last_error,
            ]
        )

        with pytest.raises(RetryExhausted) as exc_info:
            retry_with_backoff(mock_func, max_attempts=3, sleep=MagicMock())

        assert exc_info.value.last_error is last_error

    def test_invalid_attempt_count(self):
        with pytest.raises(ValueError):
            retry_with_backoff(MagicMock(), max_attempts=0)

    def test_logs_each_retry(self, caplog):
        mock_func = MagicMock(side_effect=[httpx.ConnectError("flaky"), "ok"])

        retry_with_backoff(mock_func, max_attempts=2, sleep=MagicMock())

        assert "Attempt 1/2 failed" in caplog.text
