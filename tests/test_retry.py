"""Tests for the retry policy."""

from __future__ import annotations

import httpx
import pytest

from mediasplit.utils.retry import is_transient, retry_with_backoff


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("HEAD", "https://media.example.com/video.webm")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"HTTP {code}", request=request, response=response)


class TestIsTransient:
    """Tests for is_transient()."""

    @pytest.mark.parametrize("code", [429, 500, 503])
    def test_server_trouble_is_transient(self, code: int) -> None:
        """Throttling and 5xx answers are retried."""
        assert is_transient(_status_error(code))

    @pytest.mark.parametrize("code", [403, 404, 410])
    def test_client_errors_are_final(self, code: int) -> None:
        """4xx answers will not change on retry."""
        assert not is_transient(_status_error(code))

    def test_transport_errors(self) -> None:
        """Connection-level failures are retried; programming errors are not."""
        assert is_transient(httpx.ConnectError("refused"))
        assert is_transient(httpx.ReadTimeout("slow"))
        assert is_transient(ConnectionResetError())
        assert not is_transient(ValueError("bad"))


class TestRetryWithBackoff:
    """Tests for the tenacity-based retry_with_backoff decorator."""

    def test_attempt_count(self) -> None:
        """Retries are counted after the first attempt."""
        calls = {"n": 0}

        @retry_with_backoff(max_retries=2, base_delay=0, max_delay=0, jitter=0)
        def flake() -> None:
            calls["n"] += 1
            raise ConnectionError("boom")

        with pytest.raises(ConnectionError):
            flake()

        assert calls["n"] == 3

    def test_success_after_server_error(self) -> None:
        """A 503 followed by success returns the result."""
        call_count = 0

        @retry_with_backoff(max_retries=3, base_delay=0, max_delay=0, jitter=0)
        def fail_then_succeed() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise _status_error(503)
            return "success"

        assert fail_then_succeed() == "success"
        assert call_count == 3

    def test_final_errors_raise_immediately(self) -> None:
        """A 404 is not retried."""
        call_count = 0

        @retry_with_backoff(max_retries=3, base_delay=0, max_delay=0, jitter=0)
        def missing() -> None:
            nonlocal call_count
            call_count += 1
            raise _status_error(404)

        with pytest.raises(httpx.HTTPStatusError):
            missing()

        assert call_count == 1

    def test_custom_predicate(self) -> None:
        """should_retry replaces the default policy."""
        calls = {"n": 0}

        @retry_with_backoff(
            max_retries=1, base_delay=0, max_delay=0, jitter=0, should_retry=lambda e: True
        )
        def always_bad() -> None:
            calls["n"] += 1
            raise KeyError("x")

        with pytest.raises(KeyError):
            always_bad()

        assert calls["n"] == 2

    def test_negative_retries_rejected(self) -> None:
        """max_retries must not be negative."""
        with pytest.raises(ValueError, match="max_retries"):
            retry_with_backoff(max_retries=-1)
