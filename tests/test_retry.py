"""
Tests for retry logic.
"""

import pytest

from jobly.retry import RetryError, exponential_backoff, is_transient_error


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        """Function that succeeds immediately should not retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.1)
        def succeeds():
            call_count[0] += 1
            return "success"

        assert succeeds() == "success"
        assert call_count[0] == 1

    def test_retry_then_succeed(self):
        """Function that fails then succeeds should retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01)
        def fails_twice():
            call_count[0] += 1
            if call_count[0] < 3:
                raise ConnectionError("Temporary failure")
            return "success"

        assert fails_twice() == "success"
        assert call_count[0] == 3

    def test_all_retries_exhausted(self):
        """Should raise RetryError after all attempts fail."""
        call_count = [0]

        @exponential_backoff(max_retries=2, base_delay=0.01)
        def always_fails():
            call_count[0] += 1
            raise ValueError("Always fails")

        with pytest.raises(RetryError):
            always_fails()

        assert call_count[0] == 3  # Initial + 2 retries

    def test_only_catches_specified_exceptions(self):
        """Should only retry on specified exception types."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, exceptions=(ConnectionError,))
        def raises_value_error():
            call_count[0] += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            raises_value_error()

        assert call_count[0] == 1

    def test_retry_if_rejects(self):
        """A rejected exception is re-raised as is, without retrying."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, retry_if=is_transient_error)
        def syntax_error():
            call_count[0] += 1
            raise RuntimeError("near 'SELEC': syntax error")

        with pytest.raises(RuntimeError):
            syntax_error()

        assert call_count[0] == 1

    def test_retry_if_accepts(self):
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, retry_if=is_transient_error)
        def locked_once():
            call_count[0] += 1
            if call_count[0] == 1:
                raise RuntimeError("database is locked")
            return "ok"

        assert locked_once() == "ok"
        assert call_count[0] == 2

    def test_exponential_delay(self):
        """Delay should increase exponentially."""
        delays = []

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exponential_base=2.0,
            on_retry=lambda attempt, exc, delay: delays.append(delay),
        )
        def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            always_fails()

        assert delays == [0.01, 0.02, 0.04]

    def test_max_delay_cap(self, monkeypatch):
        """Delay should not exceed max_delay."""
        delays = []
        monkeypatch.setattr("jobly.retry.time.sleep", lambda seconds: None)

        @exponential_backoff(
            max_retries=5,
            base_delay=1.0,
            max_delay=2.0,
            exponential_base=3.0,
            on_retry=lambda attempt, exc, delay: delays.append(delay),
        )
        def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            always_fails()

        assert delays == [1.0, 2.0, 2.0, 2.0, 2.0]


class TestTransientErrorDetection:
    """Test is_transient_error."""

    @pytest.mark.parametrize("message", [
        "could not connect to server: Connection refused",
        "server closed the connection unexpectedly",
        "FATAL: the database system is starting up",
        "database is locked",
        "connection timed out",
    ])
    def test_transient(self, message):
        assert is_transient_error(Exception(message))

    @pytest.mark.parametrize("message", [
        "no such table: companies",
        "UNIQUE constraint failed: companies.name",
        "syntax error",
    ])
    def test_not_transient(self, message):
        assert not is_transient_error(Exception(message))
