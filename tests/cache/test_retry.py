"""Tests for skillsnap.cache.retry: fetch retry policy."""

from unittest.mock import MagicMock, patch

import pytest

from skillsnap.cache.retry import fetch_retrying, log_retry_attempt


class TestLogRetryAttempt:
    def test_logs_retry_info(self):
        state = MagicMock()
        state.attempt_number = 2
        state.outcome.exception.return_value = ConnectionError("boom")
        with patch("skillsnap.cache.retry.logger") as mock_logger:
            log_retry_attempt(state)
            mock_logger.warning.assert_called_once()
            assert "2" in str(mock_logger.warning.call_args)

    def test_logs_with_no_outcome(self):
        state = MagicMock()
        state.attempt_number = 1
        state.outcome = None
        with patch("skillsnap.cache.retry.logger") as mock_logger:
            log_retry_attempt(state)
            mock_logger.warning.assert_called_once()


async def _run(retrying, func):  # type: ignore[no-untyped-def]
    async for attempt in retrying:
        with attempt:
            result = await func()
    return result


class TestFetchRetrying:
    async def test_success_passes_through(self, sleep):
        async def ok():
            return "ok"

        assert await _run(fetch_retrying(sleep=sleep), ok) == "ok"
        assert sleep.delays == []

    async def test_exponential_delays(self, sleep):
        async def broken():
            raise ValueError("nope")

        with pytest.raises(ValueError):
            await _run(fetch_retrying(max_attempts=4, base_delay=0.1, sleep=sleep), broken)
        assert sleep.delays == pytest.approx([0.1, 0.2, 0.4])

    async def test_single_attempt_never_sleeps(self, sleep):
        calls = 0

        async def broken():
            nonlocal calls
            calls += 1
            raise ValueError("nope")

        with pytest.raises(ValueError):
            await _run(fetch_retrying(max_attempts=1, sleep=sleep), broken)
        assert calls == 1
        assert sleep.delays == []

    async def test_original_exception_is_reraised(self, sleep):
        class Boom(Exception):
            pass

        async def broken():
            raise Boom("original")

        with pytest.raises(Boom, match="original"):
            await _run(fetch_retrying(sleep=sleep), broken)
