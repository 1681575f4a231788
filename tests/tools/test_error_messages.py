"""Tests for skillsnap.tools.error_messages: get_user_message + safe_tool_wrapper."""

from unittest.mock import patch

from skillsnap.tools.error_messages import get_user_message, safe_tool_wrapper


class TestGetUserMessage:
    def test_value_error(self):
        msg = get_user_message(ValueError("prefix must not be empty"))
        assert "Invalid input" in msg
        assert "prefix must not be empty" in msg

    def test_runtime_error_means_not_ready(self):
        msg = get_user_message(RuntimeError("Cache not initialized"))
        assert "not ready" in msg

    def test_unknown_error(self):
        msg = get_user_message(KeyError("x"))
        assert "server log" in msg

    def test_context_operation(self):
        msg = get_user_message(ValueError("bad"), context={"operation": "clear cache"})
        assert "clear cache" in msg

    def test_no_context_uses_default(self):
        msg = get_user_message(KeyError("x"))
        assert "the request" in msg


class TestSafeToolWrapper:
    async def test_returns_result(self):
        async def ok(value):
            return f"got {value}"

        assert await safe_tool_wrapper(ok, "x") == "got x"

    async def test_catches_and_logs(self):
        async def boom():
            raise ValueError("broken")

        with patch("skillsnap.tools.error_messages.logger") as mock_logger:
            result = await safe_tool_wrapper(boom, context={"operation": "demo"})
            mock_logger.exception.assert_called_once()
        assert "demo" in result
