"""Tests for logging helpers."""

import pytest
from structlog.testing import capture_logs

from bankboeker.logger import async_log_timing, get_logger, log_exception, log_external_api


def test_log_external_api_requires_coroutine():
    with pytest.raises(TypeError, match="async function"):

        @log_external_api("tavily")
        def search(query):
            return query


def test_log_exception_writes_context():
    logger = get_logger("tests.logger")

    with capture_logs() as logs:
        log_exception(
            logger,
            ValueError("bad amount"),
            "Posting failed",
            level="warning",
            include_traceback=False,
            transaction_id="t-1",
        )

    assert logs == [
        {
            "event": "Posting failed",
            "log_level": "warning",
            "error": "bad amount",
            "error_type": "ValueError",
            "error_module": "builtins",
            "transaction_id": "t-1",
        }
    ]


@pytest.mark.asyncio
class TestAsyncHelpers:
    async def test_external_call_result_is_returned(self):
        @log_external_api("tavily")
        async def search(query):
            return {"answer": query}

        with capture_logs() as logs:
            assert await search("shell") == {"answer": "shell"}

        assert logs[0]["event"] == "External API call to tavily"
        assert logs[0]["success"] is True
        assert logs[0]["function"] == "search"

    async def test_external_call_error_is_reraised(self):
        @log_external_api("openrouter")
        async def complete(prompt):
            raise RuntimeError("upstream down")

        with capture_logs() as logs, pytest.raises(RuntimeError, match="upstream down"):
            await complete("hi")

        assert logs[0]["event"] == "External API call to openrouter failed"
        assert logs[0]["error_type"] == "RuntimeError"

    async def test_timing_context(self):
        with capture_logs() as logs:
            async with async_log_timing("bank_batch", size=3) as timing:
                timing["auto_booked"] = 2

        assert timing["duration_ms"] >= 0
        assert logs[0]["event"] == "bank_batch completed"
        assert logs[0]["size"] == 3
        assert logs[0]["auto_booked"] == 2
