"""
Tests for the logging module and request tracing middleware.
"""

import json
import logging

import pytest
import structlog


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_development_mode(self):
        """Test that development mode uses console renderer."""
        from core.logging import configure_logging

        # Should not raise
        configure_logging(json_logs=False, log_level="DEBUG")

    def test_configure_production_mode(self):
        """Test that production mode uses JSON renderer."""
        from core.logging import configure_logging

        # Should not raise
        configure_logging(json_logs=True, log_level="INFO")

    def test_configure_log_level(self):
        """Test that log level is correctly set."""
        from core.logging import configure_logging

        configure_logging(log_level="WARNING")

        assert logging.getLogger().level == logging.WARNING

    def test_http_client_loggers_quieted(self):
        """Test that Supabase transport loggers are raised to WARNING."""
        from core.logging import configure_logging

        configure_logging(log_level="DEBUG")

        for name in ("httpx", "httpcore"):
            assert logging.getLogger(name).level == logging.WARNING


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_named_logger(self):
        from core.logging import get_logger

        logger = get_logger("feed.ranker")

        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")
        assert hasattr(logger, "error")

    def test_logger_can_log(self):
        """Test that logger can actually log key/value events."""
        from core.logging import configure_logging, get_logger

        configure_logging(json_logs=False, log_level="DEBUG")
        logger = get_logger("test")

        # Should not raise
        logger.info("Feed served", path="local", count=3)
        logger.warning("Feed read timed out", operation="fetch_recent_content", timeout_s=5.0)
        logger.error("Feed ranking failed", error="boom")


class TestContextBinding:
    """Tests for context binding functions."""

    def test_bind_context(self):
        from core.logging import bind_context, clear_context

        clear_context()
        bind_context(user_id="viewer-1", request_id="abc")

        ctx = structlog.contextvars.get_contextvars()
        assert ctx.get("user_id") == "viewer-1"
        assert ctx.get("request_id") == "abc"

        clear_context()

    def test_clear_context(self):
        from core.logging import bind_context, clear_context

        bind_context(user_id="viewer-1")
        clear_context()

        assert "user_id" not in structlog.contextvars.get_contextvars()


class TestJSONOutput:
    """Tests for JSON logging output."""

    def test_json_output_is_valid_json(self, capsys):
        """Test that JSON output is valid JSON."""
        from core.logging import configure_logging, get_logger

        configure_logging(json_logs=True, log_level="INFO")
        logger = get_logger("json_test")

        logger.info("Feed served", path="rpc_strict")

        captured = capsys.readouterr()

        if captured.out:
            for line in captured.out.strip().split("\n"):
                if line:
                    data = json.loads(line)
                    assert "event" in data


class TestRequestTracing:
    """Tests for RequestTracingMiddleware."""

    async def test_request_id_header_generated(self, async_client):
        response = await async_client.get("/live")

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 8

    async def test_request_id_header_propagated(self, async_client):
        response = await async_client.get("/live", headers={"X-Request-ID": "trace-42"})

        assert response.headers["X-Request-ID"] == "trace-42"

    async def test_context_cleared_after_request(self, async_client):
        await async_client.get("/api/feed/ranked", params={"user_id": "viewer-1"})

        assert "request_id" not in structlog.contextvars.get_contextvars()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
