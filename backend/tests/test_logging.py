"""
Tests for structlog configuration.
"""

import structlog
from structlog.testing import capture_logs

from careroute.core.logging import configure_logging, get_logger


class TestConfigureLogging:
    def test_cache_switch(self):
        configure_logging("INFO")
        assert structlog.get_config()["cache_logger_on_first_use"] is True

        configure_logging("INFO", cache_loggers=False)
        assert structlog.get_config()["cache_logger_on_first_use"] is False

    def test_uncached_logger_follows_reconfiguration(self):
        configure_logging("INFO", cache_loggers=False)
        logger = get_logger()
        logger.info("before_capture")

        with capture_logs() as logs:
            logger.warning("inside_capture", tenant="acme")

        assert logs == [{"event": "inside_capture", "tenant": "acme", "log_level": "warning"}]

    def test_named_and_unnamed_loggers(self):
        with capture_logs() as logs:
            get_logger().info("unnamed")
            get_logger(__name__).info("named")

        assert [e["event"] for e in logs] == ["unnamed", "named"]
