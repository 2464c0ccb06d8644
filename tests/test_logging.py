"""
Tests for structured logging setup.
"""
import json
import pytest
import structlog
from shared.utils.logging import setup_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_production_logs_are_json(capsys):
    setup_logging(level="info", environment="production")
    structlog.get_logger().info("insight_check_completed", insights_found=2)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "insight_check_completed"
    assert event["insights_found"] == 2
    assert event["level"] == "info"


def test_level_filters_lower_events(capsys):
    setup_logging(level="WARNING", environment="development")
    structlog.get_logger().info("rpc_cache_hit", key="gas_price")
    assert "rpc_cache_hit" not in capsys.readouterr().out
