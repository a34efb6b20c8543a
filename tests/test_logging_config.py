"""Tests for logging setup."""

import pytest
from loguru import logger

from srcweb_store import Database, setup_logging


@pytest.fixture
def restore_logging():
    yield
    setup_logging(force=True)


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.mark.asyncio
    async def test_sink_receives_database_events(self, tmp_path, restore_logging):
        """Test that library events reach the configured sink."""
        messages = []
        setup_logging(level="INFO", sink=messages.append, force=True)

        async with Database(tmp_path):
            pass

        assert any("opened successfully" in message for message in messages)
        assert any("closed" in message for message in messages)

    def test_level_filters(self, restore_logging):
        """Test that records below the level are dropped."""
        messages = []
        setup_logging(level="WARNING", sink=messages.append, force=True)

        logger.info("quiet")
        logger.warning("loud")

        assert len(messages) == 1
        assert "loud" in messages[0]

    def test_configured_once(self, restore_logging):
        """Test that a second call without force keeps the first sink."""
        first, second = [], []
        setup_logging(sink=first.append, force=True)
        setup_logging(sink=second.append)

        logger.info("hello")

        assert len(first) == 1
        assert second == []
