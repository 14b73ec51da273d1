"""
Tests for main.py - Main Entry Point

Tests for:
- Logging configuration (JSON config, fallback, level override)
- Spotify token validation
- Worker run and shutdown
- Error handling
"""

import json
import logging
from unittest.mock import AsyncMock, MagicMock, mock_open, patch

import pytest
from pydantic import SecretStr

from party_queue.main import main, run, setup_logging
from party_queue.utils.logging import ColoredFormatter


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


def _mock_settings(token: str = "test_token_123") -> MagicMock:
    settings = MagicMock()
    settings.spotify.access_token = SecretStr(token)
    settings.log_level = "INFO"
    settings.environment = "test"
    return settings


class TestLoggingSetup:
    """Tests for logging configuration."""

    def _make_valid_config(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {},
            "loggers": {
                "aiosqlite": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
            "root": {"level": "INFO", "handlers": []},
        }

    def test_dictconfig_called_when_json_exists(self):
        """Should call dictConfig when logging_config.json exists."""
        config = self._make_valid_config()
        m = mock_open(read_data=json.dumps(config))
        with (
            patch("builtins.open", m),
            patch("logging.config.dictConfig") as mock_dc,
        ):
            setup_logging()

            mock_dc.assert_called_once_with(config)

    def test_fallback_to_basicconfig_when_json_missing(self):
        """Should fallback to basicConfig when logging_config.json is missing."""
        with (
            patch("builtins.open", side_effect=FileNotFoundError),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging()

            mock_bc.assert_called_once()
            assert mock_bc.call_args[1]["level"] == logging.INFO

    def test_fallback_to_basicconfig_when_json_malformed(self):
        """Should fallback to basicConfig when JSON is malformed."""
        m = mock_open(read_data="{invalid json")
        with (
            patch("builtins.open", m),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging()

            mock_bc.assert_called_once()

    def test_root_logger_level_overridden_by_settings(self):
        """Should override root logger level with the provided log_level."""
        m = mock_open(read_data=json.dumps(self._make_valid_config()))
        with (
            patch("builtins.open", m),
            patch("logging.config.dictConfig"),
            patch("logging.getLogger") as mock_get_logger,
        ):
            mock_root = MagicMock()
            mock_get_logger.return_value = mock_root

            setup_logging("DEBUG")

            mock_root.setLevel.assert_called_once_with(logging.DEBUG)

    def test_shipped_config_uses_colored_formatter(self, restore_logging):
        """Should load the repository's logging_config.json as is."""
        setup_logging("WARNING")

        package_logger = logging.getLogger("party_queue")
        assert logging.getLogger().level == logging.WARNING
        assert package_logger.handlers
        assert isinstance(package_logger.handlers[0].formatter, ColoredFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING


class TestMainFunction:
    """Tests for main entry point function."""

    def test_main_returns_error_without_token(self):
        """Should return error code when the Spotify token is missing."""
        with (
            patch(
                "party_queue.config.settings.get_settings", return_value=_mock_settings(token="")
            ),
            patch("party_queue.main.setup_logging"),
            patch("party_queue.main.run", new_callable=AsyncMock) as mock_run,
        ):
            exit_code = main()

        assert exit_code == 1
        mock_run.assert_not_called()

    def test_main_successful_run(self):
        """Should return 0 after the worker stops cleanly."""
        settings = _mock_settings()
        with (
            patch("party_queue.config.settings.get_settings", return_value=settings),
            patch("party_queue.main.setup_logging"),
            patch("party_queue.main.run", new_callable=AsyncMock) as mock_run,
        ):
            exit_code = main()

        assert exit_code == 0
        mock_run.assert_awaited_once_with(settings)

    def test_main_handles_keyboard_interrupt(self):
        """Should return 0 on KeyboardInterrupt (graceful shutdown)."""
        with (
            patch("party_queue.config.settings.get_settings", return_value=_mock_settings()),
            patch("party_queue.main.setup_logging"),
            patch("party_queue.main.run", new_callable=AsyncMock, side_effect=KeyboardInterrupt),
        ):
            exit_code = main()

        assert exit_code == 0

    def test_main_handles_exception(self):
        """Should return error code on unhandled exception."""
        with (
            patch("party_queue.config.settings.get_settings", return_value=_mock_settings()),
            patch("party_queue.main.setup_logging"),
            patch(
                "party_queue.main.run",
                new_callable=AsyncMock,
                side_effect=RuntimeError("worker crashed"),
            ),
        ):
            exit_code = main()

        assert exit_code == 1


class TestRun:
    """Tests for the async worker body."""

    async def test_shutdown_runs_when_initialize_fails(self):
        """Should always shut the container down."""
        container = MagicMock()
        container.initialize = AsyncMock(side_effect=RuntimeError("disk full"))
        container.shutdown = AsyncMock()

        with patch("party_queue.config.container.create_container", return_value=container):
            with pytest.raises(RuntimeError):
                await run(_mock_settings())

        container.shutdown.assert_awaited_once()
        container.reconciliation_service.start.assert_not_called()
