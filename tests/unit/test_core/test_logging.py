"""Unit tests for logging configuration."""

from pathlib import Path

from loguru import logger

from places_api.core.logging import setup_logging


class TestLogging:
    """Tests for Loguru logging setup."""

    def test_setup_logging_does_not_raise(self) -> None:
        """setup_logging with valid log level does not raise."""
        setup_logging("DEBUG")
        setup_logging("INFO")
        setup_logging("WARNING")

    def test_setup_logging_case_insensitive(self) -> None:
        """setup_logging accepts case-insensitive log levels."""
        setup_logging("info")
        setup_logging("debug")

    def test_log_dir_writes_file(self, tmp_path: Path) -> None:
        """A log_dir adds a file sink named after the service."""
        setup_logging("INFO", log_dir=str(tmp_path / "logs"))
        logger.info("places-api file sink check")
        logger.complete()

        log_file = tmp_path / "logs" / "places-api.log"
        assert log_file.exists()
        assert "places-api file sink check" in log_file.read_text(encoding="utf-8")
        setup_logging("INFO")

    def test_console_is_the_only_sink_without_log_dir(self) -> None:
        """Without a log_dir only the human-readable console sink is installed."""
        setup_logging("INFO")
        assert len(logger._core.handlers) == 1  # type: ignore[attr-defined]
