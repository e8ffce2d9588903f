"""Tests for logging setup."""

from loguru import logger

from commandsense.config.schema import Config
from commandsense.utils.logging import configure_logging, configure_logging_from


class TestConfigureLogging:
    """Test configure_logging."""

    def test_file_sink_records_debug(self, tmp_path):
        """Test the file sink keeps DEBUG records."""
        log_file = tmp_path / "logs" / "commandsense.log"
        configure_logging(level="ERROR", log_file=log_file)

        logger.debug("[Normalizer] 'paly' -> 'play'")
        logger.complete()
        logger.remove()

        assert "[Normalizer] 'paly' -> 'play'" in log_file.read_text()

    def test_from_config(self, tmp_path):
        """Test the log file defaults into the data dir."""
        config = Config(understanding={"data_dir": str(tmp_path)})
        assert config.log_path == tmp_path / "commandsense.log"

        configure_logging_from(config)
        logger.info("pipeline ready")
        logger.complete()
        logger.remove()

        assert "pipeline ready" in (tmp_path / "commandsense.log").read_text()
