# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import unittest

from src.config.logging_config import setup_logging
from src.config.settings import Settings


def _project_logger() -> logging.Logger:
    return logging.getLogger("catalog_recon")


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Start every test without project handlers."""
        _project_logger().handlers.clear()

    def tearDown(self) -> None:
        """Close handlers so log files are released."""
        for handler in _project_logger().handlers:
            handler.close()
        _project_logger().handlers.clear()

    def test_setup_creates_log_file_in_logs_dir(self) -> None:
        """The run log exists and sits inside logs/."""
        log_path = setup_logging()
        self.assertTrue(log_path.exists())
        self.assertEqual(log_path.parent.name, "logs")

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging()
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_handler_levels(self) -> None:
        """File handler logs DEBUG+, console handler WARNING+."""
        setup_logging()
        handlers = _project_logger().handlers
        file_levels = [
            h.level for h in handlers
            if isinstance(h, logging.FileHandler)
        ]
        console_levels = [
            h.level for h in handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(file_levels, [logging.DEBUG])
        self.assertEqual(console_levels, [logging.WARNING])
        self.assertEqual(_project_logger().level, logging.DEBUG)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        setup_logging()
        count_before = len(_project_logger().handlers)
        setup_logging()
        self.assertEqual(len(_project_logger().handlers), count_before)

    def test_module_loggers_reach_run_log(self) -> None:
        """Records from catalog_recon.* loggers land in the run log."""
        log_path = setup_logging()
        logging.getLogger("catalog_recon.reconciler").debug(
            "matcher record 42"
        )
        for handler in _project_logger().handlers:
            handler.flush()
        content = log_path.read_text(encoding="utf-8")
        self.assertIn("catalog_recon.reconciler", content)
        self.assertIn("matcher record 42", content)

    def test_run_log_header_names_catalog_and_threshold(self) -> None:
        """The run log header states the database and merge threshold."""
        log_path = setup_logging()
        for handler in _project_logger().handlers:
            handler.flush()
        header = [
            line
            for line in log_path.read_text(encoding="utf-8").splitlines()
            if "Run log" in line
        ][-1]
        self.assertIn(f"catalog={Settings.DB_PATH}", header)
        self.assertIn(
            f"merge threshold={Settings.MATCH_THRESHOLD:.2f}", header
        )


if __name__ == "__main__":
    unittest.main()
