# src/config/logging_config.py

"""Per-run log file for reconcile and aggregate commands.

Every CLI invocation gets its own ``logs/run_<timestamp>.log``. A
reconcile run writes one DEBUG line per persisted listing (normalized
name, vendor, product id, score, merged or created), and an aggregate run
writes one line per group update. The file therefore doubles as an
audit trail of which listings were merged into which product.

Only WARNING and above reach stderr, where the rich status lines from
:mod:`src.cli.runner` already live. Storage failures that abort a
reconcile batch are logged with their traceback so the listing that
stopped the batch can be found in the run log.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

# Formats -------------------------------------------------------------------

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | "
    "%(message)s"
)

_STDERR_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging() -> Path:
    """Attach the run-log and stderr handlers to ``catalog_recon``.

    The first line of every run log records the catalog database and the
    merge threshold in effect, so match decisions can be read against
    the settings that produced them.

    Returns:
        Path of this run's log file.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    project_logger = logging.getLogger("catalog_recon")
    project_logger.setLevel(logging.DEBUG)

    # Already configured in this process
    if project_logger.handlers:
        return log_file

    run_log = logging.FileHandler(log_file, encoding="utf-8")
    run_log.setLevel(logging.DEBUG)
    run_log.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))

    stderr = logging.StreamHandler(sys.stderr)
    stderr.setLevel(logging.WARNING)
    stderr.setFormatter(logging.Formatter(_STDERR_FORMAT))

    project_logger.addHandler(run_log)
    project_logger.addHandler(stderr)

    project_logger.info(
        "Run log %s (catalog=%s, merge threshold=%.2f)",
        log_file,
        Settings.DB_PATH,
        Settings.MATCH_THRESHOLD,
    )
    return log_file
