# src/config/settings.py

"""Central configuration for the catalog reconciliation engine."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the catalog reconciliation engine."""

    # --- Matching ---
    # Merge only when the best score is strictly above this value
    MATCH_THRESHOLD: float = float(
        os.getenv("CATALOG_MATCH_THRESHOLD", "0.70")
    )
    SCORE_PRECISION: int = 2            # Decimal places kept on scores

    # --- Normalisation ---
    # Marketing qualifiers stripped from names (case-insensitive)
    NOISE_PATTERNS: list[str] = [
        r"pre[-\s]?workout",
    ]

    # --- Database ---
    DB_TIMEOUT: float = 10.0            # Seconds SQLite waits on a lock
    DB_POOL_SIZE: int = 5               # Max concurrent connections

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DB_PATH: Path = Path(
        os.getenv(
            "CATALOG_DB_PATH",
            str(BASE_DIR / "data" / "catalog.db"),
        )
    )
    RESULTS_DIR: Path = BASE_DIR / "results"
    LOGS_DIR: Path = BASE_DIR / "logs"
