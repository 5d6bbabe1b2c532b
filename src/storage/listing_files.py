# src/storage/listing_files.py

"""Loads listing batches from JSON files and saves reconcile reports."""

import json
import logging
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, cast

from src.config.settings import Settings
from src.models.price_outcome import PriceObservation
from src.models.product import IncomingListing, MatchResult

logger = logging.getLogger("catalog_recon.storage")


def _as_int(value: object) -> Any:
    """Coerce numeric strings to ``int``; leave anything else for validation."""
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return value
    return value


def _as_float(value: object) -> Any:
    """Coerce numeric strings to ``float``; leave anything else for validation."""
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def _read_entries(filepath: Path) -> list[dict[str, Any]]:
    """Read a JSON array of objects, ignoring non-object entries."""
    with open(filepath, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        msg = f"{filepath.name}: expected a JSON array of listings"
        raise ValueError(msg)

    items = cast(list[object], data)
    entries = [e for e in items if isinstance(e, dict)]
    if len(entries) != len(items):
        logger.warning(
            "%s: ignored %d non-object entries",
            filepath.name,
            len(items) - len(entries),
        )
    return cast(list[dict[str, Any]], entries)


def load_listings(filepath: Path) -> list[IncomingListing]:
    """Load incoming listings from a JSON file.

    Values are passed through mostly as-is so that malformed rows
    surface as validation skips instead of load errors.
    """
    listings = [
        IncomingListing(
            listed_name=row.get("listed_name", ""),
            vendor_id=_as_int(row.get("vendor_id")),
            price=_as_float(row.get("price")),
            image=str(row.get("image") or ""),
            link=str(row.get("link") or ""),
        )
        for row in _read_entries(filepath)
    ]
    logger.info(
        "Loaded %d listings from %s", len(listings), filepath,
    )
    return listings


def load_price_observations(filepath: Path) -> list[PriceObservation]:
    """Load ``(listed_name, vendor_id, price)`` observations from JSON."""
    observations = [
        PriceObservation(
            listed_name=row.get("listed_name", ""),
            vendor_id=_as_int(row.get("vendor_id")),
            price=_as_float(row.get("price")),
        )
        for row in _read_entries(filepath)
    ]
    logger.info(
        "Loaded %d price observations from %s",
        len(observations),
        filepath,
    )
    return observations


def save_report(
    results: list[MatchResult],
    label: str,
    results_dir: Path | None = None,
) -> Path:
    """Save reconcile results to a timestamped JSON file."""
    directory = results_dir or Settings.RESULTS_DIR
    directory.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = directory / f"reconcile_{label}_{timestamp}.json"

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(
            [asdict(r) for r in results],
            f,
            ensure_ascii=False,
            indent=2,
        )

    logger.info(
        "Saved %d reconcile results to %s", len(results), filepath,
    )
    return filepath
