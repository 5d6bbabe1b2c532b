# tests/conftest.py

"""Shared pytest fixtures for all catalog tests."""

from collections.abc import Generator
from pathlib import Path

import pytest

from src.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_storage(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
) -> Generator[Path, None, None]:
    """Point the default database and results dir at a temp directory."""
    monkeypatch.setattr(Settings, "DB_PATH", tmp_path / "catalog.db")
    monkeypatch.setattr(Settings, "RESULTS_DIR", tmp_path / "results")
    yield tmp_path
