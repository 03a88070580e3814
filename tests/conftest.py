# tests/conftest.py

"""Shared pytest fixtures for all price_tracker tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def isolated_db(tmp_path: Path) -> Generator[Path, None, None]:
    """Point the default item store at a per-test temp database."""
    db_path = tmp_path / "price_tracker.db"
    with patch("src.config.settings.Settings.DB_PATH", db_path):
        yield db_path
