"""Shared fixtures."""

from pathlib import Path

import pytest

from zotmirror.config.settings import SyncConfig
from zotmirror.infrastructure.storage import LibraryStorage


@pytest.fixture
def storage(tmp_path: Path):
    """Initialized SQLite storage in a temporary directory."""
    store = LibraryStorage(tmp_path / "library.sqlite")
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def sync_config(tmp_path: Path) -> SyncConfig:
    """Sync settings with no delays and no snapshots."""
    return SyncConfig(
        retry_attempts=3,
        retry_delay=0,
        process_batch_size=2,
        write_batch_size=2,
        scratch_dir=str(tmp_path / "scratch"),
        snapshot_dir=str(tmp_path / "snapshots"),
        write_snapshots=False,
    )
