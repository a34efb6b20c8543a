"""Shared fixtures for srcweb_store tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio

from srcweb_store import (
    AssetCacheRecord,
    Database,
    DownloadProgressRecord,
    SaveDataRecord,
    ScenarioCacheRecord,
    UserSettingsRecord,
)


@pytest_asyncio.fixture
async def db(tmp_path: Path):
    database = Database(tmp_path)
    assert await database.open()
    yield database
    await database.close()


@pytest.fixture
def save_record() -> SaveDataRecord:
    return {
        "slotId": "slot1",
        "scenarioId": "s1",
        "timestamp": 1700000000000,
        "turn": 42,
        "deleted": False,
        "gameState": {"currentTurn": 42, "phase": "player"},
        "units": [{"id": "u1"}],
        "pilots": [{"id": "p1"}],
        "metadata": {"scenarioName": "First Contact", "playTime": 3600, "version": 1},
    }


@pytest.fixture
def scenario_record() -> ScenarioCacheRecord:
    return {
        "scenarioId": "s1",
        "version": "1.0.0",
        "fetchedAt": 1700000000000,
        "data": {
            "units": [],
            "pilots": [],
            "events": {"start.eve": "Talk Amuro"},
            "dataFiles": {"unit.txt": "RX-78"},
        },
        "metadata": {"title": "First Contact", "author": "kkrw", "size": 2048},
    }


@pytest.fixture
def asset_record() -> AssetCacheRecord:
    return {
        "scenarioId": "s1",
        "url": "https://cdn.jsdelivr.net/gh/example/scenario/bitmap/unit.png",
        "type": "image",
        "blob": b"\x89PNG\r\n\x1a\n",
        "fetchedAt": 1700000000000,
        "size": 8,
        "mimeType": "image/png",
    }


@pytest.fixture
def settings_record() -> UserSettingsRecord:
    return {"key": "gameSettings", "value": {"volume": 0.8, "speed": "fast"}, "updatedAt": 1700000000000}


@pytest.fixture
def download_record() -> DownloadProgressRecord:
    return {
        "scenarioId": "s1",
        "url": "https://cdn.jsdelivr.net/gh/example/scenario/data/unit.txt",
        "type": "data",
        "status": "downloading",
        "downloadedBytes": 512,
        "totalBytes": 1024,
        "progress": 50.0,
        "startedAt": 1700000000000,
        "updatedAt": 1700000001000,
    }
