"""Record types persisted by the srcweb_store tables.

These are plain mappings as stored in the database. Runtime checking of
records coming from outside the process lives in
:mod:`srcweb_store.validation`.
"""

from __future__ import annotations

from typing import Any, Literal, NotRequired, TypedDict

AssetType = Literal["image", "audio", "data"]
DownloadType = Literal["scenario", "image", "audio", "data"]
DownloadStatus = Literal["pending", "downloading", "completed", "error"]


class SaveDataMetadata(TypedDict):
    scenarioName: str
    playTime: int  # seconds
    version: int


class SaveDataRecord(TypedDict):
    """A save slot for one scenario.

    A scenario may hold several slots ("slot1", "slot2", "auto", "quick").
    ``deleted`` marks a slot as logically deleted; rows are never
    garbage-collected by the storage layer.
    """

    slotId: str
    scenarioId: str
    timestamp: int
    turn: int
    deleted: bool
    gameState: Any
    units: list[Any]
    pilots: list[Any]
    thumbnail: NotRequired[str]
    metadata: SaveDataMetadata


class ScenarioData(TypedDict):
    units: list[Any]
    pilots: list[Any]
    events: dict[str, str]  # file name -> event script text
    dataFiles: dict[str, str]


class ScenarioMetadata(TypedDict):
    title: str
    author: str
    size: int
    description: NotRequired[str]


class ScenarioCacheRecord(TypedDict):
    """A cached scenario definition fetched from the platform."""

    scenarioId: str
    version: str
    fetchedAt: int
    data: ScenarioData
    metadata: ScenarioMetadata


class AssetCacheRecord(TypedDict):
    """A cached binary asset belonging to one scenario.

    A missing ``expiresAt`` means the entry never expires.
    """

    scenarioId: str
    url: str
    type: AssetType
    blob: bytes
    fetchedAt: int
    size: int
    expiresAt: NotRequired[int]
    mimeType: str


class UserSettingsRecord(TypedDict):
    """An application or per-scenario setting, e.g. ``"scenario001:settings"``."""

    key: str
    value: Any
    updatedAt: int


class DownloadProgressRecord(TypedDict):
    """Transfer state of one file belonging to a scenario.

    Status moves ``pending -> downloading -> completed | error``. The storage
    layer records whatever the caller writes; it does not enforce the order.
    """

    scenarioId: str
    url: str
    type: DownloadType
    status: DownloadStatus
    downloadedBytes: int
    totalBytes: int
    progress: float
    startedAt: NotRequired[int]
    completedAt: NotRequired[int]
    error: NotRequired[str]
    updatedAt: int
