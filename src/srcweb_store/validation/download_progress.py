"""Validator for download progress records."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from srcweb_store.records import DownloadStatus, DownloadType
from srcweb_store.validation.fields import (
    NonEmptyStr,
    NonNegativeInt,
    Percentage,
    RecordModel,
    Text,
    Timestamp,
    UrlStr,
)
from srcweb_store.validation.utils import ValidationResult, validate


class DownloadProgressRecordSchema(RecordModel):
    """Shape of a download progress record.

    Only ranges are checked. Status transitions and the relation between
    ``progress`` and the byte counts are the downloader's responsibility.
    """

    scenario_id: NonEmptyStr = Field(alias="scenarioId")
    url: UrlStr
    type: DownloadType
    status: DownloadStatus
    downloaded_bytes: NonNegativeInt = Field(alias="downloadedBytes")
    total_bytes: NonNegativeInt = Field(alias="totalBytes")
    progress: Percentage
    started_at: Timestamp | None = Field(default=None, alias="startedAt")
    completed_at: Timestamp | None = Field(default=None, alias="completedAt")
    error: Text | None = None
    updated_at: Timestamp = Field(alias="updatedAt")


def validate_download_progress(data: Any) -> ValidationResult[DownloadProgressRecordSchema]:
    return validate(DownloadProgressRecordSchema, data)
