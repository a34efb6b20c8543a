"""Validator for cached binary assets."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from srcweb_store.records import AssetType
from srcweb_store.validation.fields import (
    Binary,
    NonEmptyStr,
    NonNegativeInt,
    RecordModel,
    Timestamp,
    UrlStr,
)
from srcweb_store.validation.utils import ValidationResult, validate


class AssetCacheRecordSchema(RecordModel):
    scenario_id: NonEmptyStr = Field(alias="scenarioId")
    url: UrlStr
    type: AssetType
    blob: Binary
    fetched_at: Timestamp = Field(alias="fetchedAt")
    size: NonNegativeInt
    # Absent means the asset never expires
    expires_at: Timestamp | None = Field(default=None, alias="expiresAt")
    mime_type: NonEmptyStr = Field(alias="mimeType")


def validate_asset_cache(data: Any) -> ValidationResult[AssetCacheRecordSchema]:
    return validate(AssetCacheRecordSchema, data)
