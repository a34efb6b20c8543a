"""Validator for cached scenario definitions."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from srcweb_store.validation.fields import NonEmptyStr, NonNegativeInt, RecordModel, Text, Timestamp
from srcweb_store.validation.utils import ValidationResult, pick_model, validate


class ScenarioDataSchema(RecordModel):
    # Unit and pilot master data stay opaque
    units: list[Any]
    pilots: list[Any]
    events: dict[str, Text]
    data_files: dict[str, Text] = Field(alias="dataFiles")


class ScenarioMetadataSchema(RecordModel):
    title: NonEmptyStr
    author: NonEmptyStr
    size: NonNegativeInt
    description: Text | None = None


class ScenarioCacheRecordSchema(RecordModel):
    scenario_id: NonEmptyStr = Field(alias="scenarioId")
    version: NonEmptyStr
    fetched_at: Timestamp = Field(alias="fetchedAt")
    data: ScenarioDataSchema
    metadata: ScenarioMetadataSchema


SCENARIO_SUMMARY_FIELDS = ("scenario_id", "version", "fetched_at", "metadata")


def validate_scenario_cache(data: Any) -> ValidationResult[ScenarioCacheRecordSchema]:
    return validate(ScenarioCacheRecordSchema, data)


def validate_scenario_metadata(data: Any) -> ValidationResult[BaseModel]:
    """Validate a cached scenario without its data body."""
    return validate(pick_model(ScenarioCacheRecordSchema, SCENARIO_SUMMARY_FIELDS), data)
