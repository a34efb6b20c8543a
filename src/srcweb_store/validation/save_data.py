"""Validator for save slot records."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from srcweb_store.validation.fields import (
    NonEmptyStr,
    NonNegativeInt,
    PositiveInt,
    RecordModel,
    StrictFlag,
    Text,
    Timestamp,
)
from srcweb_store.validation.utils import ValidationResult, pick_model, validate


class SaveDataMetadataSchema(RecordModel):
    scenario_name: NonEmptyStr = Field(alias="scenarioName")
    play_time: NonNegativeInt = Field(alias="playTime")
    version: PositiveInt


class SaveDataRecordSchema(RecordModel):
    slot_id: NonEmptyStr = Field(alias="slotId")
    scenario_id: NonEmptyStr = Field(alias="scenarioId")
    timestamp: Timestamp
    turn: NonNegativeInt
    deleted: StrictFlag
    # gameState, units and pilots are opaque payloads; their structure is
    # owned by the game model and not checked here.
    game_state: Any = Field(default=None, alias="gameState")
    units: list[Any]
    pilots: list[Any]
    thumbnail: Text | None = None
    metadata: SaveDataMetadataSchema


# Fields needed to list save slots without loading the game body
SAVE_SUMMARY_FIELDS = (
    "slot_id",
    "scenario_id",
    "timestamp",
    "turn",
    "deleted",
    "metadata",
    "thumbnail",
)


def validate_save_data(data: Any) -> ValidationResult[SaveDataRecordSchema]:
    return validate(SaveDataRecordSchema, data)


def validate_save_data_metadata(data: Any) -> ValidationResult[BaseModel]:
    """Validate only the summary fields of a save slot.

    Used for save lists, where the game state, units and pilots are not
    needed.
    """
    return validate(pick_model(SaveDataRecordSchema, SAVE_SUMMARY_FIELDS), data)
