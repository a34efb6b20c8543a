"""Validator for user settings records."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from srcweb_store.validation.fields import NonEmptyStr, RecordModel, Timestamp
from srcweb_store.validation.utils import ValidationResult, validate


class UserSettingsRecordSchema(RecordModel):
    key: NonEmptyStr
    value: Any = None  # any JSON-serializable value
    updated_at: Timestamp = Field(alias="updatedAt")


def validate_user_settings(data: Any) -> ValidationResult[UserSettingsRecordSchema]:
    return validate(UserSettingsRecordSchema, data)
