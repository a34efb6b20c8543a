"""Reusable field rules shared by the record validators."""

from __future__ import annotations

from typing import Annotated

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    Strict,
    TypeAdapter,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _check_url(value: str) -> str:
    # Keep the caller's spelling; AnyUrl would normalize it (trailing slash)
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise PydanticCustomError("invalid_url", "Input should be a valid URL") from None
    return value


def _as_bytes(value: object) -> object:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


NonEmptyStr = Annotated[str, Strict(), Field(min_length=1)]
Text = Annotated[str, Strict()]
Timestamp = Annotated[int, Strict(), Field(gt=0)]
PositiveInt = Annotated[int, Strict(), Field(gt=0)]
NonNegativeInt = Annotated[int, Strict(), Field(ge=0)]
Percentage = Annotated[float, Strict(), Field(ge=0, le=100)]
UrlStr = Annotated[str, Strict(), AfterValidator(_check_url)]
Binary = Annotated[bytes, Strict(), BeforeValidator(_as_bytes)]
StrictFlag = Annotated[bool, Strict()]


class RecordModel(BaseModel):
    """Base for record validators.

    Attributes use snake_case and map to the camelCase keys of the stored
    records through aliases; unknown keys are dropped.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_record(self) -> dict:
        """Return the record as stored, with camelCase keys."""
        return self.model_dump(by_alias=True, exclude_unset=True)
