"""Validation results and the generic validation entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, Field, create_model
from pydantic import ValidationError as PydanticValidationError
from pydantic.fields import FieldInfo

from srcweb_store.exceptions import ValidationFailedError

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)

NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ValidationIssue:
    """One field-level violation.

    ``path`` addresses the offending value from the record root, e.g.
    ``("metadata", "playTime")``; it is empty for whole-record problems.
    """

    path: tuple[str | int, ...]
    message: str
    code: str

    @property
    def dotted_path(self) -> str:
        return ".".join(str(part) for part in self.path)


@dataclass(frozen=True)
class ValidationSuccess(Generic[T]):
    data: T
    success: Literal[True] = field(default=True, init=False)


@dataclass(frozen=True)
class ValidationFailure:
    errors: list[ValidationIssue]
    success: Literal[False] = field(default=False, init=False)


ValidationResult = Union[ValidationSuccess[T], ValidationFailure]


def issues_from_error(error: PydanticValidationError) -> list[ValidationIssue]:
    """Convert a pydantic ValidationError into ValidationIssues."""
    return [
        ValidationIssue(path=tuple(item["loc"]), message=item["msg"], code=item["type"])
        for item in error.errors(include_url=False)
    ]


def format_validation_result(outcome: T | PydanticValidationError) -> ValidationResult[T]:
    """Wrap a validated value, or the error raised validating it, as a result."""
    if isinstance(outcome, PydanticValidationError):
        return ValidationFailure(errors=issues_from_error(outcome))
    return ValidationSuccess(data=outcome)


def format_error_messages(errors: list[ValidationIssue]) -> str:
    """Render issues one per line as ``path: message``."""
    lines = []
    for error in errors:
        prefix = f"{error.dotted_path}: " if error.path else ""
        lines.append(f"{prefix}{error.message}")
    return "\n".join(lines)


def validate(schema: type[ModelT], data: Any) -> ValidationResult[ModelT]:
    """Check ``data`` against ``schema`` without raising on malformed input."""
    try:
        return ValidationSuccess(data=schema.model_validate(data))
    except PydanticValidationError as exc:
        return format_validation_result(exc)


def validate_or_throw(
    schema: type[ModelT], data: Any, error_prefix: str = "Validation failed"
) -> ModelT:
    """Validate ``data`` or raise ValidationFailedError listing every issue."""
    result = validate(schema, data)
    if isinstance(result, ValidationFailure):
        message = f"{error_prefix}:\n{format_error_messages(result.errors)}"
        raise ValidationFailedError(message, result.errors)
    return result.data


def _annotation_of(info: FieldInfo) -> Any:
    # Reattach the constraints pydantic split off the declared Annotated type
    if info.metadata:
        return Annotated[(info.annotation, *info.metadata)]
    return info.annotation


@lru_cache(maxsize=None)
def partial_model(schema: type[BaseModel]) -> type[BaseModel]:
    """Derive a model from ``schema`` whose top-level fields are all optional.

    Present fields keep their rules; missing fields default to None.
    """
    fields: dict[str, Any] = {
        name: (_annotation_of(info), Field(default=None, alias=info.alias))
        for name, info in schema.model_fields.items()
    }
    return create_model(f"Partial{schema.__name__}", __base__=schema, **fields)


@lru_cache(maxsize=None)
def pick_model(schema: type[BaseModel], names: tuple[str, ...]) -> type[BaseModel]:
    """Derive a model holding only the named fields of ``schema``."""
    fields: dict[str, Any] = {}
    for name in names:
        info = schema.model_fields[name]
        fields[name] = (_annotation_of(info), Field(info.default, alias=info.alias))
    return create_model(f"{schema.__name__}Subset", __config__=schema.model_config, **fields)


def validate_partial(schema: type[BaseModel], data: Any) -> ValidationResult[BaseModel]:
    """Validate only the fields present in ``data``."""
    return validate(partial_model(schema), data)


def validate_array(schema: type[ModelT], items: list[Any]) -> list[ValidationResult[ModelT]]:
    """Validate every item; results keep input order."""
    return [validate(schema, item) for item in items]


def extract_successful_data(results: list[ValidationResult[T]]) -> list[T]:
    return [result.data for result in results if isinstance(result, ValidationSuccess)]


def extract_validation_errors(results: list[ValidationResult[T]]) -> list[list[ValidationIssue]]:
    return [result.errors for result in results if isinstance(result, ValidationFailure)]


def validate_db_record(
    schema: type[ModelT], data: Any, record_name: str
) -> ValidationResult[ModelT]:
    """Validate a record read from the database.

    A missing record (``None``) fails with the ``not_found`` code, so absent
    and malformed records are handled the same way by callers.
    """
    if data is None:
        return ValidationFailure(
            errors=[ValidationIssue(path=(), message=f"{record_name} not found", code=NOT_FOUND)]
        )
    return validate(schema, data)
