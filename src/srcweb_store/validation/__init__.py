"""Runtime validation of records crossing the storage boundary.

Use these validators on anything read from the network or from an older
database before handing it to the game model.
"""

from srcweb_store.validation.asset_cache import AssetCacheRecordSchema, validate_asset_cache
from srcweb_store.validation.download_progress import (
    DownloadProgressRecordSchema,
    validate_download_progress,
)
from srcweb_store.validation.save_data import (
    SaveDataMetadataSchema,
    SaveDataRecordSchema,
    validate_save_data,
    validate_save_data_metadata,
)
from srcweb_store.validation.scenario_cache import (
    ScenarioCacheRecordSchema,
    ScenarioDataSchema,
    ScenarioMetadataSchema,
    validate_scenario_cache,
    validate_scenario_metadata,
)
from srcweb_store.validation.user_settings import UserSettingsRecordSchema, validate_user_settings
from srcweb_store.validation.utils import (
    NOT_FOUND,
    ValidationFailure,
    ValidationIssue,
    ValidationResult,
    ValidationSuccess,
    extract_successful_data,
    extract_validation_errors,
    format_error_messages,
    format_validation_result,
    partial_model,
    pick_model,
    validate,
    validate_array,
    validate_db_record,
    validate_or_throw,
    validate_partial,
)

__all__ = [
    # Record validators
    "AssetCacheRecordSchema",
    "DownloadProgressRecordSchema",
    "SaveDataMetadataSchema",
    "SaveDataRecordSchema",
    "ScenarioCacheRecordSchema",
    "ScenarioDataSchema",
    "ScenarioMetadataSchema",
    "UserSettingsRecordSchema",
    "validate_asset_cache",
    "validate_download_progress",
    "validate_save_data",
    "validate_save_data_metadata",
    "validate_scenario_cache",
    "validate_scenario_metadata",
    "validate_user_settings",
    # Results and helpers
    "NOT_FOUND",
    "ValidationFailure",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSuccess",
    "extract_successful_data",
    "extract_validation_errors",
    "format_error_messages",
    "format_validation_result",
    "partial_model",
    "pick_model",
    "validate",
    "validate_array",
    "validate_db_record",
    "validate_or_throw",
    "validate_partial",
]
