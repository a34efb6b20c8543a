"""JSON encoding of records and keys as stored in the database.

Records are stored as JSON text. Binary values (``bytes``, ``bytearray``,
``memoryview``) are wrapped as ``{"$bytes": "<base64>"}`` so asset blobs
survive a round trip; a user mapping that happens to look like a wrapper
is itself wrapped in ``{"$dict": ...}``.
"""

from __future__ import annotations

import base64
import json
import math
from collections.abc import Mapping
from typing import Any

BYTES_TAG = "$bytes"
DICT_TAG = "$dict"

_TAGS = ({BYTES_TAG}, {DICT_TAG})


def _to_json(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {BYTES_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, Mapping):
        converted = {str(k): _to_json(v) for k, v in value.items()}
        if set(converted) in _TAGS:
            return {DICT_TAG: converted}
        return converted
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    return value


def _from_json(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {BYTES_TAG}:
            return base64.b64decode(value[BYTES_TAG])
        if set(value) == {DICT_TAG}:
            return {k: _from_json(v) for k, v in value[DICT_TAG].items()}
        return {k: _from_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_json(v) for v in value]
    return value


def encode_record(record: Mapping[str, Any]) -> str:
    """Serialize a record to JSON text.

    Raises:
        TypeError: If the record holds a value JSON cannot represent.
    """
    return json.dumps(_to_json(record), ensure_ascii=False, allow_nan=False)


def decode_record(text: str) -> dict[str, Any]:
    """Deserialize JSON text produced by :func:`encode_record`."""
    return _from_json(json.loads(text))


def is_valid_key(value: Any) -> bool:
    """Return whether a value can be used as a key or index key.

    Strings and finite numbers are valid; booleans, None and containers
    are not.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return True
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    return False


def _canonical(part: Any) -> Any:
    if isinstance(part, float) and part.is_integer():
        return int(part)
    return part


def encode_key(key: Any) -> str:
    """Encode a scalar or compound key as canonical JSON text.

    Whole-number floats encode like the equal int.

    Raises:
        TypeError: If the key, or any part of a compound key, is invalid.
    """
    if isinstance(key, (tuple, list)):
        if not key or not all(is_valid_key(part) for part in key):
            raise TypeError(f"Invalid compound key: {key!r}")
        return json.dumps(
            [_canonical(part) for part in key], ensure_ascii=False, separators=(",", ":")
        )
    if not is_valid_key(key):
        raise TypeError(f"Invalid key: {key!r}")
    return json.dumps(_canonical(key), ensure_ascii=False)


def decode_key(text: str) -> Any:
    """Decode key text; compound keys come back as tuples."""
    value = json.loads(text)
    if isinstance(value, list):
        return tuple(value)
    return value
