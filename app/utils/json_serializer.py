"""
JSON-safe conversion for values stored in JSON columns (audit meta, notification data)
"""
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from app.utils.datetime_utils import ensure_utc


def to_json_safe(value: Any) -> Any:
    """
    Recursively convert Python objects to JSON-safe values.

    Datetimes are normalised to UTC ISO strings, Decimals become floats and
    Enums their value; unknown objects fall back to ``str``.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        if isinstance(value, Enum):
            return value.value
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json_safe(item) for item in value]
    return str(value)
