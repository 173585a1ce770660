"""Value coercion between field types.

Used by retype migration steps. ``coerce`` either returns a value valid for
the target type or raises ValueError with a human-readable reason.
"""

import json
import math
from datetime import date, datetime
from typing import Any

from collectiondesk.domain.entities.collection import FieldType
from collectiondesk.domain.services.record_validator import RecordValidator

TRUE_STRINGS = frozenset({"true", "yes", "y", "on", "1"})
FALSE_STRINGS = frozenset({"false", "no", "n", "off", "0"})


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return json.dumps(value, sort_keys=True)


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("number is not finite")
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValueError("empty string is not a number")
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            number = float(raw)
        except ValueError:
            raise ValueError(f"'{value}' is not a number") from None
        if not math.isfinite(number):
            raise ValueError(f"'{value}' is not a finite number")
        return number
    raise ValueError(f"cannot convert {type(value).__name__} to number")


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ValueError(f"'{value}' is not a boolean")


def _to_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        raw = value.strip()
        try:
            return date.fromisoformat(raw).isoformat()
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date().isoformat()
        except ValueError:
            raise ValueError(f"'{value}' is not an ISO 8601 date") from None
    raise ValueError(f"cannot convert {type(value).__name__} to date")


def _to_datetime(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).isoformat()
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).isoformat()
        except ValueError:
            raise ValueError(f"'{value}' is not an ISO 8601 datetime") from None
    raise ValueError(f"cannot convert {type(value).__name__} to datetime")


def _to_json(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def _to_relation(value: Any) -> str:
    if isinstance(value, bool):
        raise ValueError("boolean is not a record id")
    if isinstance(value, (str, int)):
        text = str(value).strip()
        if text:
            return text
    raise ValueError(f"'{value}' is not a record id")


_CONVERTERS = {
    FieldType.TEXT: _to_text,
    FieldType.NUMBER: _to_number,
    FieldType.BOOLEAN: _to_boolean,
    FieldType.DATE: _to_date,
    FieldType.DATETIME: _to_datetime,
    FieldType.EMAIL: _to_text,
    FieldType.URL: _to_text,
    FieldType.JSON: _to_json,
    FieldType.RELATION: _to_relation,
}


def coerce(value: Any, target: FieldType) -> Any:
    """Convert a value to ``target``.

    Null stays null. The converted value is re-validated against the target
    type, so e.g. text that is not an email address fails an email retype.

    Raises:
        ValueError: If the value cannot be represented in the target type.
    """
    if value is None:
        return None

    converted = _CONVERTERS[target](value)
    error = RecordValidator.validate_field_value(converted, target, "value")
    if error is not None:
        raise ValueError(error.message)
    return converted
