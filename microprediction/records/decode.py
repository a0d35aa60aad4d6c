"""
Boundary decoders for JSON bodies returned by the microprediction API.

Each helper checks the shape of an already-parsed JSON value and either
returns a plain Python value or raises a DecodeError subclass, so shape
problems surface at the endpoint rather than deep in caller logic.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from microprediction.errors import MalformedPayload, NonNumericField


def decode_float(raw: Any, field: str = "value") -> float:
    """Interpret a JSON number (or numeric string) as a float."""
    # bool is an int subclass but never a meaningful observation
    if isinstance(raw, bool) or raw is None:
        raise NonNumericField(field, raw)
    if isinstance(raw, (int, float)):
        try:
            return float(raw)
        except OverflowError:
            # JSON integers have no size limit
            raise NonNumericField(field, raw, f"{field} is out of float range") from None
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            raise NonNumericField(field, raw) from None
    raise NonNumericField(field, raw)


def decode_optional_float(raw: Any, field: str = "value") -> Optional[float]:
    """Like decode_float, but JSON null maps to None (unknown stream)."""
    if raw is None:
        return None
    return decode_float(raw, field)


def decode_list(raw: Any, what: str) -> List[Any]:
    if not isinstance(raw, list):
        raise MalformedPayload(f"{what}: expected array, got {type(raw).__name__}")
    return raw


def decode_object(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise MalformedPayload(f"{what}: expected object, got {type(raw).__name__}")
    return raw


def decode_float_list(raw: Any, what: str) -> List[float]:
    items = decode_list(raw, what)
    return [decode_float(item, f"{what}[{i}]") for i, item in enumerate(items)]


def decode_string_list(raw: Any, what: str) -> List[str]:
    items = decode_list(raw, what)
    for i, item in enumerate(items):
        if not isinstance(item, str):
            raise MalformedPayload(f"{what}[{i}]: expected string, got {type(item).__name__}")
    return list(items)


def decode_float_map(raw: Any, what: str) -> Dict[str, float]:
    """Decode a flat {name: number} object such as a leaderboard or budget table."""
    data = decode_object(raw, what)
    return {str(key): decode_float(value, f"{what}[{key}]") for key, value in data.items()}


def decode_string_map(raw: Any, what: str) -> Dict[str, str]:
    data = decode_object(raw, what)
    result = {}
    for key, value in data.items():
        if not isinstance(value, str):
            raise MalformedPayload(f"{what}[{key}]: expected string, got {type(value).__name__}")
        result[str(key)] = value
    return result


def decode_epoch(raw: Any, field: str = "timestamp") -> datetime:
    """Convert Unix epoch seconds (int, float or numeric string) to an aware UTC datetime."""
    seconds = decode_float(raw, field)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        # NaN, inf and out-of-range epochs
        raise NonNumericField(field, raw, f"{field} is not a valid epoch: {raw!r}") from None
