"""
Utility functions for parsing configuration values.
"""
import re
from typing import Any, Union

_DURATION_RE = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$')
_UNIT_SECONDS = {'ms': 0.001, 's': 1.0, 'm': 60.0, 'h': 3600.0, None: 1.0}

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


def parse_duration(value: Union[str, int, float, None]) -> float:
    """
    Convert a duration to seconds.

    Numbers are taken as seconds. Strings may carry a unit suffix:
    "500ms", "4s", "1m", "1h". A bare "10" is 10 seconds.

    Raises:
        ValueError: the value is not a duration
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ValueError(f"not a duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"not a duration: {value!r}")
    number, unit = match.groups()
    return float(number) * _UNIT_SECONDS[unit]


def parse_bool(value: Any) -> bool:
    """Interpret config and environment flags such as "true", "1" or "no"."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


__all__ = ['parse_duration', 'parse_bool']
