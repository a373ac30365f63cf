from dataclasses import dataclass, field, fields, MISSING
from typing import Dict, Any, TypeVar, Type, Union, get_args, get_origin, get_type_hints

from ..core.errors import DecodeError

T = TypeVar('T', bound='BaseModel')


def _expected_types(annotation) -> tuple:
    """Return the runtime types accepted for a field annotation."""
    if get_origin(annotation) is Union:
        return tuple(a for a in get_args(annotation) if a is not type(None))
    return (annotation,)


def _allows_none(annotation) -> bool:
    return get_origin(annotation) is Union and type(None) in get_args(annotation)


@dataclass
class BaseModel:
    """
    Base model class that builds a dataclass from one API response object.

    Keys are matched to field names as-is (the FlashArray API uses
    snake_case). Unknown keys are ignored but kept in _raw_data.
    A field with a default tolerates a missing key or a null value.
    Every declared field is type checked, so a payload that does not
    match the model raises DecodeError instead of leaking bad values.
    """
    _raw_data: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False, kw_only=True)

    @classmethod
    def from_api_response(cls: Type[T], data: Dict[str, Any]) -> T:
        """Create an instance from API response data"""
        if not isinstance(data, dict):
            raise DecodeError(f"{cls.__name__}: expected a JSON object, got {type(data).__name__}")

        hints = get_type_hints(cls)
        instance_args = {}

        for f in fields(cls):
            if f.name == '_raw_data':
                continue

            annotation = hints[f.name]
            if f.name not in data:
                if f.default is MISSING and f.default_factory is MISSING:
                    raise DecodeError(f"{cls.__name__}: missing required key '{f.name}'")
                continue

            value = data[f.name]
            if value is None:
                if _allows_none(annotation):
                    instance_args[f.name] = None
                elif f.default is MISSING and f.default_factory is MISSING:
                    raise DecodeError(f"{cls.__name__}: key '{f.name}' must not be null")
                # Otherwise null reads as the field's default, same as a missing key
                continue

            expected = _expected_types(annotation)
            # bool is a subclass of int, but true/false is never a valid counter or size
            if isinstance(value, bool) and bool not in expected:
                raise DecodeError(f"{cls.__name__}: key '{f.name}' has type bool, expected {expected[0].__name__}")
            if not isinstance(value, expected):
                raise DecodeError(
                    f"{cls.__name__}: key '{f.name}' has type {type(value).__name__}, expected {expected[0].__name__}")
            instance_args[f.name] = value

        instance_args['_raw_data'] = dict(data)
        return cls(**instance_args)

    def get_raw(self, key: str, default: Any = None) -> Any:
        """Access any field from the raw data"""
        return self._raw_data.get(key, default)
