"""JSON-shaped tool arguments, validated against the tool's input schema before use."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from toolgate.exceptions import InvalidArguments

JsonValue = Union[None, bool, int, float, str, List["JsonValue"], Dict[str, "JsonValue"]]


class ValueKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    LIST = "list"
    MAP = "map"


def kind_of(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    # bool before number: bool is an int subclass.
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    if isinstance(value, Mapping):
        return ValueKind.MAP
    raise InvalidArguments(f"unsupported argument value type: {type(value).__name__}")


def _validation_path(path: Any) -> str:
    parts = [str(p) for p in path]
    return ".".join(parts) if parts else "(root)"


class Arguments:
    """
    Read-only view over a tool's argument map.

    Accessors return the default for missing or null keys and raise InvalidArguments when
    the value has the wrong kind, so handlers never do ad-hoc isinstance checks.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None, schema: Optional[Mapping[str, Any]] = None) -> None:
        if values is not None and not isinstance(values, Mapping):
            raise InvalidArguments("arguments must be an object")
        self._values: Dict[str, Any] = dict(values or {})
        for v in self._values.values():
            _check_json(v)
        if schema:
            self._validate(schema)

    def _validate(self, schema: Mapping[str, Any]) -> None:
        try:
            Draft7Validator.check_schema(schema)
            validator = Draft7Validator(schema)
        except SchemaError as e:
            raise InvalidArguments(f"tool input schema is invalid: {e.message}") from e
        errors = sorted(validator.iter_errors(self._values), key=lambda e: _validation_path(e.path))
        if errors:
            first = errors[0]
            raise InvalidArguments(
                f"invalid arguments at {_validation_path(first.path)}: {first.message}",
                details={"violations": [f"{_validation_path(e.path)}: {e.message}" for e in errors]},
            )

    def __contains__(self, key: object) -> bool:
        return key in self._values and self._values[key] is not None

    def __len__(self) -> int:
        return len(self._values)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def raw(self, key: str, default: JsonValue = None) -> JsonValue:
        value = self._values.get(key)
        return default if value is None else value

    def _get(self, key: str, kinds: tuple, expected: str) -> Any:
        value = self._values.get(key)
        if value is None:
            return None
        if kind_of(value) not in kinds:
            raise InvalidArguments(f"{key} must be {expected}")
        return value

    def string(self, key: str, default: str = "") -> str:
        value = self._get(key, (ValueKind.STRING,), "a string")
        return default if value is None else value.strip()

    def boolean(self, key: str, default: bool = False) -> bool:
        value = self._get(key, (ValueKind.BOOL,), "a boolean")
        return default if value is None else value

    def number(self, key: str, default: float = 0.0) -> float:
        value = self._get(key, (ValueKind.NUMBER,), "a number")
        return default if value is None else float(value)

    def integer(self, key: str, default: int = 0) -> int:
        value = self._get(key, (ValueKind.NUMBER,), "an integer")
        if value is None:
            return default
        if isinstance(value, float) and not value.is_integer():
            raise InvalidArguments(f"{key} must be an integer")
        return int(value)

    def string_list(self, key: str) -> List[str]:
        value = self._get(key, (ValueKind.LIST, ValueKind.STRING), "a list of strings")
        if value is None:
            return []
        # A bare string is accepted as a one-element list.
        if isinstance(value, str):
            return [value.strip()] if value.strip() else []
        out: List[str] = []
        for item in value:
            if not isinstance(item, str):
                raise InvalidArguments(f"{key} must be a list of strings")
            if item.strip():
                out.append(item.strip())
        return out

    def mapping(self, key: str) -> Dict[str, Any]:
        value = self._get(key, (ValueKind.MAP,), "an object")
        return dict(value) if value is not None else {}


def _check_json(value: Any) -> None:
    kind = kind_of(value)
    if kind == ValueKind.LIST:
        for item in value:
            _check_json(item)
    elif kind == ValueKind.MAP:
        for k, v in value.items():
            if not isinstance(k, str):
                raise InvalidArguments("argument object keys must be strings")
            _check_json(v)
