from __future__ import annotations

import pytest

from toolgate.exceptions import InvalidArguments
from toolgate.tools.values import Arguments, ValueKind, kind_of

SCHEMA = {
    "type": "object",
    "properties": {
        "namespace": {"type": "string"},
        "replicas": {"type": "integer", "minimum": 0},
        "labels": {"type": "object", "additionalProperties": {"type": "string"}},
    },
    "required": ["namespace"],
}


def test_kind_of() -> None:
    assert kind_of(None) == ValueKind.NULL
    assert kind_of(True) == ValueKind.BOOL
    assert kind_of(3) == ValueKind.NUMBER
    assert kind_of(2.5) == ValueKind.NUMBER
    assert kind_of("x") == ValueKind.STRING
    assert kind_of([1]) == ValueKind.LIST
    assert kind_of({"a": 1}) == ValueKind.MAP
    with pytest.raises(InvalidArguments):
        kind_of(object())


def test_typed_accessors() -> None:
    args = Arguments(
        {"namespace": " team-a ", "replicas": 3, "force": True, "ratio": 0.5, "names": ["a", " b ", ""], "labels": {"app": "web"}}
    )
    assert args.string("namespace") == "team-a"
    assert args.integer("replicas") == 3
    assert args.boolean("force") is True
    assert args.number("ratio") == 0.5
    assert args.string_list("names") == ["a", "b"]
    assert args.mapping("labels") == {"app": "web"}
    assert "namespace" in args
    assert len(args) == 6


def test_missing_and_null_keys_return_defaults() -> None:
    args = Arguments({"namespace": None})
    assert "namespace" not in args
    assert args.string("namespace", "default") == "default"
    assert args.integer("replicas", 1) == 1
    assert args.boolean("force") is False
    assert args.string_list("names") == []
    assert args.mapping("labels") == {}
    assert args.raw("namespace", "x") == "x"


def test_kind_mismatch_raises() -> None:
    args = Arguments({"replicas": "3", "force": 1, "half": 1.5, "names": [1]})
    with pytest.raises(InvalidArguments, match="replicas must be an integer"):
        args.integer("replicas")
    with pytest.raises(InvalidArguments):
        args.boolean("force")
    with pytest.raises(InvalidArguments):
        args.integer("half")
    with pytest.raises(InvalidArguments):
        args.string_list("names")


def test_bare_string_is_a_one_element_list() -> None:
    assert Arguments({"names": "web"}).string_list("names") == ["web"]


def test_schema_validation_passes() -> None:
    args = Arguments({"namespace": "team-a", "replicas": 2}, SCHEMA)
    assert args.integer("replicas") == 2


def test_schema_violations_name_the_path() -> None:
    with pytest.raises(InvalidArguments) as exc:
        Arguments({"namespace": "team-a", "replicas": -1, "labels": {"app": 1}}, SCHEMA)
    assert str(exc.value).startswith("invalid arguments at labels.app:")
    assert len(exc.value.details["violations"]) == 2

    with pytest.raises(InvalidArguments, match=r"\(root\)"):
        Arguments({}, SCHEMA)


def test_invalid_schema_is_reported() -> None:
    with pytest.raises(InvalidArguments, match="tool input schema is invalid"):
        Arguments({}, {"type": "not-a-type"})


def test_non_json_values_rejected() -> None:
    with pytest.raises(InvalidArguments):
        Arguments({"when": object()})
    with pytest.raises(InvalidArguments):
        Arguments({"m": {1: "x"}})
    with pytest.raises(InvalidArguments, match="arguments must be an object"):
        Arguments(["not", "a", "map"])
