from __future__ import annotations

import pytest

from toolgate.config import DispatchConfig
from toolgate.exceptions import DuplicateToolError
from toolgate.tools.registry import OperatingMode, ToolRegistry
from toolgate.tools.types import SafetyTier, ToolResult, ToolSpec


def _spec(name: str, safety: SafetyTier = SafetyTier.READ_ONLY, toolset: str = "k8s") -> ToolSpec:
    return ToolSpec(name=name, toolset_id=toolset, safety=safety, handler=lambda ctx, req: ToolResult(data={}))


def test_add_get_list_names_sorted() -> None:
    reg = ToolRegistry()
    for name in ("k8s.list", "aws.ec2.list_instances", "core.list_tools"):
        assert reg.add(_spec(name)) is True
    assert reg.get("k8s.list").name == "k8s.list"
    assert reg.get("missing") is None
    assert reg.names() == ["aws.ec2.list_instances", "core.list_tools", "k8s.list"]
    assert [s.name for s in reg.list()] == reg.names()
    assert len(reg) == 3


def test_empty_name_rejected() -> None:
    with pytest.raises(ValueError, match="tool name required"):
        ToolRegistry().add(_spec(""))


def test_duplicate_name_rejected_without_overwrite() -> None:
    reg = ToolRegistry()
    first = _spec("k8s.get")
    reg.add(first)
    with pytest.raises(DuplicateToolError):
        reg.add(_spec("k8s.get", SafetyTier.WRITE))
    assert reg.get("k8s.get") is first


def test_read_only_mode_keeps_only_read_only_tools() -> None:
    reg = ToolRegistry(OperatingMode(read_only=True))
    assert reg.add(_spec("k8s.get")) is True
    for name, tier in (
        ("k8s.apply", SafetyTier.WRITE),
        ("k8s.patch", SafetyTier.RISKY_WRITE),
        ("k8s.delete", SafetyTier.DESTRUCTIVE),
    ):
        assert reg.add(_spec(name, tier)) is False
        assert reg.get(name) is None
    assert reg.names() == ["k8s.get"]


def test_disable_destructive_honours_allow_list() -> None:
    reg = ToolRegistry(OperatingMode(disable_destructive=True, allow_destructive_tools=frozenset({"x.delete"})))
    assert reg.add(_spec("x.delete", SafetyTier.DESTRUCTIVE)) is True
    assert reg.add(_spec("y.delete", SafetyTier.DESTRUCTIVE)) is False
    assert reg.add(_spec("y.patch", SafetyTier.RISKY_WRITE)) is False
    assert reg.add(_spec("y.apply", SafetyTier.WRITE)) is True
    assert reg.get("x.delete") is not None
    assert reg.get("y.delete") is None
    assert reg.get("y.patch") is None


def test_filtered_name_stays_filtered_on_retry() -> None:
    reg = ToolRegistry(OperatingMode(read_only=True))
    assert reg.add(_spec("k8s.delete", SafetyTier.DESTRUCTIVE)) is False
    assert reg.add(_spec("k8s.delete", SafetyTier.DESTRUCTIVE)) is False


def test_operating_mode_from_config() -> None:
    cfg = DispatchConfig(disable_destructive=True, allow_destructive_tools=frozenset({"k8s.delete"}))
    mode = OperatingMode.from_config(cfg)
    assert mode.disable_destructive is True
    assert mode.read_only is False
    assert mode.allow_destructive_tools == frozenset({"k8s.delete"})


def test_infos_expose_input_schema() -> None:
    reg = ToolRegistry()
    schema = {"type": "object", "properties": {"namespace": {"type": "string"}}}
    reg.add(ToolSpec(name="k8s.get", handler=lambda c, r: ToolResult(), description="Get", input_schema=schema))
    reg.add(_spec("k8s.list"))
    infos = reg.infos()
    assert infos[0].model_dump(by_alias=True) == {"name": "k8s.get", "description": "Get", "inputSchema": schema}
    assert infos[1].input_schema == {"type": "object"}
