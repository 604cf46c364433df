from __future__ import annotations

from toolgate.auth.models import Role, User
from toolgate.cache.list_cache import list_cache_key, stable_value, wrap_list_cache
from toolgate.cache.ttl import ExpiringCache
from toolgate.context import CallContext
from toolgate.tools.types import ToolContext, ToolMetadata, ToolRequest, ToolResult, ToolSpec
from toolgate.tools.values import Arguments

ALICE = User(id="alice", role=Role.CLUSTER)
BOB = User(id="bob", role=Role.CLUSTER)


def _counting_spec(name: str, data=("i-1",)):
    calls = []

    def handler(ctx, req):
        calls.append(req.arguments.as_dict())
        return ToolResult(data=list(data) if data is not None else None)

    return ToolSpec(name=name, toolset_id="aws", handler=handler), calls


def _req(user: User, args) -> ToolRequest:
    return ToolRequest(arguments=Arguments(args), user=user, context=ToolContext())


def test_stable_value_is_order_independent() -> None:
    a = {"region": "eu-west-1", "filters": {"b": [1, 2], "a": " x "}}
    b = {"filters": {"a": "x", "b": [1, 2]}, "region": "eu-west-1"}
    assert stable_value(a) == stable_value(b) == "{filters={a=x,b=[1,2]},region=eu-west-1}"
    assert stable_value(None) == "null"
    assert stable_value(True) == "true"


def test_key_includes_tool_and_user() -> None:
    assert list_cache_key("aws.ec2.list_instances", {"r": 1}, "alice") == "list:aws.ec2.list_instances:alice:{r=1}"
    assert list_cache_key("t", None) == "list:t::{}"


def test_list_results_are_memoized_per_args_and_user(clock) -> None:
    cache = ExpiringCache(clock=clock)
    spec, calls = _counting_spec("aws.ec2.list_instances")
    wrapped = wrap_list_cache(spec, cache, 30)
    ctx = CallContext.background()

    first = wrapped.handler(ctx, _req(ALICE, {"region": "eu-west-1"}))
    second = wrapped.handler(ctx, _req(ALICE, {"region": "eu-west-1"}))
    assert first.data == second.data == ["i-1"]
    assert len(calls) == 1

    wrapped.handler(ctx, _req(ALICE, {"region": "us-east-1"}))
    wrapped.handler(ctx, _req(BOB, {"region": "eu-west-1"}))
    assert len(calls) == 3

    clock.advance(30)
    wrapped.handler(ctx, _req(ALICE, {"region": "eu-west-1"}))
    assert len(calls) == 4


def test_none_results_are_not_cached() -> None:
    spec, calls = _counting_spec("aws.ec2.list_instances", data=None)
    wrapped = wrap_list_cache(spec, ExpiringCache(), 30)
    wrapped.handler(CallContext.background(), _req(ALICE, {}))
    wrapped.handler(CallContext.background(), _req(ALICE, {}))
    assert len(calls) == 2


def test_non_list_tools_and_disabled_cache_are_untouched() -> None:
    spec, _ = _counting_spec("aws.ec2.describe_instance")
    assert wrap_list_cache(spec, ExpiringCache(), 30) is spec
    spec, _ = _counting_spec("aws.ec2.list_instances")
    assert wrap_list_cache(spec, None, 30) is spec
    assert wrap_list_cache(spec, ExpiringCache(), 0) is spec


def test_cache_hit_keeps_touched_objects() -> None:
    calls = []

    def handler(ctx, req):
        calls.append(req)
        return ToolResult(data=["web"], metadata=ToolMetadata(namespaces=["team-a"], resources=["v1/pods"]))

    spec = ToolSpec(name="k8s.list_pods", toolset_id="k8s", handler=handler)
    wrapped = wrap_list_cache(spec, ExpiringCache(), 30)
    first = wrapped.handler(CallContext.background(), _req(ALICE, {"namespace": "team-a"}))
    second = wrapped.handler(CallContext.background(), _req(ALICE, {"namespace": "team-a"}))

    assert len(calls) == 1
    assert second.data == first.data == ["web"]
    assert second.metadata.namespaces == ["team-a"]
    assert second.metadata.resources == ["v1/pods"]
