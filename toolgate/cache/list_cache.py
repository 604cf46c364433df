from __future__ import annotations

import dataclasses
from typing import Any, Mapping, Optional

from toolgate.cache.ttl import ExpiringCache
from toolgate.context import CallContext
from toolgate.tools.types import ToolRequest, ToolResult, ToolSpec

LIST_MARKER = ".list_"


def stable_value(value: Any) -> str:
    """Order-independent text form of a JSON-shaped value (map keys sorted recursively)."""
    if isinstance(value, Mapping):
        return "{" + ",".join(f"{k}={stable_value(value[k])}" for k in sorted(value, key=str)) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(stable_value(v) for v in value) + "]"
    if isinstance(value, str):
        return value.strip()
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def list_cache_key(tool_name: str, args: Optional[Mapping[str, Any]], user_id: str = "") -> str:
    return f"list:{tool_name}:{user_id}:{stable_value(dict(args or {}))}"


def wrap_list_cache(spec: ToolSpec, cache: Optional[ExpiringCache], ttl_seconds: float) -> ToolSpec:
    """
    Memoize successful results of `*.list_*` tools for `ttl_seconds`.

    Keys carry the caller id, so per-user namespace filtering done inside a handler
    never leaks between users. Specs that are not list tools come back unchanged.
    """
    if cache is None or ttl_seconds <= 0 or LIST_MARKER not in spec.name:
        return spec
    handler = spec.handler

    def cached_handler(ctx: CallContext, request: ToolRequest) -> ToolResult:
        key = list_cache_key(spec.name, request.arguments.as_dict(), request.user.id)
        cached, found = cache.get(key)
        if found:
            return cached
        result = handler(ctx, request)
        if not isinstance(result, ToolResult):
            result = ToolResult(data=result)
        if result.data is not None:
            cache.set(key, result, ttl_seconds)
        return result

    return dataclasses.replace(spec, handler=cached_handler)
