from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from toolgate.cache.list_cache import wrap_list_cache
from toolgate.context import CallContext
from toolgate.exceptions import DependencyMissing, Forbidden
from toolgate.tools.registry import ToolRegistry
from toolgate.tools.types import SafetyTier, ToolContext, ToolMetadata, ToolRequest, ToolResult, ToolSpec

logger = logging.getLogger(__name__)

CORE_TOOLSET_ID = "core"

_LIST_TOOLS_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}, "additionalProperties": False}

_RESOLVE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "apiVersion": {"type": "string", "description": "group/version, e.g. apps/v1"},
        "kind": {"type": "string"},
        "resource": {"type": "string", "description": "plural, singular or short name; may be resource.group"},
        "group": {"type": "string"},
        "namespace": {"type": "string"},
    },
    "anyOf": [{"required": ["kind"]}, {"required": ["resource"]}],
    "additionalProperties": False,
}


def list_tools(ctx: CallContext, request: ToolRequest) -> ToolResult:
    registry = request.context.registry
    if registry is None:
        raise DependencyMissing("tool registry not available")
    policy = request.context.policy
    names: List[str] = []
    for spec in registry.list():
        if policy is not None:
            try:
                policy.authorize_tool(request.user, spec.toolset_id, spec.name)
            except Forbidden:
                continue
        names.append(spec.name)
    return ToolResult(data={"tools": names})


def resolve_resource(ctx: CallContext, request: ToolRequest) -> ToolResult:
    resolver = request.context.resolver
    if resolver is None:
        raise DependencyMissing("resource resolver not available")
    args = request.arguments
    namespace = args.string("namespace")

    descriptor, namespaced = resolver.resolve(
        api_version=args.string("apiVersion"),
        kind=args.string("kind"),
        resource=args.string("resource"),
        group=args.string("group"),
    )
    ctx.raise_if_done()
    if request.context.policy is not None:
        request.context.policy.check_namespace(request.user, namespace, namespaced)

    return ToolResult(
        data={
            "group": descriptor.group,
            "version": descriptor.version,
            "resource": descriptor.resource,
            "apiVersion": descriptor.group_version,
            "namespaced": namespaced,
        },
        metadata=ToolMetadata(
            namespaces=[namespace] if namespaced and namespace else [],
            resources=[str(descriptor)],
        ),
    )


class CoreToolset:
    """Tools every deployment gets: catalog listing and resource-type resolution."""

    id = CORE_TOOLSET_ID
    version = "0.4.0"

    def __init__(self) -> None:
        self._context: Optional[ToolContext] = None

    def init(self, context: ToolContext) -> None:
        self._context = context

    def register(self, registry: ToolRegistry) -> None:
        specs = [
            ToolSpec(
                name="core.list_tools",
                toolset_id=self.id,
                description="List the tools available to the caller.",
                safety=SafetyTier.READ_ONLY,
                input_schema=_LIST_TOOLS_SCHEMA,
                handler=list_tools,
            ),
            ToolSpec(
                name="core.resolve_resource",
                toolset_id=self.id,
                description="Resolve a kind or resource name (plural, singular, short name) to its API group/version/resource.",
                safety=SafetyTier.READ_ONLY,
                input_schema=_RESOLVE_SCHEMA,
                handler=resolve_resource,
            ),
        ]
        ctx = self._context
        for spec in specs:
            if ctx is not None and ctx.config is not None:
                spec = wrap_list_cache(spec, ctx.cache, ctx.config.cache.list_ttl_seconds)
            registry.add(spec)
