from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from toolgate.auth.models import User
from toolgate.context import CallContext
from toolgate.exceptions import DependencyMissing
from toolgate.tools.values import Arguments

if TYPE_CHECKING:
    from toolgate.audit.logger import AuditSink
    from toolgate.authz.policy import AccessPolicy
    from toolgate.cache.ttl import ExpiringCache
    from toolgate.config import DispatchConfig
    from toolgate.providers.k8s_resolver import DiscoveryRefresher, ResourceResolver
    from toolgate.tools.invoker import ToolInvoker
    from toolgate.tools.registry import ToolRegistry
    from toolgate.tools.toolsets import ServiceRegistry


class SafetyTier(str, Enum):
    READ_ONLY = "read_only"
    WRITE = "write"
    RISKY_WRITE = "risky_write"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class ToolMetadata:
    # What the handler touched; copied into the audit event and the response meta.
    namespaces: List[str] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ToolResult:
    data: Any = None
    metadata: ToolMetadata = field(default_factory=ToolMetadata)


@dataclass
class ToolContext:
    """Shared collaborators handed to every handler. Everything except config is optional."""

    config: Optional["DispatchConfig"] = None
    policy: Optional["AccessPolicy"] = None
    audit: Optional["AuditSink"] = None
    cache: Optional["ExpiringCache"] = None
    resolver: Optional["ResourceResolver"] = None
    refresher: Optional["DiscoveryRefresher"] = None
    services: Optional["ServiceRegistry"] = None
    invoker: Optional["ToolInvoker"] = None
    registry: Optional["ToolRegistry"] = None

    def call_tool(
        self, ctx: CallContext, user: User, tool_name: str, args: Optional[Mapping[str, Any]] = None
    ) -> ToolResult:
        """Invoke another tool through the full pipeline (authorization and audit included)."""
        if self.invoker is None:
            raise DependencyMissing("tool invoker not available")
        return self.invoker.call(ctx, user, tool_name, args)


@dataclass(frozen=True)
class ToolRequest:
    arguments: Arguments
    user: User
    context: ToolContext


ToolHandler = Callable[[CallContext, ToolRequest], ToolResult]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    handler: ToolHandler
    toolset_id: str = ""
    description: str = ""
    safety: SafetyTier = SafetyTier.READ_ONLY
    input_schema: Optional[Dict[str, Any]] = None


class ToolInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    input_schema: Dict[str, Any] = Field(default_factory=lambda: {"type": "object"}, alias="inputSchema")
