"""
Composition root: wires config, policy, discovery, registry, invoker and dispatcher.

Built once at process start; everything downstream receives its collaborators by
reference instead of reaching for module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from toolgate.audit.logger import AuditSink, open_audit_sink
from toolgate.authz.policy import AccessPolicy, load_access_policy
from toolgate.cache.ttl import ExpiringCache
from toolgate.config import DispatchConfig, load_dispatch_config
from toolgate.providers.k8s_discovery import DiscoveryClient, DiscoveryRESTMapper, KubernetesDiscovery
from toolgate.providers.k8s_resolver import DiscoveryRefresher, ResourceResolver
from toolgate.tools.dispatch import Dispatcher
from toolgate.tools.invoker import ToolInvoker
from toolgate.tools.registry import OperatingMode, ToolRegistry
from toolgate.tools.toolsets import ServiceRegistry, ToolsetRegistry
from toolgate.tools.types import ToolContext
from toolgate.toolsets.core import CORE_TOOLSET_ID, CoreToolset

logger = logging.getLogger(__name__)


def default_toolsets() -> ToolsetRegistry:
    toolsets = ToolsetRegistry()
    toolsets.register(CORE_TOOLSET_ID, CoreToolset)
    return toolsets


@dataclass
class Runtime:
    config: DispatchConfig
    registry: ToolRegistry
    toolsets: ToolsetRegistry
    context: ToolContext
    invoker: ToolInvoker
    dispatcher: Dispatcher
    enabled_toolsets: List[str] = field(default_factory=list)


def build_runtime(
    config: Optional[DispatchConfig] = None,
    *,
    policy: Optional[AccessPolicy] = None,
    discovery: Optional[DiscoveryClient] = None,
    toolsets: Optional[ToolsetRegistry] = None,
    audit: Optional[AuditSink] = None,
) -> Runtime:
    config = config or load_dispatch_config()
    policy = policy or load_access_policy()
    toolsets = toolsets or default_toolsets()

    # KubernetesDiscovery connects lazily, so building a runtime never needs a cluster.
    discovery = discovery if discovery is not None else KubernetesDiscovery(context=config.kube_context)
    mapper = DiscoveryRESTMapper(discovery)

    services = ServiceRegistry()
    services.register("k8s.discovery", discovery)
    services.register("k8s.mapper", mapper)

    registry = ToolRegistry(OperatingMode.from_config(config))
    context = ToolContext(
        config=config,
        policy=policy,
        audit=audit if audit is not None else open_audit_sink(config.audit_log_path),
        cache=ExpiringCache(),
        resolver=ResourceResolver(mapper, discovery),
        refresher=DiscoveryRefresher(discovery, mapper),
        services=services,
        registry=registry,
    )
    invoker = ToolInvoker(registry, context, config)
    context.invoker = invoker

    enabled: List[str] = []
    for toolset_id in config.toolsets:
        factory = toolsets.get(toolset_id)
        if factory is None:
            logger.warning("Unknown toolset %r (registered: %s)", toolset_id, ", ".join(toolsets.list()) or "none")
            continue
        toolset = factory()
        toolset.init(context)
        toolset.register(registry)
        enabled.append(toolset_id)

    logger.info(
        "Runtime ready: toolsets=%s tools=%d read_only=%s disable_destructive=%s",
        ",".join(enabled) or "-",
        len(registry),
        config.read_only,
        config.disable_destructive,
    )
    return Runtime(
        config=config,
        registry=registry,
        toolsets=toolsets,
        context=context,
        invoker=invoker,
        dispatcher=Dispatcher(invoker),
        enabled_toolsets=enabled,
    )
