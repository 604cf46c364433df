"""
Runtime configuration (env / ConfigMap friendly).

Recommended vars:
- TOOLGATE_READ_ONLY=1
- TOOLGATE_DISABLE_DESTRUCTIVE=1
- TOOLGATE_ALLOW_DESTRUCTIVE_TOOLS=k8s.delete,k8s.scale
- TOOLGATE_TOOLSETS=core
- TOOLGATE_TIMEOUT_DEFAULT_SECONDS=30
- TOOLGATE_TIMEOUT_MAX_SECONDS=120
- TOOLGATE_TOOL_TIMEOUTS=k8s.logs=60,aws.ec2.list_instances=20
- TOOLGATE_DISCOVERY_TTL_SECONDS=300
- TOOLGATE_LIST_CACHE_TTL_SECONDS=30
- TOOLGATE_AUDIT_LOG=/var/log/toolgate/audit.jsonl   (or "-" for stderr)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _split_csv(raw: str) -> List[str]:
    return [x.strip() for x in (raw or "").split(",") if x.strip()]


def _parse_tool_timeouts(raw: str) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for item in _split_csv(raw):
        name, sep, seconds = item.partition("=")
        name = name.strip()
        if not sep or not name:
            logger.warning("Ignoring malformed per-tool timeout entry: %r", item)
            continue
        try:
            out[name] = int(seconds.strip())
        except ValueError:
            logger.warning("Ignoring non-integer per-tool timeout for %s: %r", name, seconds)
    return out


@dataclass(frozen=True)
class TimeoutConfig:
    # Values are seconds. default may be 0 (no default) or negative (no timeout).
    default_seconds: int = 30
    max_seconds: int = 0
    per_tool: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CacheConfig:
    discovery_ttl_seconds: int = 300
    list_ttl_seconds: int = 0


@dataclass(frozen=True)
class DispatchConfig:
    # Safety
    read_only: bool = False
    disable_destructive: bool = False
    allow_destructive_tools: FrozenSet[str] = frozenset()

    toolsets: List[str] = field(default_factory=lambda: ["core"])
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    # None routes audit events through Python logging; "-" is stderr.
    audit_log_path: Optional[str] = None
    kube_context: Optional[str] = None
    log_level: str = "INFO"


def load_dispatch_config() -> DispatchConfig:
    toolsets = _split_csv(os.getenv("TOOLGATE_TOOLSETS", "")) or ["core"]
    return DispatchConfig(
        read_only=_env_bool("TOOLGATE_READ_ONLY", False),
        disable_destructive=_env_bool("TOOLGATE_DISABLE_DESTRUCTIVE", False),
        allow_destructive_tools=frozenset(_split_csv(os.getenv("TOOLGATE_ALLOW_DESTRUCTIVE_TOOLS", ""))),
        toolsets=toolsets,
        timeouts=TimeoutConfig(
            default_seconds=_env_int("TOOLGATE_TIMEOUT_DEFAULT_SECONDS", 30),
            max_seconds=_env_int("TOOLGATE_TIMEOUT_MAX_SECONDS", 0),
            per_tool=_parse_tool_timeouts(os.getenv("TOOLGATE_TOOL_TIMEOUTS", "")),
        ),
        cache=CacheConfig(
            discovery_ttl_seconds=_env_int("TOOLGATE_DISCOVERY_TTL_SECONDS", 300),
            list_ttl_seconds=_env_int("TOOLGATE_LIST_CACHE_TTL_SECONDS", 0),
        ),
        audit_log_path=(os.getenv("TOOLGATE_AUDIT_LOG") or "").strip() or None,
        kube_context=(os.getenv("TOOLGATE_KUBECONTEXT") or "").strip() or None,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
    )
