from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet


class Role(str, Enum):
    CLUSTER = "cluster"
    NAMESPACE = "namespace"


@dataclass(frozen=True)
class User:
    """Authenticated caller. Built per request by the access policy; never persisted."""

    id: str
    role: Role = Role.NAMESPACE
    allowed_namespaces: FrozenSet[str] = frozenset()
    # Empty means "no restriction" (see AccessPolicy.authorize_tool).
    allowed_toolsets: FrozenSet[str] = frozenset()
    allowed_tools: FrozenSet[str] = frozenset()
