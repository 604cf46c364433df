from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from toolgate.exceptions import DuplicateToolsetError
from toolgate.tools.registry import ToolRegistry
from toolgate.tools.types import ToolContext


@runtime_checkable
class Toolset(Protocol):
    """A group of tools contributed by one provider."""

    @property
    def id(self) -> str: ...

    @property
    def version(self) -> str: ...

    def init(self, context: ToolContext) -> None: ...

    def register(self, registry: ToolRegistry) -> None: ...


ToolsetFactory = Callable[[], Toolset]


class ToolsetRegistry:
    """
    Toolset id -> factory map.

    Built once at process start and passed to whatever needs to enumerate or construct
    toolsets; there is no process-wide instance.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, ToolsetFactory] = {}
        self._lock = threading.Lock()

    def register(self, toolset_id: str, factory: Optional[ToolsetFactory]) -> None:
        toolset_id = (toolset_id or "").strip()
        if not toolset_id:
            raise ValueError("toolset id required")
        if factory is None:
            raise ValueError(f"toolset factory required: {toolset_id}")
        with self._lock:
            if toolset_id in self._factories:
                raise DuplicateToolsetError(f"toolset already registered: {toolset_id}")
            self._factories[toolset_id] = factory

    def get(self, toolset_id: str) -> Optional[ToolsetFactory]:
        with self._lock:
            return self._factories.get(toolset_id)

    def list(self) -> List[str]:
        with self._lock:
            return sorted(self._factories)


class ServiceRegistry:
    """Named shared services (API clients, mappers) that toolsets look up during init."""

    def __init__(self) -> None:
        self._services: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def register(self, name: str, service: Any) -> None:
        name = (name or "").strip()
        if not name:
            raise ValueError("service name required")
        if service is None:
            raise ValueError(f"service required: {name}")
        with self._lock:
            if name in self._services:
                raise ValueError(f"service already registered: {name}")
            self._services[name] = service

    def get(self, name: str) -> Optional[Any]:
        with self._lock:
            return self._services.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._services)
