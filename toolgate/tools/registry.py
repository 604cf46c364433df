from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Optional

from toolgate.exceptions import DuplicateToolError
from toolgate.tools.types import SafetyTier, ToolInfo, ToolSpec

if TYPE_CHECKING:
    from toolgate.config import DispatchConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperatingMode:
    read_only: bool = False
    disable_destructive: bool = False
    allow_destructive_tools: FrozenSet[str] = frozenset()

    @classmethod
    def from_config(cls, cfg: "DispatchConfig") -> "OperatingMode":
        return cls(
            read_only=cfg.read_only,
            disable_destructive=cfg.disable_destructive,
            allow_destructive_tools=frozenset(cfg.allow_destructive_tools),
        )

    def allows(self, spec: ToolSpec) -> bool:
        if self.read_only:
            return spec.safety == SafetyTier.READ_ONLY
        if self.disable_destructive and spec.safety in (SafetyTier.DESTRUCTIVE, SafetyTier.RISKY_WRITE):
            return spec.name in self.allow_destructive_tools
        return True


class ToolRegistry:
    """
    Catalog of tool specs, filtered by safety tier at registration time.

    A spec the operating mode rejects is never stored, so lookups report it as missing
    rather than "present but unauthorized".
    """

    def __init__(self, mode: Optional[OperatingMode] = None) -> None:
        self._mode = mode or OperatingMode()
        self._tools: Dict[str, ToolSpec] = {}
        self._lock = threading.Lock()

    @property
    def mode(self) -> OperatingMode:
        return self._mode

    def add(self, spec: ToolSpec) -> bool:
        """Register `spec`. Returns False when the operating mode filtered it out."""
        if not spec.name:
            raise ValueError("tool name required")
        if not self._mode.allows(spec):
            logger.info("Tool %s (%s) not registered: filtered by operating mode", spec.name, spec.safety.value)
            return False
        with self._lock:
            if spec.name in self._tools:
                raise DuplicateToolError(spec.name)
            self._tools[spec.name] = spec
        return True

    def get(self, name: str) -> Optional[ToolSpec]:
        with self._lock:
            return self._tools.get(name)

    def list(self) -> List[ToolSpec]:
        with self._lock:
            specs = list(self._tools.values())
        return sorted(specs, key=lambda s: s.name)

    def infos(self) -> List[ToolInfo]:
        return [
            ToolInfo(name=s.name, description=s.description, input_schema=s.input_schema or {"type": "object"})
            for s in self.list()
        ]

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._tools)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)
