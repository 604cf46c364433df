from __future__ import annotations

from typing import Callable, Optional, Tuple

from toolgate.config import TimeoutConfig
from toolgate.context import CallContext


def effective_timeout(timeouts: Optional[TimeoutConfig], tool_name: str) -> float:
    """
    Seconds a tool may run; 0 means no deadline.

    default -> positive per-tool override -> clamp to a positive max. A negative result
    collapses to 0. A default of exactly 0 with a positive max yields the max: "no default,
    but still bounded".
    """
    if timeouts is None:
        return 0
    timeout = timeouts.default_seconds
    override = (timeouts.per_tool or {}).get(tool_name)
    if override is not None and override > 0:
        timeout = override
    cap = timeouts.max_seconds
    if cap > 0 and timeout > cap:
        timeout = cap
    if timeout < 0:
        return 0
    if timeout == 0 and cap > 0:
        return cap
    return timeout


def _noop() -> None:
    return None


def with_tool_timeout(
    ctx: CallContext, timeouts: Optional[TimeoutConfig], tool_name: str
) -> Tuple[CallContext, Callable[[], None]]:
    """Bounded child of `ctx`, or `ctx` itself (and a no-op release) when there is no timeout."""
    seconds = effective_timeout(timeouts, tool_name)
    if seconds <= 0:
        return ctx, _noop
    return ctx.with_timeout(seconds)
