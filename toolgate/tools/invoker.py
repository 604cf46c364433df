from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional

from toolgate.audit.logger import log_audit
from toolgate.auth.models import User
from toolgate.config import DispatchConfig
from toolgate.context import CallContext
from toolgate.exceptions import DependencyMissing, ToolNotFound
from toolgate.tools.registry import ToolRegistry
from toolgate.tools.timeouts import with_tool_timeout
from toolgate.tools.types import ToolContext, ToolRequest, ToolResult, ToolSpec
from toolgate.tools.values import Arguments

logger = logging.getLogger(__name__)


class ToolInvoker:
    """
    Runs one tool call: lookup -> authorize -> validate -> bounded execute -> audit.

    Every call emits exactly one audit event, whatever the outcome. Handler results and
    exceptions are passed back unchanged; shaping them for the wire happens at the
    transport boundary.
    """

    def __init__(
        self,
        registry: Optional[ToolRegistry],
        context: Optional[ToolContext] = None,
        config: Optional[DispatchConfig] = None,
    ) -> None:
        self._registry = registry
        self._context = context or ToolContext()
        self._config = config if config is not None else self._context.config

    @property
    def context(self) -> ToolContext:
        return self._context

    @property
    def registry(self) -> Optional[ToolRegistry]:
        return self._registry

    @property
    def config(self) -> Optional[DispatchConfig]:
        return self._config

    def call(
        self,
        ctx: Optional[CallContext],
        user: User,
        tool_name: str,
        args: Optional[Mapping[str, Any]] = None,
    ) -> ToolResult:
        if self._registry is None:
            raise DependencyMissing("tool registry not available")
        ctx = ctx or CallContext.background()
        user_id = user.id if user is not None else None

        spec = self._registry.get(tool_name)
        if spec is None:
            err = ToolNotFound(tool_name)
            log_audit(self._context.audit, tool=tool_name, user_id=user_id, err=err)
            raise err

        try:
            if self._context.policy is not None:
                self._context.policy.authorize_tool(user, spec.toolset_id, spec.name)
            arguments = Arguments(args, spec.input_schema)
        except Exception as e:
            logger.warning("Tool %s rejected for user=%s: %s", spec.name, user_id, e)
            self._audit(spec, user_id, None, e)
            raise

        return self._execute(ctx, spec, user, user_id, arguments)

    def _execute(
        self, ctx: CallContext, spec: ToolSpec, user: User, user_id: Optional[str], arguments: Arguments
    ) -> ToolResult:
        timeouts = self._config.timeouts if self._config is not None else None
        call_ctx, release = with_tool_timeout(ctx, timeouts, spec.name)
        started = time.monotonic()
        try:
            out = spec.handler(call_ctx, ToolRequest(arguments=arguments, user=user, context=self._context))
            result = out if isinstance(out, ToolResult) else ToolResult(data=out)
        except Exception as e:
            logger.warning(
                "Tool %s failed user=%s elapsed=%.3fs: %s", spec.name, user_id, time.monotonic() - started, e
            )
            self._audit(spec, user_id, None, e)
            raise
        finally:
            release()

        logger.info("Tool %s ok user=%s elapsed=%.3fs", spec.name, user_id, time.monotonic() - started)
        self._audit(spec, user_id, result, None)
        return result

    def _audit(
        self, spec: ToolSpec, user_id: Optional[str], result: Optional[ToolResult], err: Optional[BaseException]
    ) -> None:
        meta = result.metadata if result is not None else None
        log_audit(
            self._context.audit,
            tool=spec.name,
            toolset=spec.toolset_id,
            user_id=user_id,
            namespaces=meta.namespaces if meta is not None else (),
            resources=meta.resources if meta is not None else (),
            err=err,
        )
