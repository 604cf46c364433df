"""Transport boundary: credential in, wire-shaped CallToolResult out."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from toolgate.audit.logger import log_audit
from toolgate.context import CallContext
from toolgate.exceptions import DependencyMissing, ToolgateError
from toolgate.tools.errors import build_error_envelope
from toolgate.tools.invoker import ToolInvoker
from toolgate.tools.types import ToolResult

logger = logging.getLogger(__name__)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class CallToolResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")
    structured_content: Any = Field(default=None, alias="structuredContent")
    meta: Optional[Dict[str, Any]] = Field(default=None, alias="_meta")

    def to_wire(self) -> Dict[str, Any]:
        # Only absent top-level fields are dropped; payload values pass through untouched.
        return {k: v for k, v in self.model_dump(by_alias=True).items() if v is not None}


def _text_of(data: Any) -> str:
    if data is None:
        return "{}"
    if isinstance(data, str):
        return data
    try:
        return json.dumps(data, sort_keys=True)
    except (TypeError, ValueError):
        return str(data)


def build_call_tool_result(result: Optional[ToolResult], err: Optional[BaseException] = None) -> CallToolResult:
    out = CallToolResult()
    meta = result.metadata if result is not None else None
    if meta is not None and (meta.namespaces or meta.resources):
        out.meta = {"namespaces": list(meta.namespaces), "resources": list(meta.resources)}
    if err is not None:
        details = getattr(err, "details", None)
        if details is None and result is not None:
            details = result.data
        out.is_error = True
        out.structured_content = build_error_envelope(err, details)
        out.content = [TextContent(text=str(err))]
        return out
    data = result.data if result is not None else None
    out.structured_content = data
    out.content = [TextContent(text=_text_of(data))]
    return out


class Dispatcher:
    """
    Authenticates the caller, refreshes discovery if stale, then hands off to the invoker.

    Errors never escape `call`; they come back as an error result with a classified envelope.
    """

    def __init__(self, invoker: ToolInvoker) -> None:
        if invoker.context.policy is None:
            raise DependencyMissing("access policy not configured")
        self._invoker = invoker

    @property
    def invoker(self) -> ToolInvoker:
        return self._invoker

    def call(
        self,
        credential: Optional[str],
        tool_name: str,
        arguments: Optional[Mapping[str, Any]] = None,
        ctx: Optional[CallContext] = None,
    ) -> CallToolResult:
        context = self._invoker.context
        try:
            user = context.policy.authenticate(credential)
        except ToolgateError as e:
            logger.warning("Authentication failed for tool %s: %s", tool_name, e)
            registry = self._invoker.registry
            spec = registry.get(tool_name) if registry is not None else None
            log_audit(
                context.audit,
                tool=spec.name if spec is not None else tool_name,
                toolset=spec.toolset_id if spec is not None else "",
                err=e,
            )
            return build_call_tool_result(None, e)

        if context.refresher is not None:
            config = self._invoker.config
            ttl = config.cache.discovery_ttl_seconds if config is not None else 0
            context.refresher.refresh_if_stale(ttl)

        try:
            result = self._invoker.call(ctx, user, tool_name, arguments)
        except Exception as e:
            if not isinstance(e, ToolgateError):
                logger.exception("Unexpected error in tool %s", tool_name)
            return build_call_tool_result(None, e)
        return build_call_tool_result(result)
