"""
HTTP binding.

Routes:
- GET  /healthz
- GET  /tools                 -> registered tool catalog
- POST /tools/{name}          -> {"arguments": {...}, "_meta": {...}} in, CallToolResult out

Tool failures are reported in-band (HTTP 200, `isError: true`), the way the tool-calling
protocol reports them. Endpoints are plain `def` so each call runs on its own worker thread.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from toolgate import __version__
from toolgate.auth.credentials import extract_credential
from toolgate.runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)


class CallToolBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    arguments: Dict[str, Any] = Field(default_factory=dict)
    meta: Optional[Dict[str, Any]] = Field(default=None, alias="_meta")


def create_app(runtime: Runtime) -> FastAPI:
    app = FastAPI(title="toolgate", version=__version__)
    app.state.runtime = runtime

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True}

    @app.get("/tools")
    def list_tools() -> Dict[str, Any]:
        return {"tools": [info.model_dump(by_alias=True) for info in runtime.registry.infos()]}

    @app.post("/tools/{name}")
    def call_tool(name: str, body: CallToolBody, request: Request) -> JSONResponse:
        credential = extract_credential(body.meta, request.headers)
        result = runtime.dispatcher.call(credential, name, body.arguments)
        return JSONResponse(content=result.to_wire())

    return app


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    app = create_app(build_runtime())
    logger.info("Starting toolgate on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
