from __future__ import annotations

from typing import Any, List


class ToolgateError(Exception):
    """
    Base class for failures raised by the dispatch core.

    `status` mirrors HTTP/API-server status semantics so the error classifier can treat
    these the same way it treats Kubernetes API errors.
    """

    status: int = 500

    def __init__(self, message: str = "", *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class Unauthorized(ToolgateError):
    status = 401


class Forbidden(ToolgateError):
    status = 403


class ToolNotFound(ToolgateError):
    status = 404

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"tool not found: {tool_name}")
        self.tool_name = tool_name


class ResourceNotFound(ToolgateError):
    status = 404


class InvalidArguments(ToolgateError):
    status = 400


class AmbiguousResource(ToolgateError):
    """Raised when a resource hint matches more than one API resource."""

    status = 400

    def __init__(self, candidates: List[str]) -> None:
        self.candidates = sorted(candidates)
        super().__init__(
            "multiple matches found; specify apiVersion or group: " + ", ".join(self.candidates),
            details={"candidates": self.candidates},
        )


class DependencyMissing(ToolgateError):
    status = 500


class DuplicateToolError(ToolgateError, ValueError):
    status = 500

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"tool already registered: {tool_name}")
        self.tool_name = tool_name


class DuplicateToolsetError(ToolgateError, ValueError):
    status = 500
