"""
Failure classification for the transport boundary.

`classify_error` maps any exception onto a closed code taxonomy plus a retryable flag.
Clients retry automatically exactly when `retryable` is true, so the code strings and
flags below are a compatibility contract.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

from botocore.exceptions import ClientError
from kubernetes.client.rest import ApiException
from pydantic import BaseModel
from urllib3.exceptions import TimeoutError as Urllib3Timeout

from toolgate.context import Canceled
from toolgate.exceptions import ToolgateError


class ErrorCode:
    TIMEOUT = "timeout"
    CANCELED = "canceled"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    RATE_LIMITED = "rate_limited"
    INVALID_REQUEST = "invalid_request"
    UPSTREAM_ERROR = "upstream_error"
    INTERNAL = "internal"


class ErrorDetail(BaseModel):
    code: str
    message: str = ""
    hint: str = ""
    retryable: bool = False


_FIX_REQUEST = "Fix request parameters or schema."

# (code, hint, retryable) per API status.
_STATUS_RULES: Dict[int, tuple] = {
    401: (ErrorCode.UNAUTHORIZED, "Check credentials or auth configuration.", False),
    403: (ErrorCode.FORBIDDEN, "Check permissions or namespace access.", False),
    404: (ErrorCode.NOT_FOUND, "Verify the resource name/namespace.", False),
    409: (ErrorCode.CONFLICT, "Resource update conflict; retry with latest state.", True),
    429: (ErrorCode.UNAVAILABLE, "API server overloaded; retry with backoff.", True),
    503: (ErrorCode.UNAVAILABLE, "API server overloaded; retry with backoff.", True),
    400: (ErrorCode.INVALID_REQUEST, _FIX_REQUEST, False),
}

_AWS_FORBIDDEN = {"AccessDenied", "AccessDeniedException", "UnauthorizedOperation"}
_AWS_THROTTLED = {"Throttling", "ThrottlingException", "RequestLimitExceeded", "TooManyRequestsException"}
_AWS_NOT_FOUND = {"ResourceNotFoundException", "NotFoundException", "NoSuchEntity"}
_AWS_INVALID = {"ValidationException", "InvalidParameterException", "InvalidParameterValue"}
_AWS_CONFLICT = {"ConflictException"}


def _chain(err: BaseException) -> Iterator[BaseException]:
    """`err` followed by its explicit causes (`raise ... from ...`)."""
    seen = set()
    cur: Optional[BaseException] = err
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        yield cur
        # An implicit __context__ is not wrapping; only `from` links count.
        cur = cur.__cause__


def _status(err: BaseException) -> Optional[int]:
    if isinstance(err, ApiException):
        try:
            return int(err.status)
        except (TypeError, ValueError):
            return None
    if isinstance(err, ToolgateError):
        return err.status
    return None


def _aws_code(err: BaseException) -> str:
    if not isinstance(err, ClientError):
        return ""
    error = (getattr(err, "response", None) or {}).get("Error") or {}
    return str(error.get("Code") or "")


def _classify_aws(code: str, msg: str) -> ErrorDetail:
    if code in _AWS_FORBIDDEN:
        return ErrorDetail(code=ErrorCode.FORBIDDEN, message=msg, hint="Check AWS credentials and IAM policies.")
    if code in _AWS_THROTTLED:
        return ErrorDetail(code=ErrorCode.RATE_LIMITED, message=msg, hint="Retry with backoff.", retryable=True)
    if code in _AWS_NOT_FOUND:
        return ErrorDetail(code=ErrorCode.NOT_FOUND, message=msg, hint="Verify resource identifiers and region.")
    if code in _AWS_INVALID:
        return ErrorDetail(code=ErrorCode.INVALID_REQUEST, message=msg, hint=_FIX_REQUEST)
    if code in _AWS_CONFLICT:
        return ErrorDetail(code=ErrorCode.CONFLICT, message=msg, hint="Resource update conflict; retry.", retryable=True)
    return ErrorDetail(
        code=ErrorCode.UPSTREAM_ERROR, message=msg, hint="AWS API error; verify inputs and retry.", retryable=True
    )


def _looks_like_bad_input(msg: str) -> bool:
    lower = msg.lower()
    return "required" in lower or "invalid" in lower or "missing" in lower


def _internal(msg: str) -> ErrorDetail:
    return ErrorDetail(code=ErrorCode.INTERNAL, message=msg, hint="Check server logs for details.")


def classify_error(err: Optional[BaseException]) -> ErrorDetail:
    if err is None:
        return _internal("")
    msg = str(err)
    chain = list(_chain(err))

    if any(isinstance(e, (TimeoutError, Urllib3Timeout)) for e in chain):
        return ErrorDetail(
            code=ErrorCode.TIMEOUT,
            message=msg,
            hint="Increase the timeout or check cluster/network latency.",
            retryable=True,
        )
    if any(isinstance(e, Canceled) for e in chain):
        return ErrorDetail(
            code=ErrorCode.CANCELED, message=msg, hint="Request was canceled before completion.", retryable=True
        )

    for e in chain:
        rule = _STATUS_RULES.get(_status(e) or 0)
        if rule is not None:
            code, hint, retryable = rule
            return ErrorDetail(code=code, message=msg, hint=hint, retryable=retryable)

    for e in chain:
        aws_code = _aws_code(e)
        if aws_code:
            return _classify_aws(aws_code, msg)

    # Typed internal failures (e.g. a missing dependency) are not user-input errors.
    if isinstance(err, ToolgateError):
        return _internal(msg)
    if _looks_like_bad_input(msg):
        return ErrorDetail(code=ErrorCode.INVALID_REQUEST, message=msg, hint=_FIX_REQUEST)
    return _internal(msg)


def build_error_envelope(err: Optional[BaseException], details: Any = None) -> Dict[str, Any]:
    """`{"error": {...}, "details": ...}`; `details` is omitted when None."""
    out: Dict[str, Any] = {"error": classify_error(err).model_dump()}
    if details is not None:
        out["details"] = details
    return out
