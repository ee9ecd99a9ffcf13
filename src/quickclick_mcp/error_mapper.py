from __future__ import annotations

from typing import Mapping

from .exceptions import UpstreamError

_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    429: "RATE_LIMITED",
}


def _code_for_status(status_code: int) -> str:
    if status_code in _STATUS_CODES:
        return _STATUS_CODES[status_code]
    if status_code >= 500:
        return "SERVER_ERROR"
    return "HTTP_ERROR"


def map_error(
    method: str,
    endpoint: str,
    status_code: int,
    payload: Mapping[str, object] | None,
) -> UpstreamError:
    payload = payload or {}
    code = str(payload.get("code") or _code_for_status(status_code))
    message = str(payload.get("message") or payload.get("error") or "Request failed")
    return UpstreamError(
        code=code,
        message=message,
        details=payload.get("details"),
        method=method,
        endpoint=endpoint,
        status_code=status_code,
        raw_payload=dict(payload),
    )
