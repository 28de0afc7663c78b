from __future__ import annotations

from typing import Dict, Mapping, Optional

from fastapi.responses import JSONResponse


# PUBLIC_INTERFACE
def error_response(
    status_code: int,
    message: str,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """
    Build the JSON error response used by every failing endpoint.

    Args:
        status_code: HTTP status to send.
        message: Human readable reason, rendered as ``{"error": message}``.
        headers: Extra headers (e.g. ``Allow`` for 405 responses).

    Returns:
        JSONResponse with the error envelope.
    """
    body: Dict[str, str] = {"error": message}
    return JSONResponse(status_code=status_code, content=body, headers=dict(headers or {}))
