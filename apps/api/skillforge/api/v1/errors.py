from __future__ import annotations

from fastapi import HTTPException

from skillforge.ai.errors import FlowError, ModelInvocationError


def flow_http_error(exc: FlowError) -> HTTPException:
    # Invocation details stay in the logs; domain failures carry a user-facing message.
    if isinstance(exc, ModelInvocationError):
        return HTTPException(status_code=502, detail="AI service unavailable")
    return HTTPException(status_code=502, detail=str(exc))
