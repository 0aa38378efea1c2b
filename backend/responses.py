# backend/responses.py

import logging
from typing import Awaitable, Callable, Dict

from fastapi import Response
from fastapi.responses import JSONResponse

from .model import Envelope, ErrorEnvelope

logger = logging.getLogger(__name__)

CORS_HEADERS: Dict[str, str] = {"Access-Control-Allow-Origin": "*"}


def envelope_response(envelope: Envelope) -> JSONResponse:
    """
    Every semantic outcome (success, progress, failure) goes out as 200 + JSON,
    so browser callers can always read the body.
    """
    return JSONResponse(
        status_code=200,
        content=envelope.model_dump(exclude_none=True),
        headers=CORS_HEADERS,
    )


def preflight_response(methods: str) -> Response:
    return Response(
        status_code=204,
        headers={
            **CORS_HEADERS,
            "Access-Control-Allow-Methods": methods,
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Max-Age": "86400",
        },
    )


def method_not_allowed_response() -> JSONResponse:
    return JSONResponse(status_code=405, content={"error": "Method not allowed"}, headers=CORS_HEADERS)


async def guard(operation: Callable[[], Awaitable[Envelope]]) -> JSONResponse:
    """
    Outermost boundary: whatever escapes `operation` becomes a generic error envelope.
    """
    try:
        envelope = await operation()
    except Exception as e:
        logger.exception("[Guard] Unhandled error")
        envelope = ErrorEnvelope(
            error="Worker error: " + (str(e) or "Unknown error"),
            type=type(e).__name__,
        )
    return envelope_response(envelope)
