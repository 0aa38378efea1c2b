# backend/app.py
# uvicorn backend.app:app

import json
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from .errors import ClientInputError
from .model import Envelope, ErrorEnvelope, GenerationRequest
from .provider_base import ImageProvider
from .providers import get_provider
from .responses import (
    CORS_HEADERS,
    guard,
    method_not_allowed_response,
    preflight_response,
)
from .utils import short_prompt

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

REQUEST_FIELDS = ("prompt", "model", "models")


def parse_generation_request(body: Any) -> GenerationRequest:
    """
    Validate a decoded POST body. Raises ClientInputError, never reaches a backend.
    """
    if not isinstance(body, dict):
        raise ClientInputError("Request body must be a JSON object")

    prompt = body.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise ClientInputError("Prompt is required")

    fields = {k: body[k] for k in REQUEST_FIELDS if body.get(k) is not None}
    try:
        return GenerationRequest.model_validate(fields)
    except ValidationError as e:
        raise ClientInputError("Invalid request body", details=str(e))


async def submit_request(provider: ImageProvider, request: Request) -> Envelope:
    raw = await request.body()
    try:
        body = json.loads(raw)
    except ValueError as e:
        return ErrorEnvelope(error="Invalid JSON in request body", details=str(e))

    try:
        req = parse_generation_request(body)
    except ClientInputError as e:
        return e.to_envelope()

    logger.info("[App] submit provider=%s model=%s prompt=%s", provider.name, req.model, short_prompt(req.prompt))
    return await provider.submit(req)


def create_app(provider: Optional[ImageProvider] = None) -> FastAPI:
    provider = provider or get_provider()
    allowed_methods = "POST, GET, OPTIONS" if provider.supports_poll else "POST, OPTIONS"

    app = FastAPI(title="Image Proxy")
    app.state.provider = provider

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return method_not_allowed_response()
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=CORS_HEADERS)

    @app.options("/{path:path}")
    async def preflight(path: str):
        return preflight_response(allowed_methods)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={"status": "ok", "provider": provider.name, "supportsPoll": provider.supports_poll},
            headers=CORS_HEADERS,
        )

    @app.post("/")
    async def submit(request: Request):
        return await guard(lambda: submit_request(provider, request))

    @app.get("/")
    async def poll(requestId: Optional[str] = None):
        if not requestId:
            return method_not_allowed_response()
        logger.info("[App] poll provider=%s requestId=%s", provider.name, requestId)
        return await guard(lambda: provider.poll(requestId))

    return app


app = create_app()
