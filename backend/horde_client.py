# backend/horde_client.py

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from config.settings import settings
from .encoder import normalize_image
from .errors import BackendProtocolError, BackendTransportError
from .model import (
    CompletedEnvelope,
    Envelope,
    ErrorEnvelope,
    GenerationRequest,
    PendingJob,
    ProcessingEnvelope,
    SubmittedEnvelope,
)
from .payload_builder import build_horde_payload
from .provider_base import ImageProvider
from .utils import get_timestamp_ms, short_prompt, truncate

logger = logging.getLogger(__name__)


class HordeProvider(ImageProvider):
    """
    AI Horde, a two-phase queue:
    - POST /generate/async          -> job id, returned to the caller
    - GET  /generate/check/{id}     -> queue position / done flag
    - GET  /generate/status/{id}    -> generations (inline base64 or an R2 URL)
    """

    name = "aihorde"
    label = "AI Horde"
    supports_poll = True

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.base_url = (base_url or settings.AI_HORDE_URL).rstrip("/")
        self.api_key = api_key or settings.AI_HORDE_API_KEY

    @property
    def headers(self) -> Dict[str, str]:
        return {"apikey": self.api_key, "Content-Type": "application/json"}

    async def _submit(self, req: GenerationRequest) -> Envelope:
        payload = build_horde_payload(req)
        logger.info("[HordeProvider] Submitting prompt=%s models=%s", short_prompt(req.prompt), payload["models"])

        async with self.client() as client:
            r = await client.post(f"{self.base_url}/generate/async", json=payload, headers=self.headers)

        if not r.is_success:
            raise BackendTransportError(f"AI Horde submission failed: {r.status_code}", details=r.text)

        data = _json_body(r)
        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise BackendProtocolError(
                "No request ID returned from AI Horde",
                details=truncate(json.dumps(data), settings.DETAIL_LIMIT),
            )

        job = PendingJob(id=str(job_id), submitted_at=get_timestamp_ms())
        logger.info("[HordeProvider] Got job id: %s", job.id)
        return SubmittedEnvelope(requestId=job.id, provider=self.name, submittedAt=job.submitted_at)

    async def _poll(self, job_id: str) -> Envelope:
        # the token goes into a single path segment
        token = quote(job_id, safe="")
        async with self.client() as client:
            r = await client.get(f"{self.base_url}/generate/check/{token}", headers=self.headers)
            if not r.is_success:
                return ErrorEnvelope(error=f"Failed to check status: {r.status_code}")

            status = _json_body(r)
            if not isinstance(status, dict):
                raise BackendProtocolError("Malformed status response from AI Horde")

            if status.get("faulted"):
                return ErrorEnvelope(
                    error="Image generation failed on AI Horde",
                    details=str(status.get("faulted")),
                    status="failed",
                )

            if not status.get("done"):
                logger.debug("[HordeProvider] %s still queued: %s", job_id, status)
                return ProcessingEnvelope(
                    queuePosition=status.get("queue_position") or 0,
                    waitTime=status.get("wait_time") or 0,
                )

            r = await client.get(f"{self.base_url}/generate/status/{token}", headers=self.headers)
            if not r.is_success:
                return ErrorEnvelope(error="Failed to get generation result", details=f"Status: {r.status_code}")

            result = _json_body(r)
            img = _first_image(result)
            if not img:
                raise BackendProtocolError(
                    "No image in generation result",
                    details=truncate(json.dumps(result), settings.DETAIL_LIMIT),
                )

            image_url = await normalize_image(img, client)

        logger.info("[HordeProvider] Job %s completed", job_id)
        return CompletedEnvelope(imageUrl=image_url, provider=self.name)


def _json_body(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        raise BackendProtocolError("Invalid JSON from AI Horde", details=truncate(r.text, settings.DETAIL_LIMIT))


def _first_image(result: Any) -> Optional[str]:
    if not isinstance(result, dict):
        return None
    generations = result.get("generations") or []
    if not generations or not isinstance(generations[0], dict):
        return None
    return generations[0].get("img")
