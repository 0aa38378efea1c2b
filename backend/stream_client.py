# backend/stream_client.py

import logging
from typing import Optional

import httpx

from config.settings import settings
from .encoder import normalize_image
from .errors import BackendProtocolError, BackendTransportError
from .event_stream import decode_event_stream
from .model import CompletedEnvelope, Envelope, ErrorEnvelope, GenerationRequest
from .payload_builder import build_stream_payload
from .provider_base import ImageProvider
from .utils import short_prompt

logger = logging.getLogger(__name__)


class StreamProvider(ImageProvider):
    """
    Single call, server-push backend. The response body is a `data: {...}`
    event stream that ends with a `complete` (imageUrl) or `error` record.
    """

    name = "stream"
    label = "streaming backend"
    supports_poll = False

    def __init__(
        self,
        url: Optional[str] = None,
        stop_on_complete: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.url = url or settings.STREAM_URL
        self.stop_on_complete = stop_on_complete

    async def _submit(self, req: GenerationRequest) -> Envelope:
        payload = build_stream_payload(req)
        headers = {"Accept": "text/event-stream", "Content-Type": "application/json"}
        logger.info("[StreamProvider] POST %s prompt=%s", self.url, short_prompt(req.prompt))

        async with self.client() as client:
            async with client.stream("POST", self.url, json=payload, headers=headers) as r:
                if not r.is_success:
                    await r.aread()
                    raise BackendTransportError(f"Streaming backend failed: {r.status_code}", details=r.text)
                result = await decode_event_stream(r.aiter_bytes(), stop_on_complete=self.stop_on_complete)

            if result.is_error:
                return ErrorEnvelope(error=result.event.message)
            if not result.is_success:
                logger.warning(
                    "[StreamProvider] Stream ended without a terminal record, last progress: %s",
                    result.progress.extra if result.progress else None,
                )
                raise BackendProtocolError("No image URL received")

            image_url = await normalize_image(result.event.image_url, client)

        return CompletedEnvelope(imageUrl=image_url, provider=self.name)
