# backend/pollinations_client.py

import logging
from typing import List, Optional

import httpx

from config.settings import settings
from .encoder import mime_of, to_data_url
from .errors import BackendProtocolError, BackendTransportError
from .model import CompletedEnvelope, Envelope, GenerationRequest
from .payload_builder import build_pollinations_params, build_pollinations_url
from .provider_base import ImageProvider

logger = logging.getLogger(__name__)


class PollinationsProvider(ImageProvider):
    """
    Best effort over a fixed, ordered list of GET endpoints.
    - 404 -> try the next candidate
    - any other failure -> reported right away, no further candidates
    """

    name = "pollinations"
    label = "Pollinations"
    supports_poll = False

    def __init__(
        self,
        endpoints: Optional[List[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.endpoints = list(endpoints or settings.POLLINATIONS_ENDPOINTS)

    async def _submit(self, req: GenerationRequest) -> Envelope:
        params = build_pollinations_params(req)

        async with self.client() as client:
            for template in self.endpoints:
                url = build_pollinations_url(template, req)
                r = await client.get(url, params=params, follow_redirects=True)

                if r.status_code == 404:
                    logger.info("[PollinationsProvider] 404 from %s, trying next endpoint", template)
                    continue
                if not r.is_success:
                    raise BackendTransportError(f"Pollinations request failed: {r.status_code}", details=r.text)

                mime = mime_of(r.headers.get("content-type", ""))
                if not mime.startswith("image/"):
                    raise BackendTransportError(f"Unexpected content type from Pollinations: {mime or 'unknown'}", details=r.text)
                if not r.content:
                    raise BackendProtocolError("No image data received")

                return CompletedEnvelope(imageUrl=to_data_url(r.content, mime), provider=self.name)

        raise BackendTransportError(f"No endpoint available on {self.name}")
