# backend/cloudflare_client.py

import logging
from typing import Optional

import httpx

from config.settings import settings
from .encoder import mime_of, to_data_url
from .errors import BackendProtocolError, BackendTransportError, ProxyError
from .model import CompletedEnvelope, Envelope, GenerationRequest
from .payload_builder import build_cloudflare_payload
from .provider_base import ImageProvider
from .utils import short_prompt

logger = logging.getLogger(__name__)

CLOUDFLARE_API = "https://api.cloudflare.com/client/v4"


class CloudflareProvider(ImageProvider):
    """
    Workers AI direct inference: one POST, raw image bytes back.
    No stream, no job token.
    """

    name = "cloudflare"
    label = "Cloudflare Workers AI"
    supports_poll = False

    def __init__(
        self,
        account_id: Optional[str] = None,
        api_token: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.account_id = account_id or settings.CLOUDFLARE_ACCOUNT_ID
        self.api_token = api_token or settings.CLOUDFLARE_API_TOKEN
        self.model = model or settings.CLOUDFLARE_MODEL

    @property
    def url(self) -> str:
        return f"{CLOUDFLARE_API}/accounts/{self.account_id}/ai/run/{self.model}"

    async def _submit(self, req: GenerationRequest) -> Envelope:
        if not self.account_id or not self.api_token:
            raise ProxyError("Cloudflare Workers AI is not configured")

        headers = {"Authorization": f"Bearer {self.api_token}"}
        logger.info("[CloudflareProvider] Running %s prompt=%s", self.model, short_prompt(req.prompt))

        async with self.client() as client:
            r = await client.post(self.url, json=build_cloudflare_payload(req), headers=headers)

        if not r.is_success:
            raise BackendTransportError(f"Cloudflare AI request failed: {r.status_code}", details=r.text)

        mime = mime_of(r.headers.get("content-type", ""))
        if not mime.startswith("image/"):
            raise BackendTransportError(f"Unexpected content type from Cloudflare AI: {mime or 'unknown'}", details=r.text)
        if not r.content:
            raise BackendProtocolError("No image data received")

        return CompletedEnvelope(imageUrl=to_data_url(r.content, mime), provider=self.name)
