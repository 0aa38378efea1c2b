# backend/provider_base.py

import logging
from typing import Optional

import httpx

from config.settings import settings
from .errors import BackendTransportError, ProxyError
from .model import Envelope, ErrorEnvelope, GenerationRequest

logger = logging.getLogger(__name__)


class ImageProvider:
    """
    One text-to-image backend behind the uniform envelope contract.

    Subclasses implement `_submit` (and `_poll` for two-phase backends) and
    raise ProxyError subclasses for failures with a specific message.
    `submit` / `poll` never raise: every failure comes back as an ErrorEnvelope.
    """

    name: str = "base"
    label: str = "backend"
    supports_poll: bool = False

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # transport is injectable so tests can fake the backend
        self.transport = transport

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT, transport=self.transport)

    async def submit(self, req: GenerationRequest) -> Envelope:
        try:
            return await self._submit(req)
        except ProxyError as e:
            logger.warning("[%s] submit failed: %s", type(self).__name__, e.message)
            return e.to_envelope()
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            logger.warning("[%s] transport error on submit: %r", type(self).__name__, e)
            return self._unreachable(e).to_envelope()

    async def poll(self, job_id: str) -> Envelope:
        if not self.supports_poll:
            return ErrorEnvelope(error=f"Polling is not supported by provider '{self.name}'")
        try:
            return await self._poll(job_id)
        except ProxyError as e:
            logger.warning("[%s] poll failed for %s: %s", type(self).__name__, job_id, e.message)
            return e.to_envelope()
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            logger.warning("[%s] transport error on poll: %r", type(self).__name__, e)
            return self._unreachable(e).to_envelope()

    async def _submit(self, req: GenerationRequest) -> Envelope:
        raise NotImplementedError

    async def _poll(self, job_id: str) -> Envelope:
        raise NotImplementedError

    def _unreachable(self, exc: Exception) -> BackendTransportError:
        return BackendTransportError(f"Failed to reach {self.label}", details=str(exc) or type(exc).__name__)
