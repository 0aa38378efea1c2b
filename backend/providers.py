# backend/providers.py
from typing import Dict, Optional, Type

import httpx

from config.settings import settings
from .cloudflare_client import CloudflareProvider
from .horde_client import HordeProvider
from .pollinations_client import PollinationsProvider
from .provider_base import ImageProvider
from .stream_client import StreamProvider

PROVIDERS: Dict[str, Type[ImageProvider]] = {
    HordeProvider.name: HordeProvider,
    StreamProvider.name: StreamProvider,
    CloudflareProvider.name: CloudflareProvider,
    PollinationsProvider.name: PollinationsProvider,
}


def get_provider(
    name: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ImageProvider:
    """
    Build the adapter selected by `name`, or by IMAGE_PROVIDER when omitted.
    An unknown name is a configuration error and fails at startup.
    """
    key = (name or settings.IMAGE_PROVIDER).strip().lower()
    cls = PROVIDERS.get(key)
    if cls is None:
        raise ValueError(f"Unknown image provider: {key} (expected one of {', '.join(PROVIDERS)})")
    return cls(transport=transport)
