# backend/encoder.py

import base64
import logging
from typing import Union

import httpx

from config.settings import settings
from .errors import BackendProtocolError, BackendTransportError

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


def _aligned_chunk_size(chunk_size: int) -> int:
    # base64 of each chunk only concatenates cleanly when the chunk is a multiple of 3
    return max(3, chunk_size - chunk_size % 3)


def encode_base64(data: BytesLike, chunk_size: int | None = None) -> str:
    """
    Encode `data` to standard base64, chunk by chunk.
    - Each chunk is a bounded slice (8190 bytes by default)
    - Per-chunk output is joined once at the end
    """
    size = _aligned_chunk_size(chunk_size or settings.ENCODE_CHUNK_SIZE)
    view = memoryview(data).cast("B")
    parts = [
        base64.b64encode(view[start:start + size]).decode("ascii")
        for start in range(0, len(view), size)
    ]
    return "".join(parts)


def to_data_url(data: BytesLike, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{encode_base64(data)}"


def mime_of(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


async def fetch_image(url: str, client: httpx.AsyncClient) -> str:
    """
    Download a remote image and return it as a self-contained data URL.
    """
    logger.info("[Encoder] Fetching remote image: %s", url)
    r = await client.get(url)
    if not r.is_success:
        raise BackendTransportError(
            f"Failed to fetch generated image: {r.status_code}",
            details=r.text,
        )

    mime = mime_of(r.headers.get("content-type", ""))
    if not mime.startswith("image/"):
        raise BackendTransportError(
            f"Unexpected content type for image: {mime or 'unknown'}",
            details=r.text,
        )
    return to_data_url(r.content, mime)


async def normalize_image(
    payload: Union[BytesLike, str, None],
    client: httpx.AsyncClient,
    mime: str = "image/png",
) -> str:
    """
    Turn any image payload a backend may hand back into `data:<mime>;base64,...`.

    - bytes            -> encoded
    - "data:..."       -> returned unchanged
    - "http(s)://..."  -> fetched, then encoded
    - other string     -> assumed to be raw base64
    """
    if isinstance(payload, (bytes, bytearray, memoryview)):
        if not len(payload):
            raise BackendProtocolError("No image data received")
        return to_data_url(payload, mime)

    if not payload:
        raise BackendProtocolError("No image data received")

    if payload.startswith("data:"):
        return payload
    if payload.startswith(("http://", "https://")):
        return await fetch_image(payload, client)
    return f"data:{mime};base64,{payload.strip()}"
