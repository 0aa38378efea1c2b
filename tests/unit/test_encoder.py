"""
Binary encoder and image payload normalization.
"""

import base64

import httpx
import pytest

from backend.encoder import encode_base64, normalize_image, to_data_url
from backend.errors import BackendProtocolError, BackendTransportError
from tests.utils.mock_utils import make_transport


def _sample(n: int) -> bytes:
    return bytes((i * 31 + 7) % 256 for i in range(n))


@pytest.mark.unit
class TestEncodeBase64:

    @pytest.mark.parametrize("length", [0, 1, 8191, 8192, 8193, 1_000_000])
    def test_round_trip(self, length):
        data = _sample(length)
        encoded = encode_base64(data)
        assert base64.b64decode(encoded, validate=True) == data

    @pytest.mark.parametrize("chunk_size", [3, 4, 10, 8192, 65536])
    def test_matches_single_shot_encoding_for_any_chunk_size(self, chunk_size):
        data = _sample(20_000)
        assert encode_base64(data, chunk_size=chunk_size) == base64.b64encode(data).decode("ascii")

    def test_accepts_bytearray_and_memoryview(self):
        data = _sample(100)
        expected = base64.b64encode(data).decode("ascii")
        assert encode_base64(bytearray(data)) == expected
        assert encode_base64(memoryview(data)) == expected

    def test_to_data_url(self):
        assert to_data_url(b"\x89PNG") == "data:image/png;base64,iVBORw=="
        assert to_data_url(b"abc", "image/webp") == "data:image/webp;base64,YWJj"


@pytest.mark.unit
class TestNormalizeImage:

    @pytest.fixture
    def offline_client(self):
        def handler(request):
            raise AssertionError(f"unexpected fetch: {request.url}")
        return httpx.AsyncClient(transport=make_transport(handler))

    @pytest.mark.asyncio
    async def test_data_url_passes_through(self, offline_client):
        url = "data:image/jpeg;base64,AAAA"
        async with offline_client as client:
            assert await normalize_image(url, client) == url

    @pytest.mark.asyncio
    async def test_raw_base64_is_wrapped(self, offline_client):
        async with offline_client as client:
            assert await normalize_image("iVBORw==", client) == "data:image/png;base64,iVBORw=="

    @pytest.mark.asyncio
    async def test_bytes_are_encoded(self, offline_client):
        async with offline_client as client:
            assert await normalize_image(b"abc", client, mime="image/webp") == "data:image/webp;base64,YWJj"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [None, "", b""])
    async def test_empty_payload_is_protocol_error(self, offline_client, payload):
        async with offline_client as client:
            with pytest.raises(BackendProtocolError, match="No image data received"):
                await normalize_image(payload, client)

    @pytest.mark.asyncio
    async def test_remote_url_is_fetched_and_encoded(self, png_bytes):
        transport = make_transport(
            lambda request: httpx.Response(200, content=png_bytes, headers={"Content-Type": "image/png; charset=binary"})
        )
        async with httpx.AsyncClient(transport=transport) as client:
            result = await normalize_image("https://cdn.example.com/out.png", client)

        assert transport.urls == ["https://cdn.example.com/out.png"]
        assert result.startswith("data:image/png;base64,")
        assert base64.b64decode(result.split(",", 1)[1]) == png_bytes

    @pytest.mark.asyncio
    async def test_remote_non_image_is_transport_error(self):
        transport = make_transport(
            lambda request: httpx.Response(200, text="<html>nope</html>", headers={"Content-Type": "text/html"})
        )
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(BackendTransportError, match="Unexpected content type for image: text/html"):
                await normalize_image("https://cdn.example.com/out.png", client)

    @pytest.mark.asyncio
    async def test_remote_failure_is_transport_error(self):
        transport = make_transport(lambda request: httpx.Response(403, text="denied"))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(BackendTransportError) as exc_info:
                await normalize_image("http://cdn.example.com/out.png", client)

        assert exc_info.value.message == "Failed to fetch generated image: 403"
        assert exc_info.value.details == "denied"
