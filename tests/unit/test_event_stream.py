"""
Event-stream decoder: framing, terminal record selection, early stop.
"""

import pytest

from backend.event_stream import decode_event_stream, parse_event_line
from tests.utils.mock_utils import chunked


@pytest.mark.unit
class TestParseEventLine:

    def test_complete_record(self):
        event = parse_event_line('data: {"status": "complete", "imageUrl": "https://x/y.png", "seed": 7}')
        assert event.status == "complete"
        assert event.image_url == "https://x/y.png"
        assert event.extra == {"seed": 7}

    def test_complete_without_image_is_ignored(self):
        assert parse_event_line('data: {"status": "complete"}') is None

    @pytest.mark.parametrize("image_url", ["123", "[\"u\"]", "{\"href\": \"u\"}", "true"])
    def test_complete_with_non_string_image_is_skipped(self, image_url):
        assert parse_event_line('data: {"status": "complete", "imageUrl": %s}' % image_url) is None

    def test_error_message_defaults(self):
        assert parse_event_line('data: {"status": "error"}').message == "Generation failed"
        assert parse_event_line('data: {"status": "error", "error": "nsfw"}').message == "nsfw"

    def test_processing_keeps_progress_fields(self):
        event = parse_event_line('data: {"status": "processing", "progress": 0.4}')
        assert event.status == "processing"
        assert event.extra == {"progress": 0.4}

    @pytest.mark.parametrize("line", [
        "",
        ": keep-alive",
        "event: message",
        "data: {not json",
        "data: [1, 2]",
        'data: {"status": "weird"}',
        'data:{"status": "complete", "imageUrl": "u"}',
    ])
    def test_non_records_are_skipped(self, line):
        assert parse_event_line(line) is None

    def test_carriage_return_is_stripped(self):
        assert parse_event_line('data: {"status": "complete", "imageUrl": "u"}\r').image_url == "u"


@pytest.mark.unit
class TestDecodeEventStream:

    @pytest.mark.asyncio
    async def test_complete_followed_by_noise(self):
        stream = chunked(
            b'data: {"status": "processing", "progress": 0.5}\n',
            b'data: {"status": "complete", "imageUrl": "https://img/fox.png"}\n',
            b"garbage\n",
            b"data: {broken\n",
        )
        result = await decode_event_stream(stream, stop_on_complete=False)
        assert result.is_success
        assert result.event.image_url == "https://img/fox.png"
        assert result.progress.extra == {"progress": 0.5}

    @pytest.mark.asyncio
    async def test_only_errors_reports_last_message(self):
        stream = chunked(
            b'data: {"status": "error", "message": "first"}\n',
            b'data: {"status": "error", "message": "second"}\n',
        )
        result = await decode_event_stream(stream)
        assert result.is_error
        assert result.event.message == "second"

    @pytest.mark.asyncio
    async def test_malformed_lines_interleaved_with_complete(self):
        stream = chunked(
            b"data: {\n",
            b"data: nope\n",
            b'data: {"status": "complete", "imageUrl": "u1"}\n',
            b"data: }}}\n",
        )
        result = await decode_event_stream(stream)
        assert result.is_success
        assert result.event.image_url == "u1"

    @pytest.mark.asyncio
    async def test_wrongly_typed_complete_then_valid_complete(self):
        stream = chunked(
            b'data: {"status": "complete", "imageUrl": 123}\n',
            b'data: {"status": "complete", "imageUrl": "u"}\n',
        )
        result = await decode_event_stream(stream)
        assert result.is_success
        assert result.event.image_url == "u"

    @pytest.mark.asyncio
    async def test_empty_stream_has_no_result(self):
        result = await decode_event_stream(chunked())
        assert result.event is None
        assert not result.is_success and not result.is_error

    @pytest.mark.asyncio
    async def test_no_terminal_record_has_no_result(self):
        stream = chunked(
            b'data: {"status": "processing"}\n',
            b'data: {"status": "complete"}\n',
        )
        result = await decode_event_stream(stream)
        assert result.event is None
        assert result.progress is not None

    @pytest.mark.asyncio
    async def test_error_wins_over_complete(self):
        stream = chunked(
            b'data: {"status": "error", "message": "worker died"}\n',
            b'data: {"status": "complete", "imageUrl": "u"}\n',
        )
        result = await decode_event_stream(stream)
        assert result.is_error
        assert result.event.message == "worker died"

    @pytest.mark.asyncio
    async def test_line_split_across_chunks(self):
        stream = chunked(
            b'data: {"status": "comp',
            b'lete", "imageUrl": "https://img/',
            b'a.png"}\n',
        )
        result = await decode_event_stream(stream)
        assert result.event.image_url == "https://img/a.png"

    @pytest.mark.asyncio
    async def test_multibyte_character_split_across_chunks(self):
        raw = 'data: {"status": "error", "message": "café"}\n'.encode("utf-8")
        cut = raw.index(b"\xc3") + 1
        result = await decode_event_stream(chunked(raw[:cut], raw[cut:]))
        assert result.event.message == "café"

    @pytest.mark.asyncio
    async def test_last_line_without_newline_is_read_at_end(self):
        stream = chunked(b'data: {"status": "complete", "imageUrl": "tail"}')
        result = await decode_event_stream(stream)
        assert result.event.image_url == "tail"

    @pytest.mark.asyncio
    async def test_crlf_framing(self):
        stream = chunked(b'data: {"status": "complete", "imageUrl": "u"}\r\n\r\n')
        result = await decode_event_stream(stream)
        assert result.event.image_url == "u"

    @pytest.mark.asyncio
    async def test_accepts_text_chunks(self):
        stream = chunked('data: {"status": "complete", "imageUrl": "u"}\n')
        result = await decode_event_stream(stream)
        assert result.is_success

    @pytest.mark.asyncio
    async def test_stops_reading_after_success(self):
        pulled = []

        async def stream():
            pulled.append(1)
            yield b'data: {"status": "complete", "imageUrl": "u"}\n'
            pulled.append(2)
            yield b'data: {"status": "error", "message": "late"}\n'

        result = await decode_event_stream(stream())
        assert result.is_success
        assert pulled == [1]

    @pytest.mark.asyncio
    async def test_drains_when_early_stop_disabled(self):
        stream = chunked(
            b'data: {"status": "complete", "imageUrl": "u"}\n',
            b'data: {"status": "error", "message": "late"}\n',
        )
        result = await decode_event_stream(stream, stop_on_complete=False)
        assert result.is_error
        assert result.event.message == "late"
