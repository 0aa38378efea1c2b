# backend/event_stream.py

import codecs
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, Dict, Optional, Union

from .model import StreamEvent

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DEFAULT_ERROR_MESSAGE = "Generation failed"


@dataclass
class StreamResult:
    """
    Outcome of reading a whole event stream.
    `event` is the terminal record (complete/error) or None when none arrived.
    """
    event: Optional[StreamEvent] = None
    progress: Optional[StreamEvent] = None

    @property
    def is_success(self) -> bool:
        return self.event is not None and self.event.status == "complete"

    @property
    def is_error(self) -> bool:
        return self.event is not None and self.event.status == "error"


def parse_event_line(line: str) -> Optional[StreamEvent]:
    """
    Parse one line of the stream.
    Returns None for anything that is not a usable `data: {json}` record.
    """
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None

    try:
        obj = json.loads(line[len(DATA_PREFIX):])
    except ValueError:
        logger.debug("[EventStream] Skipping malformed frame: %s", line[:200])
        return None
    if not isinstance(obj, dict):
        return None

    status = obj.get("status")
    extra: Dict[str, Any] = {
        k: v for k, v in obj.items() if k not in ("status", "imageUrl", "message")
    }

    if status == "complete":
        image_url = obj.get("imageUrl")
        if not isinstance(image_url, str) or not image_url:
            # complete without a usable image is not a success
            return None
        return StreamEvent(status="complete", image_url=image_url, extra=extra)

    if status == "error":
        message = obj.get("message") or obj.get("error") or DEFAULT_ERROR_MESSAGE
        return StreamEvent(status="error", message=str(message), extra=extra)

    if status == "processing":
        return StreamEvent(status="processing", extra=extra)

    return None


async def decode_event_stream(
    chunks: AsyncIterable[Union[bytes, str]],
    stop_on_complete: bool = True,
) -> StreamResult:
    """
    Consume a chunked `data: {...}` event stream and pick out its terminal record.

    - Lines are only interpreted once terminated by a newline
    - Malformed frames are skipped
    - Any error record wins over a success record; the last error is kept
    - With `stop_on_complete`, reading stops at the first success when no error
      has been seen yet; after an error the stream is drained
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    success: Optional[StreamEvent] = None
    error: Optional[StreamEvent] = None
    progress: Optional[StreamEvent] = None

    def consume(line: str) -> None:
        nonlocal success, error, progress
        event = parse_event_line(line)
        if event is None:
            return
        if event.status == "complete":
            success = event
        elif event.status == "error":
            error = event
        else:
            progress = event

    async for chunk in chunks:
        buffer += decoder.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        *lines, buffer = buffer.split("\n")
        for line in lines:
            consume(line)
        if stop_on_complete and success is not None and error is None:
            logger.debug("[EventStream] Terminal success seen, stop reading")
            return StreamResult(event=success, progress=progress)

    buffer += decoder.decode(b"", final=True)
    if buffer.strip():
        consume(buffer)

    return StreamResult(event=error or success, progress=progress)
