"""
Shared fixtures for unit and interface tests.
"""

from io import BytesIO

import pytest
from PIL import Image


@pytest.fixture
def png_bytes() -> bytes:
    """A real 4x4 PNG, so PIL can open it."""
    buf = BytesIO()
    Image.new("RGB", (4, 4), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()
