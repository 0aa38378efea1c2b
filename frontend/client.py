import base64
import binascii
import os
import time
from io import BytesIO
from typing import Any, Dict, Optional, Tuple

import requests
from PIL import Image

BACKEND_URL = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")

TERMINAL_STATUSES = ("completed", "error", "failed")


def submit_prompt(prompt: str, model: Optional[str] = None) -> Dict[str, Any]:
    """POST / -> envelope (submitted, completed or error)"""
    payload: Dict[str, Any] = {"prompt": prompt}
    if model:
        payload["model"] = model

    resp = requests.post(f"{BACKEND_URL}/", json=payload, timeout=300)
    resp.raise_for_status()
    return resp.json()


def poll_result(request_id: str, timeout_sec: float = 300.0, poll_interval: float = 2.0) -> Optional[Dict[str, Any]]:
    """Poll GET /?requestId=... until completed/error, None on timeout"""
    start = time.time()
    while True:
        resp = requests.get(f"{BACKEND_URL}/", params={"requestId": request_id}, timeout=60)
        resp.raise_for_status()
        data = resp.json()

        if data.get("status") in TERMINAL_STATUSES or "error" in data:
            return data

        if time.time() - start > timeout_sec:
            return None

        time.sleep(poll_interval)


def generate(prompt: str, model: Optional[str] = None, **poll_kwargs) -> Optional[Dict[str, Any]]:
    """
    Submit, then poll only when the proxy handed back a job token.
    Single-call providers answer with the final envelope directly.
    """
    result = submit_prompt(prompt, model)
    if result.get("status") == "submitted" and result.get("requestId"):
        return poll_result(result["requestId"], **poll_kwargs)
    return result


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    """data:<mime>;base64,<payload> -> (raw bytes, mime)"""
    if not data_url.startswith("data:") or ";base64," not in data_url:
        raise ValueError("Not a base64 data URL")
    header, payload = data_url.split(",", 1)
    mime = header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
    try:
        return base64.b64decode(payload, validate=True), mime
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}")


def load_image(data_url: str) -> Tuple[Image.Image, bytes, str]:
    raw, mime = decode_data_url(data_url)
    img = Image.open(BytesIO(raw)).convert("RGB")
    return img, raw, mime
