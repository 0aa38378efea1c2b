import time
from typing import Optional


def truncate(text: Optional[str], limit: int) -> Optional[str]:
    """
    Cut backend-provided text so an error envelope never echoes an unbounded body.
    """
    if text is None or len(text) <= limit:
        return text
    return text[:limit] + "..."


def short_prompt(prompt: str, limit: int = 50) -> str:
    # For log lines only
    return prompt if len(prompt) <= limit else prompt[:limit] + "..."


def get_timestamp_ms() -> int:
    return int(time.time() * 1000)
