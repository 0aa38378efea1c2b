import os
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from config/.env
BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


class Settings:
    # aihorde | stream | cloudflare | pollinations
    IMAGE_PROVIDER: str = os.getenv("IMAGE_PROVIDER", "aihorde")

    DEFAULT_MODEL: str = os.getenv("DEFAULT_MODEL", "turbo")

    AI_HORDE_URL: str = os.getenv("AI_HORDE_URL", "https://stablehorde.net/api/v2")
    # Anonymous key accepted by AI Horde
    AI_HORDE_API_KEY: str = os.getenv("AI_HORDE_API_KEY", "0000000000")
    AI_HORDE_MODELS: List[str] = _split_list(os.getenv("AI_HORDE_MODELS", "stable_diffusion"))

    STREAM_URL: str = os.getenv("STREAM_URL", "http://127.0.0.1:8188/generate/stream")

    CLOUDFLARE_ACCOUNT_ID: str | None = os.getenv("CLOUDFLARE_ACCOUNT_ID")
    CLOUDFLARE_API_TOKEN: str | None = os.getenv("CLOUDFLARE_API_TOKEN")
    CLOUDFLARE_MODEL: str = os.getenv("CLOUDFLARE_MODEL", "@cf/stabilityai/stable-diffusion-xl-base-1.0")

    POLLINATIONS_ENDPOINTS: List[str] = _split_list(
        os.getenv(
            "POLLINATIONS_ENDPOINTS",
            "https://image.pollinations.ai/prompt/{prompt},https://pollinations.ai/p/{prompt}",
        )
    )

    # None -> no client-side timeout, the hosting runtime owns the deadline
    HTTP_TIMEOUT: float | None = _optional_float(os.getenv("HTTP_TIMEOUT"))

    DETAIL_LIMIT: int = int(os.getenv("DETAIL_LIMIT", "500"))
    ENCODE_CHUNK_SIZE: int = int(os.getenv("ENCODE_CHUNK_SIZE", "8190"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
