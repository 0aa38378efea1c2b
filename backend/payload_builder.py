# backend/payload_builder.py

from typing import Dict, Any, List, Optional
from urllib.parse import quote

from config.settings import settings
from .model import GenerationRequest

# Fixed generation parameters per backend
HORDE_PARAMS: Dict[str, Any] = {
    "width": 512,
    "height": 512,
    "steps": 20,
    "n": 1,
}

CLOUDFLARE_NUM_STEPS = 20
CLOUDFLARE_GUIDANCE = 7.5

POLLINATIONS_SIZE = 1024


def _resolve_models(req: GenerationRequest, default: Optional[List[str]] = None) -> Optional[List[str]]:
    """
    Caller's preference list wins, otherwise the backend default.
    The backend picks the first available one, nothing is retried here.
    """
    if req.models:
        return list(req.models)
    return list(default) if default else None


def build_horde_payload(req: GenerationRequest) -> Dict[str, Any]:
    """
    Body for POST /generate/async on AI Horde.
    """
    return {
        "prompt": req.prompt,
        "params": dict(HORDE_PARAMS),
        "models": _resolve_models(req, settings.AI_HORDE_MODELS),
        "nsfw": False,
        "trusted_workers": False,
        "censor_nsfw": False,
    }


def build_stream_payload(req: GenerationRequest) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"prompt": req.prompt, "model": req.model}
    models = _resolve_models(req)
    if models:
        payload["models"] = models
    return payload


def build_cloudflare_payload(req: GenerationRequest) -> Dict[str, Any]:
    return {
        "prompt": req.prompt,
        "num_steps": CLOUDFLARE_NUM_STEPS,
        "guidance": CLOUDFLARE_GUIDANCE,
    }


def build_pollinations_url(template: str, req: GenerationRequest) -> str:
    """
    Fill one endpoint template, e.g. "https://image.pollinations.ai/prompt/{prompt}".
    The prompt goes into the path, so every reserved character is quoted.
    """
    return template.format(prompt=quote(req.prompt, safe=""))


def build_pollinations_params(req: GenerationRequest) -> Dict[str, Any]:
    return {
        "model": req.model,
        "width": POLLINATIONS_SIZE,
        "height": POLLINATIONS_SIZE,
        "nologo": "true",
    }
