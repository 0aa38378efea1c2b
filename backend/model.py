# backend/model.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal, List, Dict, Any

from config.settings import settings

EventStatus = Literal["processing", "complete", "error"]

FailureStatus = Literal["error", "failed"]


class GenerationRequest(BaseModel):
    prompt: str
    model: str = Field(default_factory=lambda: settings.DEFAULT_MODEL)
    # Ordered preference list, forwarded to the backend as-is
    models: Optional[List[str]] = None

    @field_validator("prompt")
    @classmethod
    def _strip_prompt(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Prompt is required")
        return v


class PendingJob(BaseModel):
    id: str
    submitted_at: int  # epoch ms


class StreamEvent(BaseModel):
    """
    One `data: {...}` record from a backend event stream.
    Unknown keys (progress fields) are kept in `extra`.
    """
    status: EventStatus
    image_url: Optional[str] = None
    message: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


# ==========================
# Outbound envelopes
# ==========================

class SubmittedEnvelope(BaseModel):
    requestId: str
    status: Literal["submitted"] = "submitted"
    provider: str
    message: str = "Request submitted. Polling for result..."
    submittedAt: Optional[int] = None


class CompletedEnvelope(BaseModel):
    imageUrl: str
    provider: str
    status: Literal["completed"] = "completed"


class ProcessingEnvelope(BaseModel):
    status: Literal["processing"] = "processing"
    queuePosition: int | float = 0
    waitTime: int | float = 0
    done: bool = False


class ErrorEnvelope(BaseModel):
    error: str
    details: Optional[str] = None
    type: Optional[str] = None
    status: FailureStatus = "error"


Envelope = SubmittedEnvelope | CompletedEnvelope | ProcessingEnvelope | ErrorEnvelope
