"""Response envelopes for the token endpoints"""
from typing import Any, Optional

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Every response body: a message and an optional payload"""

    message: str
    content: Optional[Any] = None


class TokenContent(BaseModel):
    """Issued token plus the durations a client needs to schedule its refresh"""

    token: str
    expires: int = Field(..., description="Seconds the token authorizes requests")
    refresh: int = Field(..., description="Seconds after expiry during which it can be refreshed once")


class TokenEnvelope(Envelope):
    content: TokenContent


class SubjectContent(BaseModel):
    login: str


class SecretEnvelope(Envelope):
    content: SubjectContent


class ErrorEnvelope(Envelope):
    """Failure body; ``error`` is a stable machine-readable code"""

    error: str
