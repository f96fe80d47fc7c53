"""Pydantic schemas for request/response validation"""
from tokenguard.schemas.token import (
    Envelope,
    ErrorEnvelope,
    SecretEnvelope,
    SubjectContent,
    TokenContent,
    TokenEnvelope,
)

__all__ = [
    "Envelope",
    "ErrorEnvelope",
    "SecretEnvelope",
    "SubjectContent",
    "TokenContent",
    "TokenEnvelope",
]
