"""Pydantic request/response models for the SocialQ API.

Shared models and payload guards used across the message threading and
persona endpoints.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from socialq.config import API_MAX_HISTORY_MESSAGES, API_MAX_MESSAGES_PER_REQUEST
from socialq.messages.models import Message
from socialq.persona.models import ConversationMessage

# =============================================================================
# VALIDATION HELPERS
# =============================================================================

# Limits on free-form extractor payloads
MAX_PAYLOAD_KEYS = 100
MAX_STRING_LENGTH = 10_000
MAX_PAYLOAD_DEPTH = 5


def validate_payload_structure(
    data: Any,
    max_keys: int = MAX_PAYLOAD_KEYS,
    max_str_len: int = MAX_STRING_LENGTH,
    max_depth: int = MAX_PAYLOAD_DEPTH,
    current_depth: int = 0,
) -> None:
    """
    Reject oversized or deeply nested dict/list payloads.

    Raises:
        ValueError: If a limit is exceeded
    """
    if current_depth > max_depth:
        raise ValueError(f"Payload nesting exceeds maximum depth of {max_depth}")

    if isinstance(data, str):
        if len(data) > max_str_len:
            raise ValueError(f"String value too long: {len(data)} > {max_str_len}")
        return

    if isinstance(data, dict):
        if len(data) > max_keys:
            raise ValueError(f"Dict has too many keys: {len(data)} > {max_keys}")
        for key, value in data.items():
            if isinstance(key, str) and len(key) > 100:
                raise ValueError(f"Dict key too long: {len(key)} > 100")
            validate_payload_structure(value, max_keys, max_str_len, max_depth, current_depth + 1)
    elif isinstance(data, list):
        if len(data) > max_keys:
            raise ValueError(f"List too long: {len(data)} > {max_keys}")
        for item in data:
            validate_payload_structure(item, max_keys, max_str_len, max_depth, current_depth + 1)


def _guard_payload(value: dict[str, Any]) -> dict[str, Any]:
    validate_payload_structure(value)
    return value


# =============================================================================
# MESSAGES
# =============================================================================


class ThreadRequest(BaseModel):
    """Flat message list to thread."""

    messages: list[Message] = Field(default_factory=list, max_length=API_MAX_MESSAGES_PER_REQUEST)


class ThreadResponse(BaseModel):
    total: int
    top_level: list[int]
    orphans: list[int]
    anomalies: list[int]
    messages: list[dict[str, Any]]
    tree: list[dict[str, Any]]


# =============================================================================
# PERSONA SESSIONS
# =============================================================================


class CreateSessionRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)


class ConversationTurn(BaseModel):
    role: str = Field(min_length=1, max_length=20)
    content: str = Field(max_length=MAX_STRING_LENGTH)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_domain(self) -> ConversationMessage:
        return ConversationMessage(role=self.role, content=self.content, timestamp=self.timestamp)


class UpdateSessionRequest(BaseModel):
    """One extraction turn: merged parameters, confidence, and the full history."""

    parameters: dict[str, Any] = Field(default_factory=dict)
    confidence: dict[str, float] = Field(default_factory=dict)
    messages: list[ConversationTurn] = Field(
        default_factory=list, max_length=API_MAX_HISTORY_MESSAGES
    )

    @field_validator("parameters")
    @classmethod
    def _check_parameters(cls, v: dict[str, Any]) -> dict[str, Any]:
        return _guard_payload(v)

    @field_validator("confidence")
    @classmethod
    def _check_confidence(cls, v: dict[str, float]) -> dict[str, float]:
        for name, score in v.items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"Confidence for {name} must be within [0, 1]")
        return v


# =============================================================================
# PERSONA HELPERS
# =============================================================================


class ConfidenceRequest(BaseModel):
    extraction: dict[str, Any]
    history: list[str] = Field(default_factory=list, max_length=API_MAX_HISTORY_MESSAGES)

    @field_validator("extraction")
    @classmethod
    def _check_extraction(cls, v: dict[str, Any]) -> dict[str, Any]:
        return _guard_payload(v)


class QualityRequest(BaseModel):
    """Extractor output; per-parameter scores live under extraction["confidence"]."""

    parameter: str = Field(min_length=1, max_length=100)
    extraction: dict[str, Any] = Field(default_factory=dict)
    history: list[str] = Field(default_factory=list, max_length=API_MAX_HISTORY_MESSAGES)

    @field_validator("extraction")
    @classmethod
    def _check_extraction(cls, v: dict[str, Any]) -> dict[str, Any]:
        _guard_payload(v)
        scores = v.get("confidence")
        if scores is None:
            return v
        if not isinstance(scores, dict):
            raise ValueError("confidence must be an object of parameter scores")
        for name, score in scores.items():
            if score is None:
                continue
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise ValueError(f"Confidence for {name} must be a number")
        return v


class NextQuestionRequest(BaseModel):
    """Either an explicit stage or a badge count to derive it from."""

    stage: str | None = None
    badge_count: int | None = Field(default=None, ge=0)
    history: list[str] = Field(default_factory=list, max_length=API_MAX_HISTORY_MESSAGES)
    extracted_params: list[str] = Field(default_factory=list)


class ProgressRequest(BaseModel):
    config: dict[str, Any] = Field(default_factory=dict)
    message_count: int = Field(default=0, ge=0)
    chip_validation_complete: bool = False
    previous_field_count: int | None = Field(default=None, ge=0)
    has_validated_recently: bool = False

    @field_validator("config")
    @classmethod
    def _check_config(cls, v: dict[str, Any]) -> dict[str, Any]:
        return _guard_payload(v)


# =============================================================================
# SHARED MODELS
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    error_count: int = 1
    invalid_fields: list[str] = []
