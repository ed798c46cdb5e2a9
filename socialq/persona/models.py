"""
Module: models
Purpose: Domain types for persona extraction sessions.

PersonaState is owned by a SessionStore and mutated only through
PersonaStateManager. Checkpoints are append-only snapshots used for recovery.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class SessionPhase(str, Enum):
    """Lifecycle phase of a persona session. COMPLETED is terminal."""

    CORE = "core"
    COMPLETED = "completed"


class SessionStage(str, Enum):
    """Coarse progress label derived from the number of collected parameters.

    Extends str so JSON serialization produces raw strings (e.g. "discovery").
    """

    INTRODUCTION = "introduction"
    DISCOVERY = "discovery"
    CORE_COLLECTION = "core_collection"
    PERSONA_PREVIEW = "persona_preview"
    COMPLETION = "completion"


@dataclass
class ConversationMessage:
    """One turn of the persona interview."""

    role: str
    content: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp.isoformat()}


@dataclass
class Checkpoint:
    """Snapshot of a session's parameters for recovery."""

    timestamp: datetime
    parameters: dict[str, Any]
    confidence: float
    stage: SessionStage

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "parameters": dict(self.parameters),
            "confidence": self.confidence,
            "stage": self.stage.value,
        }


@dataclass
class PersonaState:
    """In-memory state of one persona extraction session."""

    session_id: str
    user_id: str
    phase: SessionPhase = SessionPhase.CORE
    parameters: dict[str, Any] = field(default_factory=dict)
    confidence_scores: dict[str, float] = field(default_factory=dict)
    conversation_history: list[ConversationMessage] = field(default_factory=list)
    checkpoints: list[Checkpoint] = field(default_factory=list)
    version: int = 1
    completed_at: datetime | None = None

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)

    @property
    def is_completed(self) -> bool:
        return self.phase == SessionPhase.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "phase": self.phase.value,
            "parameters": dict(self.parameters),
            "confidence_scores": dict(self.confidence_scores),
            "conversation_history": [m.to_dict() for m in self.conversation_history],
            "checkpoints": [c.to_dict() for c in self.checkpoints],
            "version": self.version,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass
class SessionStats:
    """Read-only projection of a session's progress."""

    parameter_count: int
    overall_confidence: float
    current_stage: SessionStage
    checkpoint_count: int
    conversation_length: int

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["current_stage"] = self.current_stage.value
        return data
