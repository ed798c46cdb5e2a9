"""
SocialQ persona module - avatar persona extraction sessions and helpers.
"""

from socialq.persona.models import (
    Checkpoint,
    ConversationMessage,
    PersonaState,
    SessionPhase,
    SessionStage,
    SessionStats,
)
from socialq.persona.quality_gates import (
    QUALITY_GATES,
    QualityGate,
    calculate_confidence_scores,
    validate_parameter_quality,
)
from socialq.persona.stage_questions import get_next_question_for_stage
from socialq.persona.stages import PersonaStage, calculate_stage
from socialq.persona.state_manager import (
    PersonaStateManager,
    calculate_overall_confidence,
    determine_stage,
)
from socialq.persona.store import InMemorySessionStore, SessionStore
from socialq.persona.sweeper import SessionSweeper

__all__ = [
    # Models
    "Checkpoint",
    "ConversationMessage",
    "PersonaState",
    "SessionPhase",
    "SessionStage",
    "SessionStats",
    # State machine
    "PersonaStateManager",
    "calculate_overall_confidence",
    "determine_stage",
    # Storage
    "InMemorySessionStore",
    "SessionStore",
    "SessionSweeper",
    # Quality gates
    "QUALITY_GATES",
    "QualityGate",
    "calculate_confidence_scores",
    "validate_parameter_quality",
    # Stages
    "PersonaStage",
    "calculate_stage",
    "get_next_question_for_stage",
]
