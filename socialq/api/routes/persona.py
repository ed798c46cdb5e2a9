"""Persona session endpoints for the SocialQ API.

Session lifecycle:
- POST /api/persona/sessions - create a session
- GET /api/persona/sessions/{session_id} - restore (expires idle sessions)
- PUT /api/persona/sessions/{session_id} - merge one extraction turn
- POST /api/persona/sessions/{session_id}/complete - finish the interview
- GET /api/persona/sessions/{session_id}/stats - progress projection
- POST /api/persona/sessions/cleanup - sweep expired sessions now

Extraction helpers:
- POST /api/persona/confidence - score extracted fields
- POST /api/persona/quality - check a parameter against its quality gate
- POST /api/persona/next-question - next interview prompt and unlocked parameters for a stage
- POST /api/persona/progress - progress, progression stage and UI state
- GET /api/config/quality-gates - gate table and scoring weights
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import ValidationError

from socialq.api.models import (
    ConfidenceRequest,
    CreateSessionRequest,
    NextQuestionRequest,
    ProgressRequest,
    QualityRequest,
    UpdateSessionRequest,
)
from socialq.observability.logging import get_logger
from socialq.persona.avatar_config import CONFIG_FIELDS, AvatarConfigRegistry
from socialq.persona.quality_gates import (
    calculate_confidence_scores,
    get_all_gates,
    validate_parameter_quality,
)
from socialq.persona.stage_questions import (
    get_next_question_for_stage,
    matched_transition_triggers,
)
from socialq.persona.stages import (
    PERSONA_STAGES,
    PersonaStage,
    calculate_stage,
    unlocked_parameters,
)
from socialq.persona.state_manager import PersonaStateManager
from socialq.persona.validation import (
    calculate_progress,
    calculate_ui_state,
    count_valid_fields,
    determine_progression_stage,
    should_trigger_chip_validation,
)

router = APIRouter(prefix="/api", tags=["persona"])
logger = get_logger(__name__)

# Injected at app startup
_state_manager: PersonaStateManager | None = None
_avatar_registry: AvatarConfigRegistry | None = None


def set_state_manager(manager: PersonaStateManager) -> None:
    global _state_manager
    _state_manager = manager


def set_avatar_registry(registry: AvatarConfigRegistry) -> None:
    global _avatar_registry
    _avatar_registry = registry


def get_state_manager() -> PersonaStateManager:
    if _state_manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Persona sessions unavailable",
        )
    return _state_manager


def get_avatar_registry() -> AvatarConfigRegistry:
    if _avatar_registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Avatar configuration unavailable",
        )
    return _avatar_registry


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Persona session not found: {session_id}",
    )


# ============================================================================
# Session lifecycle
# ============================================================================


@router.post("/persona/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(request: CreateSessionRequest) -> dict[str, Any]:
    state = get_state_manager().create_session(request.user_id)
    return state.to_dict()


@router.post("/persona/sessions/cleanup")
async def cleanup_sessions() -> dict[str, int]:
    manager = get_state_manager()
    removed = manager.cleanup()
    return {"removed": removed, "remaining": manager.active_session_count()}


@router.get("/persona/sessions/{session_id}")
async def restore_session(session_id: str) -> dict[str, Any]:
    """
    Restore a session for resumption.

    A session idle past the timeout (or one that never checkpointed) is
    deleted and reported as 404.
    """
    state = get_state_manager().restore_session(session_id)
    if state is None:
        raise _not_found(session_id)
    return state.to_dict()


@router.put("/persona/sessions/{session_id}")
async def update_session(session_id: str, request: UpdateSessionRequest) -> dict[str, Any]:
    state = get_state_manager().update_session(
        session_id,
        request.parameters,
        request.confidence,
        [turn.to_domain() for turn in request.messages],
    )
    if state is None:
        raise _not_found(session_id)
    return state.to_dict()


@router.post("/persona/sessions/{session_id}/complete")
async def complete_session(session_id: str) -> dict[str, Any]:
    """
    Complete a session and copy its config-shaped parameters into the
    user's avatar persona config.

    Side Effects:
        - Marks the session completed with a final checkpoint
        - Updates the avatar config registry for the session's user
    """
    manager = get_state_manager()
    if not manager.complete_session(session_id):
        raise _not_found(session_id)

    state = manager.get_session(session_id)
    if state is None:
        # Swept between completion and lookup
        raise _not_found(session_id)

    registry = get_avatar_registry()
    config_updates = {k: v for k, v in state.parameters.items() if k in CONFIG_FIELDS}
    try:
        config = registry.update_config(state.user_id, config_updates)
    except ValidationError as e:
        logger.warning("Persona parameters not applied to avatar config for %s: %s", session_id, e)
        config = registry.get_config(state.user_id)

    return {
        "completed": True,
        "session": state.to_dict(),
        "avatar_config": config.model_dump(),
    }


@router.get("/persona/sessions/{session_id}/stats")
async def session_stats(session_id: str) -> dict[str, Any]:
    stats = get_state_manager().get_session_stats(session_id)
    if stats is None:
        raise _not_found(session_id)
    return stats.to_dict()


# ============================================================================
# Extraction helpers
# ============================================================================


@router.post("/persona/confidence")
async def score_confidence(request: ConfidenceRequest) -> dict[str, Any]:
    """
    Side Effects:
        None (pure function)
    """
    return {"scores": calculate_confidence_scores(request.extraction, request.history)}


@router.post("/persona/quality")
async def check_quality(request: QualityRequest) -> dict[str, Any]:
    passed = validate_parameter_quality(request.parameter, request.extraction, request.history)
    return {"parameter": request.parameter, "passed": passed}


@router.post("/persona/next-question")
async def next_question(request: NextQuestionRequest) -> dict[str, Any]:
    if request.stage is not None:
        stage: str = request.stage
    elif request.badge_count is not None:
        stage = calculate_stage(request.badge_count).value
    else:
        stage = PersonaStage.NPC.value

    question = get_next_question_for_stage(stage, request.history, request.extracted_params)
    latest = request.history[-1] if request.history else ""
    config = PERSONA_STAGES.get(stage)
    return {
        "stage": stage,
        "question": question,
        "transition_triggers": matched_transition_triggers(stage, latest),
        "prompt_style": config.prompt_style if config else None,
        "celebration_copy": config.celebration_copy if config else None,
        "unlocked_parameters": unlocked_parameters(config.stage) if config else [],
    }


@router.post("/persona/progress")
async def persona_progress(request: ProgressRequest) -> dict[str, Any]:
    fields = count_valid_fields(request.config)
    stage = determine_progression_stage(
        request.message_count, fields, request.chip_validation_complete
    )
    chip_validation = False
    if request.previous_field_count is not None:
        chip_validation = should_trigger_chip_validation(
            request.previous_field_count, fields, request.has_validated_recently
        )

    return {
        "fields_collected": fields,
        "progress": calculate_progress(request.config),
        "stage": stage.value,
        "ui_state": calculate_ui_state(stage).to_dict(),
        "trigger_chip_validation": chip_validation,
    }


@router.get("/config/quality-gates")
async def quality_gates() -> dict[str, Any]:
    """
    Quality gate thresholds for frontend use.

    Side Effects:
        None (reads config constants only)
    """
    return {"version": "1.0.0", **get_all_gates()}
