"""
Persona session state machine.

Drives the multi-turn interview that builds an avatar persona: merges the
parameters and confidence scores an external extractor produces each turn,
checkpoints progress for recovery and expires idle sessions.

Phases: core -> completed (terminal). There is no failure phase; sessions
simply expire after SESSION_TIMEOUT_SECONDS without a checkpoint.

Unknown session ids are a normal outcome: operations return None/False and
log, never raise.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from socialq.config import (
    CHECKPOINT_INTERVAL,
    MAX_CHECKPOINTS,
    SESSION_TIMEOUT_SECONDS,
    STAGE_CORE_COLLECTION_MAX,
    STAGE_DISCOVERY_MAX,
    STAGE_PERSONA_PREVIEW_MAX,
)
from socialq.observability.logging import get_logger
from socialq.observability.telemetry import counter, log_event
from socialq.persona.models import (
    Checkpoint,
    ConversationMessage,
    PersonaState,
    SessionPhase,
    SessionStage,
    SessionStats,
)
from socialq.persona.store import InMemorySessionStore, SessionStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def calculate_overall_confidence(scores: Mapping[str, float]) -> float:
    """Arithmetic mean of per-parameter confidence, 0.0 when there are none."""
    if not scores:
        return 0.0
    return sum(scores.values()) / len(scores)


def determine_stage(parameters: Mapping[str, Any]) -> SessionStage:
    count = len(parameters)
    if count == 0:
        return SessionStage.INTRODUCTION
    if count < STAGE_DISCOVERY_MAX:
        return SessionStage.DISCOVERY
    if count < STAGE_CORE_COLLECTION_MAX:
        return SessionStage.CORE_COLLECTION
    if count < STAGE_PERSONA_PREVIEW_MAX:
        return SessionStage.PERSONA_PREVIEW
    return SessionStage.COMPLETION


class PersonaStateManager:
    """Manages persona sessions: creation, merging, checkpoints and expiry.

    Every read-modify-write of a session holds that session's store lock, so
    overlapping requests for one session are serialized and the sweeper never
    deletes a session mid-update.
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        *,
        clock: Clock | None = None,
        checkpoint_interval: int = CHECKPOINT_INTERVAL,
        max_checkpoints: int = MAX_CHECKPOINTS,
        session_timeout: timedelta = timedelta(seconds=SESSION_TIMEOUT_SECONDS),
    ) -> None:
        if checkpoint_interval < 1:
            raise ValueError(f"checkpoint_interval must be >= 1, got {checkpoint_interval}")
        if max_checkpoints < 1:
            raise ValueError(f"max_checkpoints must be >= 1, got {max_checkpoints}")

        self.store: SessionStore = store if store is not None else InMemorySessionStore()
        self.clock: Clock = clock or _utcnow
        self.checkpoint_interval = checkpoint_interval
        self.max_checkpoints = max_checkpoints
        self.session_timeout = session_timeout

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_session(self, user_id: str) -> PersonaState:
        """Allocate a new session keyed persona_{user_id}_{epoch_ms}.

        Side Effects:
            - Inserts the session into the store
        """
        epoch_ms = int(self.clock().timestamp() * 1000)
        state = PersonaState(session_id=f"persona_{user_id}_{epoch_ms}", user_id=user_id)
        # Two sessions for one user in the same millisecond get distinct ids
        while not self.store.put_if_absent(state):
            epoch_ms += 1
            state = PersonaState(session_id=f"persona_{user_id}_{epoch_ms}", user_id=user_id)
        session_id = state.session_id

        counter("persona.sessions_created")
        log_event("persona.session_created", session_id=session_id)
        return state

    def update_session(
        self,
        session_id: str,
        parameters: Mapping[str, Any],
        confidence: Mapping[str, float],
        messages: Sequence[ConversationMessage],
    ) -> PersonaState | None:
        """Merge one extraction turn into the session.

        Parameters and confidence are shallow-merged (new values win). The
        conversation history is replaced: callers pass the full running history.
        A checkpoint is appended whenever the merged parameter count is a
        positive multiple of the checkpoint interval.

        Returns:
            The updated session, or None if the session does not exist
        """
        with self.store.lock(session_id):
            state = self.store.get(session_id)
            if state is None:
                logger.info("Persona session not found: %s", session_id)
                counter("persona.session_not_found")
                return None

            state.parameters = {**state.parameters, **parameters}
            state.confidence_scores = {**state.confidence_scores, **confidence}
            state.conversation_history = list(messages)
            state.version += 1

            count = state.parameter_count
            if count > 0 and count % self.checkpoint_interval == 0:
                self.save_checkpoint(state)

            self.store.put(state)
            return state

    def save_checkpoint(self, state: PersonaState) -> Checkpoint:
        """Append a snapshot of the session, keeping the most recent few.

        Callers other than this class must hold the session's store lock.
        """
        checkpoint = Checkpoint(
            timestamp=self.clock(),
            parameters=dict(state.parameters),
            confidence=calculate_overall_confidence(state.confidence_scores),
            stage=determine_stage(state.parameters),
        )
        state.checkpoints.append(checkpoint)
        if len(state.checkpoints) > self.max_checkpoints:
            state.checkpoints = state.checkpoints[-self.max_checkpoints :]

        log_event(
            "persona.checkpoint_saved",
            session_id=state.session_id,
            stage=checkpoint.stage.value,
            checkpoints=len(state.checkpoints),
        )
        return checkpoint

    def restore_session(self, session_id: str) -> PersonaState | None:
        """Look up a session for resumption, expiring it if idle too long.

        A session without checkpoints counts as already expired, so restoring
        a brand-new session deletes it.
        """
        with self.store.lock(session_id):
            state = self.store.get(session_id)
            if state is None:
                logger.info("Cannot restore persona session: %s", session_id)
                return None

            if self.is_expired(state):
                self.store.delete(session_id)
                counter("persona.sessions_expired")
                log_event("persona.session_expired", session_id=session_id)
                return None

            log_event("persona.session_restored", session_id=session_id)
            return state

    def complete_session(self, session_id: str) -> bool:
        """Mark a session completed and take a final checkpoint."""
        with self.store.lock(session_id):
            state = self.store.get(session_id)
            if state is None:
                logger.info("Cannot complete persona session: %s", session_id)
                return False

            state.phase = SessionPhase.COMPLETED
            state.completed_at = self.clock()
            self.save_checkpoint(state)
            self.store.put(state)

        counter("persona.sessions_completed")
        log_event("persona.session_completed", session_id=session_id)
        return True

    def cleanup(self) -> int:
        """Delete every expired session.

        Returns:
            Number of sessions removed
        """
        removed = self.store.sweep(self.is_expired)
        if removed:
            counter("persona.sessions_expired", len(removed))
            log_event("persona.cleanup", removed=len(removed), remaining=len(self.store))
        return len(removed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> PersonaState | None:
        """Plain lookup with no expiry check."""
        return self.store.get(session_id)

    def get_session_stats(self, session_id: str) -> SessionStats | None:
        state = self.store.get(session_id)
        if state is None:
            return None

        return SessionStats(
            parameter_count=state.parameter_count,
            overall_confidence=calculate_overall_confidence(state.confidence_scores),
            current_stage=determine_stage(state.parameters),
            checkpoint_count=len(state.checkpoints),
            conversation_length=len(state.conversation_history),
        )

    def last_activity(self, state: PersonaState) -> datetime:
        """Latest checkpoint time, or a moment just past the timeout if none."""
        if state.checkpoints:
            return state.checkpoints[-1].timestamp
        return self.clock() - self.session_timeout - timedelta(milliseconds=1)

    def is_expired(self, state: PersonaState) -> bool:
        return self.clock() - self.last_activity(state) > self.session_timeout

    def active_session_count(self) -> int:
        return len(self.store)
