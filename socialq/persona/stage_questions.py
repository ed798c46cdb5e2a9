"""
Stage-specific question selection for the persona interview.

Each stage has a question strategy: the kinds of questions it asks, prompt
templates grouped by topic, and trigger words that suggest the operator is
ready for the next stage.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from socialq.config import QUESTION_ECHO_PREFIX_CHARS
from socialq.persona.stages import PersonaStage


@dataclass(frozen=True)
class StageQuestionStrategy:
    stage: PersonaStage
    question_types: tuple[str, ...]
    prompt_templates: dict[str, tuple[str, ...]]
    transition_triggers: tuple[str, ...]

    @property
    def templates(self) -> list[str]:
        return [template for group in self.prompt_templates.values() for template in group]


STAGE_QUESTION_STRATEGIES: dict[PersonaStage, StageQuestionStrategy] = {
    PersonaStage.NPC: StageQuestionStrategy(
        stage=PersonaStage.NPC,
        question_types=("direct",),
        prompt_templates={
            "opening": (
                "What are you building this avatar for?",
                "Tell me about the personality you want to create.",
                "What's the purpose of this digital persona?",
            ),
        },
        transition_triggers=("purpose", "goal", "avatar", "personality"),
    ),
    PersonaStage.NOOB: StageQuestionStrategy(
        stage=PersonaStage.NOOB,
        question_types=("direct", "example"),
        prompt_templates={
            "tone": (
                "How would you describe your natural communication style?",
                "If I had to match your vibe, what would that sound like?",
                "What three words capture your communication personality?",
            ),
            "style": (
                "What three words would a close friend use for your vibe?",
                "Pick some styles that feel like 'you': formal, casual, witty, warm...",
                "Show me your style by describing your ideal response tone.",
            ),
        },
        transition_triggers=("style", "tone", "personality", "voice"),
    ),
    PersonaStage.PRO: StageQuestionStrategy(
        stage=PersonaStage.PRO,
        question_types=("scenario", "reflective"),
        prompt_templates={
            "boundaries": (
                "Are there any topics you prefer not to talk about?",
                "If someone asks about a topic you avoid, how do you respond?",
                "What are your conversation no-go zones?",
            ),
            "communication": (
                "Do you prefer planned responses or adapting on the fly?",
                "How do you handle disagreements in conversation?",
                "What's your approach when someone asks something you can't answer?",
            ),
        },
        transition_triggers=("boundary", "topic", "avoid", "approach", "handle"),
    ),
}


def _coerce_stage(stage: PersonaStage | str) -> PersonaStage | None:
    try:
        return PersonaStage(stage)
    except ValueError:
        return None


def get_next_question_for_stage(
    stage: PersonaStage | str,
    history: Sequence[str],
    extracted_params: Sequence[str] = (),  # noqa: ARG001
) -> str | None:
    """Pick the next prompt for a stage.

    Prefers the first template whose opening characters do not already appear
    in the conversation; once every template has been asked, repeats the first.

    Returns:
        A question, or None for an unknown stage or one without a strategy
    """
    resolved = _coerce_stage(stage)
    strategy = STAGE_QUESTION_STRATEGIES.get(resolved) if resolved else None
    if strategy is None:
        return None

    available = strategy.templates
    unused = [
        question
        for question in available
        if not any(question[:QUESTION_ECHO_PREFIX_CHARS] in message for message in history)
    ]
    if unused:
        return unused[0]
    return available[0] if available else None


def matched_transition_triggers(stage: PersonaStage | str, text: str) -> list[str]:
    """Trigger words for stage that appear in text, case-insensitive."""
    resolved = _coerce_stage(stage)
    strategy = STAGE_QUESTION_STRATEGIES.get(resolved) if resolved else None
    if strategy is None:
        return []
    lowered = text.lower()
    return [trigger for trigger in strategy.transition_triggers if trigger in lowered]
