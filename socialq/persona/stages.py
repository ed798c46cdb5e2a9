"""
Badge-based persona stages.

A persona levels up as the operator earns badges while describing it. Each
stage unlocks the parameters the interview asks about next and sets the
prompt style used for questions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class PersonaStage(str, Enum):
    NPC = "npc"
    NOOB = "noob"
    PRO = "pro"
    HERO = "hero"
    LEGEND = "legend"


PromptStyle = Literal["direct", "scenario", "reflective", "advanced"]


@dataclass(frozen=True)
class StageConfig:
    stage: PersonaStage
    name: str
    badge_requirement: int
    unlocked_parameters: tuple[str, ...]
    prompt_style: PromptStyle
    celebration_copy: str


PERSONA_STAGES: dict[PersonaStage, StageConfig] = {
    PersonaStage.NPC: StageConfig(
        stage=PersonaStage.NPC,
        name="NPC",
        badge_requirement=0,
        unlocked_parameters=("initial_context",),
        prompt_style="direct",
        celebration_copy="You're a blank slate... but greatness is loading.",
    ),
    PersonaStage.NOOB: StageConfig(
        stage=PersonaStage.NOOB,
        name="Noob",
        badge_requirement=1,
        unlocked_parameters=("tone_description", "style_tags"),
        prompt_style="direct",
        celebration_copy="You've cracked the shell. Now we find your voice.",
    ),
    PersonaStage.PRO: StageConfig(
        stage=PersonaStage.PRO,
        name="Pro",
        badge_requirement=3,
        unlocked_parameters=("boundaries", "communication_prefs"),
        prompt_style="scenario",
        celebration_copy="Blast off. You've got a voice, and you're moving with purpose.",
    ),
    PersonaStage.HERO: StageConfig(
        stage=PersonaStage.HERO,
        name="Hero",
        badge_requirement=5,
        unlocked_parameters=("audience_description", "avatar_objective"),
        prompt_style="reflective",
        celebration_copy="You've earned your badge. This persona's got presence.",
    ),
    PersonaStage.LEGEND: StageConfig(
        stage=PersonaStage.LEGEND,
        name="Legend",
        badge_requirement=6,
        unlocked_parameters=("edge_cases", "dynamic_modes", "signature_phrases"),
        prompt_style="advanced",
        celebration_copy="Legend unlocked. You've built a digital icon.",
    ),
}


def calculate_stage(badge_count: int) -> PersonaStage:
    """Highest stage whose badge requirement is met."""
    reached = PersonaStage.NPC
    for config in PERSONA_STAGES.values():
        if badge_count >= config.badge_requirement:
            reached = config.stage
    return reached


def unlocked_parameters(stage: PersonaStage) -> list[str]:
    """Every parameter unlocked up to and including stage."""
    params: list[str] = []
    for config in PERSONA_STAGES.values():
        params.extend(config.unlocked_parameters)
        if config.stage == stage:
            break
    return params
