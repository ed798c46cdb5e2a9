"""
Persona configuration progress rules.

Shared by the interview UI and the API so both agree on how far a persona
has come, which progression stage it is in, and when the operator is asked
to confirm collected traits (chip validation).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

CORE_PERSONA_FIELDS: tuple[str, ...] = (
    "tone_description",
    "audience_description",
    "avatar_objective",
    "boundaries",
    "communication_prefs",
    "fallback_reply",
)

# Progress never reaches 100 until the operator confirms completion
MAX_PROGRESS_PERCENT = 95.0
# Chip validation is offered every this many collected fields
CHIP_VALIDATION_EVERY = 2


class ProgressionStage(str, Enum):
    INTRODUCTION = "introduction"
    CORE_COLLECTION = "core_collection"
    REFLECTION_CHECKPOINT = "reflection_checkpoint"
    COMPLETION = "completion"


@dataclass(frozen=True)
class UIState:
    show_complete_button: bool
    show_chip_selector: bool
    input_disabled: bool
    persona_mode: str  # "guidance" | "blended" | "persona_preview"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _is_filled(value: Any) -> bool:
    if not value:
        return False
    if isinstance(value, str):
        return len(value) > 3
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return False


def count_valid_fields(config: Mapping[str, Any]) -> int:
    """Number of core persona fields holding a usable value."""
    return sum(1 for field_name in CORE_PERSONA_FIELDS if _is_filled(config.get(field_name)))


def calculate_progress(config: Mapping[str, Any]) -> float:
    valid = count_valid_fields(config)
    return min(MAX_PROGRESS_PERCENT, valid / len(CORE_PERSONA_FIELDS) * 100)


def determine_progression_stage(
    message_count: int,
    fields_collected: int,
    chip_validation_complete: bool,
) -> ProgressionStage:
    """Stage of the interview; only advances once every requirement is met."""
    if fields_collected >= 4 and message_count >= 6 and chip_validation_complete:
        return ProgressionStage.COMPLETION

    if fields_collected >= 2 and message_count >= 3 and fields_collected % 2 == 0:
        return ProgressionStage.REFLECTION_CHECKPOINT

    if message_count >= 1:
        return ProgressionStage.CORE_COLLECTION

    return ProgressionStage.INTRODUCTION


def calculate_ui_state(stage: ProgressionStage) -> UIState:
    if stage == ProgressionStage.REFLECTION_CHECKPOINT:
        # Force chip interaction before more free text
        return UIState(
            show_complete_button=False,
            show_chip_selector=True,
            input_disabled=True,
            persona_mode="blended",
        )
    if stage == ProgressionStage.COMPLETION:
        return UIState(
            show_complete_button=True,
            show_chip_selector=False,
            input_disabled=False,
            persona_mode="persona_preview",
        )
    return UIState(
        show_complete_button=False,
        show_chip_selector=False,
        input_disabled=False,
        persona_mode="guidance",
    )


def should_trigger_chip_validation(
    previous_field_count: int,
    new_field_count: int,
    has_validated_recently: bool,
) -> bool:
    """True when the field count crossed a chip-validation milestone."""
    previous_milestone = previous_field_count // CHIP_VALIDATION_EVERY
    new_milestone = new_field_count // CHIP_VALIDATION_EVERY
    return new_milestone > previous_milestone and not has_validated_recently
