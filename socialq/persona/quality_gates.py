"""
Quality gates and confidence scoring for extracted persona parameters.

A quality gate sets the minimum confidence and the minimum number of
supporting conversation messages before an extracted trait is accepted.

IMPORTANT: Gate thresholds and scoring weights are loaded from
config/socialq_policy.yaml. The constants below are the defaults used when
the file or a key is missing.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Literal

import yaml  # type: ignore[import-untyped]

from socialq.observability.logging import get_logger

logger = get_logger(__name__)

ValidationMethod = Literal["user_confirm", "behavior_test", "cross_reference"]


@dataclass(frozen=True)
class QualityGate:
    parameter: str
    minimum_confidence: float
    required_data_points: int
    consistency_threshold: float
    validation_method: ValidationMethod


DEFAULT_QUALITY_GATES: dict[str, QualityGate] = {
    "big_five_profile": QualityGate(
        parameter="big_five_profile",
        minimum_confidence=0.7,
        required_data_points=5,
        consistency_threshold=0.8,
        validation_method="cross_reference",
    ),
    "boundaries": QualityGate(
        parameter="boundaries",
        minimum_confidence=0.8,
        required_data_points=3,
        consistency_threshold=0.9,
        validation_method="behavior_test",
    ),
    "tone_description": QualityGate(
        parameter="tone_description",
        minimum_confidence=0.75,
        required_data_points=2,
        consistency_threshold=0.85,
        validation_method="user_confirm",
    ),
}


def _load_policy_config() -> dict[str, Any]:
    """
    Load config/socialq_policy.yaml.

    Side Effects:
        - Reads the policy file from the filesystem
    """
    possible_paths = [
        Path(__file__).parent.parent.parent / "config" / "socialq_policy.yaml",
        Path("config/socialq_policy.yaml"),
    ]

    for config_path in possible_paths:
        if config_path.exists():
            with open(config_path) as f:
                config = yaml.safe_load(f) or {}
                logger.debug("Loaded persona policy from %s", config_path)
                return config

    logger.warning("socialq_policy.yaml not found, using built-in defaults")
    return {}


def _build_gates(section: Mapping[str, Any]) -> dict[str, QualityGate]:
    gates = dict(DEFAULT_QUALITY_GATES)
    for parameter, raw in (section or {}).items():
        base = gates.get(parameter)
        if base is not None:
            values = asdict(base)
        else:
            values = {"consistency_threshold": 0.0, "validation_method": "user_confirm"}
        values.update(raw or {})
        gates[parameter] = QualityGate(
            parameter=parameter,
            minimum_confidence=float(values["minimum_confidence"]),
            required_data_points=int(values["required_data_points"]),
            consistency_threshold=float(values["consistency_threshold"]),
            validation_method=values["validation_method"],
        )
    return gates


# Load config once at module import time
_POLICY_CONFIG = _load_policy_config()
_SCORING_CONFIG: Mapping[str, Any] = _POLICY_CONFIG.get("confidence_scoring") or {}

QUALITY_GATES: dict[str, QualityGate] = _build_gates(_POLICY_CONFIG.get("quality_gates") or {})

# ============================================================================
# CONFIDENCE SCORING WEIGHTS
# ============================================================================

BASE_CONFIDENCE: float = float(_SCORING_CONFIG.get("base", 0.3))
# Strings longer than this carry enough detail to earn the bonus
RICH_STRING_MIN_LENGTH: int = int(_SCORING_CONFIG.get("rich_string_min_length", 15))
RICH_STRING_BONUS: float = float(_SCORING_CONFIG.get("rich_string_bonus", 0.3))
MULTI_ITEM_BONUS: float = float(_SCORING_CONFIG.get("multi_item_bonus", 0.2))
MENTION_BONUS: float = float(_SCORING_CONFIG.get("mention_bonus", 0.1))
MENTION_BONUS_CAP: float = float(_SCORING_CONFIG.get("mention_bonus_cap", 0.4))


def count_mentions(name: str, history: Sequence[str]) -> int:
    """Number of messages containing name, case-insensitive."""
    needle = name.lower()
    return sum(1 for message in history if needle in message.lower())


def _extracted_confidence(extraction: Mapping[str, Any], parameter: str) -> float:
    """Score for parameter, or 0.0 when missing or not a number."""
    scores = extraction.get("confidence")
    if not isinstance(scores, Mapping):
        return 0.0
    value = scores.get(parameter)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def validate_parameter_quality(
    parameter: str,
    extraction: Mapping[str, Any],
    history: Sequence[str],
) -> bool:
    """Check an extracted parameter against its quality gate.

    Args:
        parameter: Parameter name, e.g. "boundaries"
        extraction: Extractor output; per-parameter scores under "confidence"
        history: Conversation messages as plain text

    Returns:
        True if confidence and supporting mentions both meet the gate.
        Parameters without a gate always pass.
    """
    gate = QUALITY_GATES.get(parameter)
    if gate is None:
        return True

    confidence = _extracted_confidence(extraction, parameter)
    data_points = count_mentions(parameter, history)

    return confidence >= gate.minimum_confidence and data_points >= gate.required_data_points


def calculate_confidence_scores(
    extraction: Mapping[str, Any],
    history: Sequence[str],
) -> dict[str, float]:
    """Score each extracted field by data richness and conversational support.

    Empty values score 0. Otherwise: base, plus a bonus for a detailed string
    or a list of several items, plus a capped bonus per message mentioning the
    field name. Result is clamped to [0, 1].
    """
    scores: dict[str, float] = {}
    for key, value in extraction.items():
        if not value:
            scores[key] = 0.0
            continue

        confidence = BASE_CONFIDENCE
        if isinstance(value, str) and len(value) > RICH_STRING_MIN_LENGTH:
            confidence += RICH_STRING_BONUS
        if isinstance(value, (list, tuple)) and len(value) > 1:
            confidence += MULTI_ITEM_BONUS

        confidence += min(count_mentions(key, history) * MENTION_BONUS, MENTION_BONUS_CAP)
        scores[key] = max(0.0, min(confidence, 1.0))

    return scores


def get_all_gates() -> dict[str, dict[str, Any]]:
    """Gate table and scoring weights as plain dicts (for API exposure)."""
    return {
        "gates": {name: asdict(gate) for name, gate in QUALITY_GATES.items()},
        "scoring": {
            "base": BASE_CONFIDENCE,
            "rich_string_min_length": RICH_STRING_MIN_LENGTH,
            "rich_string_bonus": RICH_STRING_BONUS,
            "multi_item_bonus": MULTI_ITEM_BONUS,
            "mention_bonus": MENTION_BONUS,
            "mention_bonus_cap": MENTION_BONUS_CAP,
        },
    }


def validate_gates() -> bool:
    """
    Check that every gate threshold is within range.

    Raises:
        ValueError: If any threshold is inconsistent
    """
    errors = []
    for name, gate in QUALITY_GATES.items():
        if not 0.0 <= gate.minimum_confidence <= 1.0:
            errors.append(f"{name}: minimum_confidence {gate.minimum_confidence} outside [0.0, 1.0]")
        if not 0.0 <= gate.consistency_threshold <= 1.0:
            errors.append(
                f"{name}: consistency_threshold {gate.consistency_threshold} outside [0.0, 1.0]"
            )
        if gate.required_data_points < 0:
            errors.append(f"{name}: required_data_points must be >= 0")

    if errors:
        raise ValueError("Quality gate validation failed:\n" + "\n".join(errors))
    return True


# Validate on import
try:
    validate_gates()
    logger.debug("Quality gates validated successfully")
except ValueError as e:
    logger.warning("Quality gate validation warning: %s", e)
