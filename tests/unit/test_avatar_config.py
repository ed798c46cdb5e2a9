"""Unit tests for the avatar persona config registry"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from socialq.persona.avatar_config import AvatarConfigRegistry, AvatarPersonaConfig


def test_defaults_on_first_access():
    registry = AvatarConfigRegistry()
    config = registry.get_config("u1")

    assert config == AvatarPersonaConfig()
    assert config.style_tags == ["friendly", "professional", "helpful"]
    assert config.communication_prefs is None
    assert len(registry) == 1


def test_update_shallow_merges_and_ignores_unknown_keys():
    registry = AvatarConfigRegistry()
    config = registry.update_config(
        "u1",
        {"tone_description": "  Dry and witty  ", "boundaries": ["politics"], "mood": "sunny"},
    )

    assert config.tone_description == "Dry and witty"
    assert config.boundaries == ["politics"]
    assert config.fallback_reply == AvatarPersonaConfig().fallback_reply
    assert not hasattr(config, "mood")


def test_update_nested_prefs():
    registry = AvatarConfigRegistry()
    config = registry.update_config("u1", {"communication_prefs": {"verbosity": "concise"}})

    assert config.communication_prefs.verbosity == "concise"
    assert config.communication_prefs.formality == "mixed"


def test_invalid_update_raises_and_keeps_previous_config():
    registry = AvatarConfigRegistry()
    registry.update_config("u1", {"tone_description": "calm"})

    with pytest.raises(ValidationError):
        registry.update_config("u1", {"communication_prefs": {"verbosity": "rambling"}})

    assert registry.get_config("u1").tone_description == "calm"


def test_users_are_isolated():
    registry = AvatarConfigRegistry()
    registry.update_config("u1", {"tone_description": "calm"})

    assert registry.get_config("u2").tone_description == AvatarPersonaConfig().tone_description


def test_reset_restores_defaults():
    registry = AvatarConfigRegistry()
    registry.update_config("u1", {"tone_description": "calm"})

    assert registry.reset("u1") is True
    assert registry.reset("u1") is False
    assert len(registry) == 0
    assert registry.get_config("u1") == AvatarPersonaConfig()
