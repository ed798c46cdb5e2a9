"""Per-user avatar persona configuration used for AI reply generation."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from socialq.observability.logging import get_logger
from socialq.observability.telemetry import log_event

logger = get_logger(__name__)


class CommunicationPrefs(BaseModel):
    verbosity: Literal["concise", "detailed", "balanced"] = "balanced"
    formality: Literal["formal", "casual", "mixed"] = "mixed"


class AvatarPersonaConfig(BaseModel):
    """How the avatar talks, what it talks about, and what it avoids."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    tone_description: str = (
        "Friendly and professional AI assistant that provides helpful responses"
    )
    style_tags: list[str] = Field(default_factory=lambda: ["friendly", "professional", "helpful"])
    allowed_topics: list[str] = Field(
        default_factory=lambda: ["general", "business", "technology", "creative"]
    )
    restricted_topics: list[str] = Field(default_factory=lambda: ["inappropriate", "harmful"])
    fallback_reply: str = "Thanks for your message! I'd prefer not to discuss that topic."
    avatar_objective: list[str] = Field(
        default_factory=lambda: ["Provide helpful assistance", "Engage positively with users"]
    )
    audience_description: str = "General users seeking helpful information and assistance"
    boundaries: list[str] = Field(default_factory=list)
    communication_prefs: CommunicationPrefs | None = None


CONFIG_FIELDS: frozenset[str] = frozenset(AvatarPersonaConfig.model_fields)


class AvatarConfigRegistry:
    """In-memory avatar configs keyed by user id; defaults on first access."""

    def __init__(self) -> None:
        self._configs: dict[str, AvatarPersonaConfig] = {}
        self._lock = threading.Lock()

    def get_config(self, user_id: str) -> AvatarPersonaConfig:
        with self._lock:
            config = self._configs.get(user_id)
            if config is None:
                config = AvatarPersonaConfig()
                self._configs[user_id] = config
            return config

    def update_config(self, user_id: str, updates: Mapping[str, Any]) -> AvatarPersonaConfig:
        """Shallow-merge updates into the user's config; unknown keys are ignored.

        Raises:
            pydantic.ValidationError: If a merged value has the wrong shape
        """
        known = {k: v for k, v in updates.items() if k in CONFIG_FIELDS}
        with self._lock:
            current = self._configs.get(user_id)
            if current is None:
                current = AvatarPersonaConfig()
            config = AvatarPersonaConfig.model_validate({**current.model_dump(), **known})
            self._configs[user_id] = config

        if known:
            log_event("avatar.config_updated", user_id=user_id, fields=sorted(known))
        return config

    def reset(self, user_id: str) -> bool:
        with self._lock:
            removed = self._configs.pop(user_id, None) is not None
        if removed:
            logger.info("Avatar config reset to defaults for user %s", user_id)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._configs)
