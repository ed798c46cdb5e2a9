"""
Module: models
Purpose: Inbox message types consumed and produced by reply threading.

Message records arrive from the upstream source (webhook or poll) and are
read-only here. ThreadedMessage is derived on every reconstruction and never
persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator


class Message(BaseModel):
    """A direct message as delivered by Instagram or YouTube."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=False)

    id: int
    # Raw value from the source; normalized by the threader, never validated here
    parent_message_id: Any = None
    sender_id: str
    content: str = ""
    timestamp: datetime

    thread_id: int | None = None
    source: Literal["instagram", "youtube"] | None = None
    is_outbound: bool = False
    is_high_intent: bool = False

    @field_validator("sender_id", mode="before")
    @classmethod
    def _coerce_sender_id(cls, v: Any) -> Any:
        # Platform ids come through as numbers from some webhooks
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


@dataclass
class ThreadedMessage:
    """Message plus its position in the reply forest."""

    message: Message
    parent_id: int | None = None
    is_reply: bool = False
    has_replies: bool = False
    child_messages: list[int] = field(default_factory=list)
    depth: int = 0
    # Declared parent is not in the message set
    is_orphan: bool = False
    # Parent chain loops back on itself
    is_anomalous: bool = False

    @property
    def id(self) -> int:
        return self.message.id

    def to_dict(self) -> dict[str, Any]:
        data = self.message.model_dump(mode="json")
        data.update(
            {
                "parent_message_id": self.parent_id,
                "is_reply": self.is_reply,
                "has_replies": self.has_replies,
                "child_messages": list(self.child_messages),
                "depth": self.depth,
                "is_orphan": self.is_orphan,
                "is_anomalous": self.is_anomalous,
            }
        )
        return data
