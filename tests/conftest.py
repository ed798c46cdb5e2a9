"""
Pytest configuration for SocialQ tests

Provides a controllable clock, a persona state manager wired to it, and a
message factory shared across test files.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from socialq.messages.models import Message
from socialq.observability import telemetry
from socialq.persona.state_manager import PersonaStateManager
from socialq.persona.store import InMemorySessionStore

T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def reset_telemetry():
    """Counters are process-global; start every test from zero."""
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def manager(store, clock) -> PersonaStateManager:
    return PersonaStateManager(store, clock=clock)


@pytest.fixture
def make_message():
    """Factory for messages at T0 + minute (minute defaults to the id, so ids sort by time)."""

    def _make(message_id: int, parent: Any = None, minute: int | None = None, **extra: Any) -> Message:
        offset = message_id if minute is None else minute
        return Message(
            id=message_id,
            parent_message_id=parent,
            sender_id=extra.pop("sender_id", "follower_1"),
            content=extra.pop("content", f"message {message_id}"),
            timestamp=T0 + timedelta(minutes=offset),
            **extra,
        )

    return _make
