"""Shared fixtures for API integration tests"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from socialq.api import app as app_module
from socialq.api.routes.persona import set_avatar_registry, set_state_manager
from socialq.persona.avatar_config import AvatarConfigRegistry
from socialq.persona.state_manager import PersonaStateManager


@pytest.fixture
def api_manager(clock) -> PersonaStateManager:
    return PersonaStateManager(clock=clock)


@pytest.fixture
def api_registry() -> AvatarConfigRegistry:
    return AvatarConfigRegistry()


@pytest.fixture
def client(api_manager, api_registry):
    """
    TestClient wired to fresh in-memory services.

    Used without a context manager so startup hooks (the session sweeper
    thread) do not run.
    """
    set_state_manager(api_manager)
    set_avatar_registry(api_registry)
    try:
        yield TestClient(app_module.app)
    finally:
        set_state_manager(app_module.state_manager)
        set_avatar_registry(app_module.avatar_registry)
