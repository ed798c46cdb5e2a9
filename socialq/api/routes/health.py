"""Health check endpoint for the SocialQ API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from socialq.api.routes.persona import get_avatar_registry, get_state_manager
from socialq.config import APP_NAME, APP_VERSION
from socialq.observability.telemetry import get_counters, get_latency_stats

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Service status, version and in-memory session/telemetry figures. Contains no PII."""
    manager = get_state_manager()
    return {
        "status": "healthy",
        "service": APP_NAME,
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "persona_sessions": manager.active_session_count(),
        "avatar_configs": len(get_avatar_registry()),
        "counters": get_counters(),
        "threading_latency": get_latency_stats("threading.reconstruct.latency"),
    }
