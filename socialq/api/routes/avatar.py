"""Avatar persona config endpoints.

- GET /api/persona/config/{user_id} - current config (defaults on first access)
- PUT /api/persona/config/{user_id} - shallow-merge updates
- DELETE /api/persona/config/{user_id} - reset to defaults
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, status
from pydantic import ValidationError

from socialq.api.models import validate_payload_structure
from socialq.api.routes.persona import get_avatar_registry
from socialq.utils.error_sanitizer import get_safe_error_detail

router = APIRouter(prefix="/api/persona/config", tags=["avatar"])


@router.get("/{user_id}")
async def get_avatar_config(user_id: str) -> dict[str, Any]:
    return get_avatar_registry().get_config(user_id).model_dump()


@router.put("/{user_id}")
async def update_avatar_config(
    user_id: str, updates: dict[str, Any] = Body(...)
) -> dict[str, Any]:
    try:
        validate_payload_structure(updates)
        config = get_avatar_registry().update_config(user_id, updates)
    except (ValidationError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=get_safe_error_detail(e, 422),
        ) from e
    return config.model_dump()


@router.delete("/{user_id}")
async def reset_avatar_config(user_id: str) -> dict[str, bool]:
    return {"reset": get_avatar_registry().reset(user_id)}
