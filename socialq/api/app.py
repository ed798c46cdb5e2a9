"""FastAPI server for the SocialQ inbox core"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from socialq.api.routes.avatar import router as avatar_router
from socialq.api.routes.health import router as health_router
from socialq.api.routes.messages import router as messages_router
from socialq.api.routes.persona import router as persona_router
from socialq.api.routes.persona import set_avatar_registry, set_state_manager
from socialq.config import API_HOST, API_PORT, APP_ENV, APP_NAME, APP_VERSION
from socialq.observability.logging import get_logger
from socialq.observability.telemetry import counter, log_event
from socialq.persona.avatar_config import AvatarConfigRegistry
from socialq.persona.state_manager import PersonaStateManager
from socialq.persona.sweeper import SessionSweeper

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)

app = FastAPI(title=APP_NAME, version=APP_VERSION)


# Validation errors expose field names only, never the validation rules
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Side Effects:
        - Logs the validation errors with the request path
        - Increments the api.validation_errors counter
    """
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("SOCIALQ_ALLOWED_ORIGINS", "").split(",")
    if origin.strip()
]

# Local inbox frontend in development only
if APP_ENV == "development":
    ALLOWED_ORIGINS.extend(
        [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

# Initialize services
state_manager = PersonaStateManager()
avatar_registry = AvatarConfigRegistry()
session_sweeper = SessionSweeper(state_manager)

# Inject dependencies into routers
set_state_manager(state_manager)
set_avatar_registry(avatar_registry)

# Include routers
app.include_router(health_router)
app.include_router(messages_router)
app.include_router(persona_router)
app.include_router(avatar_router)


@app.on_event("startup")
async def start_session_sweeper() -> None:
    """Start the hourly expired-session sweep for the life of the process."""
    session_sweeper.start()
    log_event("api.startup", service="socialq", version=APP_VERSION)


@app.on_event("shutdown")
async def stop_session_sweeper() -> None:
    session_sweeper.stop()


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "threaded_messages": "/api/messages/threaded",
            "persona_sessions": "/api/persona/sessions",
            "persona_config": "/api/persona/config/{user_id}",
            "quality_gates": "/api/config/quality-gates",
            "health": "/health",
        },
    }


def main() -> None:
    import uvicorn

    uvicorn.run("socialq.api.app:app", host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
