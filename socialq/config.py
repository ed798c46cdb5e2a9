"""Centralized configuration for the SocialQ backend.

Typed constants for persona sessions, threading, logging and the API.
Environment variable overrides use safe defaults so the app starts without
extra env configuration.
"""

from __future__ import annotations

import os

# --- App ---
APP_NAME: str = "SocialQ API"
APP_VERSION: str = "0.1.0"
APP_ENV: str = os.getenv("SOCIALQ_ENV", "development")
API_HOST: str = os.getenv("SOCIALQ_HOST", "127.0.0.1")
API_PORT: int = int(os.getenv("SOCIALQ_PORT", "8000"))

# --- Persona sessions ---
SESSION_TIMEOUT_SECONDS: float = float(os.getenv("SOCIALQ_SESSION_TIMEOUT_HOURS", "24")) * 3600
CHECKPOINT_INTERVAL: int = int(os.getenv("SOCIALQ_CHECKPOINT_INTERVAL", "2"))
MAX_CHECKPOINTS: int = int(os.getenv("SOCIALQ_MAX_CHECKPOINTS", "5"))
CLEANUP_INTERVAL_SECONDS: float = float(os.getenv("SOCIALQ_CLEANUP_INTERVAL_SECONDS", "3600"))

# Parameter-count thresholds for checkpoint stage labels (count < value)
STAGE_DISCOVERY_MAX: int = 2
STAGE_CORE_COLLECTION_MAX: int = 4
STAGE_PERSONA_PREVIEW_MAX: int = 6

# --- Stage questions ---
QUESTION_ECHO_PREFIX_CHARS: int = 20

# --- API ---
API_MAX_MESSAGES_PER_REQUEST: int = 2000
API_MAX_HISTORY_MESSAGES: int = 500

# --- Threading ---
# Nested tree levels rendered before deeper replies are flattened under the last level
THREAD_TREE_MAX_DEPTH: int = int(os.getenv("SOCIALQ_THREAD_TREE_MAX_DEPTH", "32"))
