"""Environment-driven settings for the editor service."""

from __future__ import annotations

import os
from dataclasses import dataclass

from services.gemini.edit_prompts import DEFAULT_INSTRUCTION
from utils.errors import ConfigurationError

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
# Inline request data is capped at 20 MiB by the Gemini API.
DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024
# Sessions idle longer than this are dropped together with their images.
DEFAULT_SESSION_TTL_SECONDS = 60 * 60
DEFAULT_MAX_SESSIONS = 500


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration.

    Attributes:
        gemini_api_key: API key used to authenticate against the Gemini API.
        image_model: Model name used for image edits.
        max_upload_bytes: Largest accepted upload, in bytes.
        default_instruction: Instruction a new session starts with.
        session_ttl_seconds: Idle time after which a session expires.
        max_sessions: Largest number of sessions kept in memory.
        log_level: Root logging level name.
    """

    gemini_api_key: str
    image_model: str = DEFAULT_IMAGE_MODEL
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    default_instruction: str = DEFAULT_INSTRUCTION
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    max_sessions: int = DEFAULT_MAX_SESSIONS
    log_level: str = "INFO"


def _read_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def load_settings() -> Settings:
    """Build `Settings` from the process environment.

    Raises:
        ConfigurationError: If no API key is configured or a numeric
            setting is invalid.
    """
    api_key = (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or "").strip()
    if not api_key:
        raise ConfigurationError(
            "GEMINI_API_KEY environment variable is not set. "
            "Set GEMINI_API_KEY (or GOOGLE_API_KEY) before starting the server."
        )

    instruction = (os.getenv("DEFAULT_INSTRUCTION") or "").strip() or DEFAULT_INSTRUCTION

    return Settings(
        gemini_api_key=api_key,
        image_model=(os.getenv("GEMINI_IMAGE_MODEL") or "").strip() or DEFAULT_IMAGE_MODEL,
        max_upload_bytes=_read_positive_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        default_instruction=instruction,
        session_ttl_seconds=_read_positive_int("SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS),
        max_sessions=_read_positive_int("MAX_SESSIONS", DEFAULT_MAX_SESSIONS),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )
