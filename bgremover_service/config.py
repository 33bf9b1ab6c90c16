"""
Configuration loader for the Gemini background-removal service.

Environment variables are centralized here to keep the rest of the code
focused on business logic. Field names match their environment variables
case-insensitively (``api_key`` <- ``API_KEY``).
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_PROMPT = (
    "Remove the background of this image. Make the background transparent. "
    "Output a PNG file."
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Generation service
    api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL
    removal_prompt: str = DEFAULT_PROMPT
    request_timeout_seconds: Optional[int] = None

    # Output artifact
    download_suffix: str = "_no_bg"
    default_download_name: str = "image"

    # API
    log_level: str = "INFO"
    # Sessions idle for longer than this are closed.
    session_ttl_seconds: Optional[int] = 3600

    @field_validator("request_timeout_seconds", "session_ttl_seconds")
    @classmethod
    def validate_positive(cls, v: Optional[int], info) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError(f"{info.field_name.upper()} must be positive when set")
        return v

    @field_validator("removal_prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("REMOVAL_PROMPT must not be empty")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()


def get_call_settings() -> Settings:
    """
    Cached settings with the credential re-read from the environment.

    `API_KEY` may be set or rotated while the process runs; every other field
    keeps the values parsed at first use.
    """
    return get_settings().model_copy(update={"api_key": Settings().api_key})
