"""
Gemini SDK client construction.

The loader:
 - requires the credential from `API_KEY` (raises before any network work),
 - builds a `genai.Client` with optional HTTP timeout,
 - keeps one shared instance for the current credential/timeout pair and
   replaces it when either changes (e.g. a rotated key),
 - exposes `get_genai_client()` for request callers.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Optional, Tuple

from google import genai
from google.genai import types

from . import config
from .errors import MissingCredentialError

logger = logging.getLogger(__name__)

_CLIENT: Optional[Tuple[Tuple[str, Optional[int]], genai.Client]] = None
_LOCK = Lock()


def require_api_key(settings: config.Settings) -> str:
    api_key = (settings.api_key or "").strip()
    if not api_key:
        raise MissingCredentialError()
    return api_key


def _build_client(api_key: str, timeout_seconds: Optional[int]) -> genai.Client:
    http_options = None
    if timeout_seconds:
        # The SDK takes milliseconds.
        http_options = types.HttpOptions(timeout=timeout_seconds * 1000)
    return genai.Client(api_key=api_key, http_options=http_options)


def get_genai_client(settings: Optional[config.Settings] = None) -> genai.Client:
    """
    Return the shared SDK client for the current credential.

    Without `settings` the credential is re-read from the environment.

    Raises:
        MissingCredentialError: when `API_KEY` is unset or blank.
    """
    global _CLIENT
    settings = settings or config.get_call_settings()
    api_key = require_api_key(settings)
    key = (api_key, settings.request_timeout_seconds)

    cached = _CLIENT
    if cached is not None and cached[0] == key:
        return cached[1]

    with _LOCK:
        if _CLIENT is None or _CLIENT[0] != key:
            _CLIENT = (key, _build_client(api_key, settings.request_timeout_seconds))
            logger.info("Gemini client initialised (timeout=%s)", settings.request_timeout_seconds)
        return _CLIENT[1]
