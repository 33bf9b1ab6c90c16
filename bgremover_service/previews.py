"""
Preview references for uploaded images.

A preview is a short-lived URL that serves the source bytes back to the
browser while the session holds it. It only exists inside the context
manager returned by `PreviewRegistry.open`, so whoever opens one also
releases it.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Dict, Iterator, Optional
import uuid

from .preprocessing import SourceImage

logger = logging.getLogger(__name__)


class PreviewRegistry:
    def __init__(self, url_prefix: str = "/previews") -> None:
        self._url_prefix = url_prefix.rstrip("/")
        self._items: Dict[str, SourceImage] = {}

    def __len__(self) -> int:
        return len(self._items)

    @contextmanager
    def open(self, image: SourceImage) -> Iterator[str]:
        token = uuid.uuid4().hex
        self._items[token] = image
        logger.debug("Preview opened token=%s", token)
        try:
            yield f"{self._url_prefix}/{token}"
        finally:
            self._items.pop(token, None)
            logger.debug("Preview revoked token=%s", token)

    def get(self, token: str) -> Optional[SourceImage]:
        return self._items.get(token)
