"""
Per-user session state machine.

Each session walks ``initial -> loading -> result | error`` and goes back to
``initial`` on reset. The controller is the only writer of its session: user
actions (submit, reset, close) and the completion of the removal call.

Only one removal call is live per session. A new submission, a reset or a
close cancels the pending task, and a result that still arrives for an older
submission is dropped. Preview references are held in an ``ExitStack`` so
every one of those exits releases them.
"""

from __future__ import annotations

import asyncio
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple
import uuid

from .errors import NoImageReturnedError
from .previews import PreviewRegistry
from .preprocessing import SourceImage

logger = logging.getLogger(__name__)

FALLBACK_ERROR = "An unknown error occurred. Please try again."

Remover = Callable[[SourceImage], Awaitable[str]]
Listener = Callable[["AppState"], None]


class AppState(str, Enum):
    INITIAL = "initial"
    LOADING = "loading"
    RESULT = "result"
    ERROR = "error"


@dataclass
class Session:
    source: Optional[SourceImage] = None
    preview_url: Optional[str] = None
    processed_image: Optional[str] = None  # base64
    state: AppState = AppState.INITIAL
    error_message: str = ""


class SessionController:
    def __init__(self, remover: Remover, previews: PreviewRegistry) -> None:
        self._remover = remover
        self._previews = previews
        self._resources = ExitStack()
        self._pending: Optional[asyncio.Task] = None
        self._generation = 0
        self._listeners: List[Listener] = []
        self._closed = False
        self.session = Session()

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def state(self) -> AppState:
        return self.session.state

    @property
    def busy(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def subscribe(self, listener: Listener) -> None:
        """Call `listener` with the new state on every transition."""
        self._listeners.append(listener)

    def _transition(self, state: AppState) -> None:
        previous = self.session.state
        self.session.state = state
        logger.debug("Session transition %s -> %s", previous.value, state.value)
        for listener in list(self._listeners):
            listener(state)

    def _release(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            logger.info("Cancelled in-flight background removal")
        self._pending = None
        self._generation += 1
        self._resources.close()
        self._resources = ExitStack()

    def _begin(self, image: SourceImage) -> int:
        if self._closed:
            raise RuntimeError("Session is closed")
        self._release()
        preview_url = self._resources.enter_context(self._previews.open(image))
        self.session = Session(source=image, preview_url=preview_url)
        self._transition(AppState.LOADING)
        return self._generation

    def _fail(self, message: str) -> None:
        self.session.processed_image = None
        self.session.error_message = message
        self._transition(AppState.ERROR)

    async def _process(self, generation: int, image: SourceImage) -> None:
        try:
            encoded = await self._remover(image)
        except Exception as exc:  # noqa: BLE001
            if generation != self._generation:
                logger.info("Ignoring failure of superseded request: %s", exc)
                return
            logger.exception("Error processing image %s", image.filename)
            self._fail(str(exc) or FALLBACK_ERROR)
            return

        if generation != self._generation:
            logger.info("Discarding result of superseded request for %s", image.filename)
            return
        if not encoded:
            self._fail(str(NoImageReturnedError()))
            return
        self.session.processed_image = encoded
        self._transition(AppState.RESULT)

    async def submit_file(self, image: SourceImage) -> None:
        """Run one removal to completion; the session ends in result or error."""
        generation = self._begin(image)
        await self._process(generation, image)

    def start(self, image: SourceImage) -> asyncio.Task:
        """
        Like `submit_file`, but return as soon as the session is loading.

        Must be called from a running event loop. The returned task finishes
        once the session has left `loading` (or was superseded).
        """
        generation = self._begin(image)
        self._pending = asyncio.get_running_loop().create_task(self._process(generation, image))
        return self._pending

    def reset(self) -> None:
        self._release()
        self.session = Session()
        self._transition(AppState.INITIAL)

    def close(self) -> None:
        if self._closed:
            return
        self.reset()
        self._closed = True
        self._listeners.clear()


class SessionStore:
    """
    In-memory sessions keyed by an opaque id.

    Sessions not touched for `ttl_seconds` are closed and dropped the next
    time the store is used, so abandoned browser tabs do not pin their
    uploads.
    """

    def __init__(
        self,
        remover: Remover,
        previews: Optional[PreviewRegistry] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.remover = remover
        self.previews = previews or PreviewRegistry()
        self._ttl = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, SessionController] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict_expired(self) -> None:
        if self._ttl is None:
            return
        cutoff = self._clock() - self._ttl
        expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for session_id in expired:
            logger.info("Closing idle session %s", session_id)
            self.close(session_id)

    def create(self) -> Tuple[str, SessionController]:
        self._evict_expired()
        session_id = uuid.uuid4().hex
        controller = SessionController(self.remover, self.previews)
        self._sessions[session_id] = controller
        self._last_seen[session_id] = self._clock()
        return session_id, controller

    def get(self, session_id: str) -> SessionController:
        """Raises KeyError for unknown, closed or expired sessions."""
        self._evict_expired()
        controller = self._sessions[session_id]
        self._last_seen[session_id] = self._clock()
        return controller

    def close(self, session_id: str) -> None:
        controller = self._sessions.pop(session_id)
        self._last_seen.pop(session_id, None)
        controller.close()

    def close_all(self) -> None:
        self._last_seen.clear()
        while self._sessions:
            _, controller = self._sessions.popitem()
            controller.close()
