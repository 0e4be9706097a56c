"""Per-browser digitization session: selected image, workflow state, result, and cancellation token."""

import logging
import secrets
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from pattern_digitizer.ai.schema import PatternData
from pattern_digitizer.core.errors import InputError, SessionBusyError
from pattern_digitizer.ui.preview import PreviewRegistry

_log = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "Vui lòng chọn một ảnh trước."


class WorkflowState(str, Enum):
    idle = "idle"
    previewing = "previewing"
    processing = "processing"
    result = "result"
    errored = "errored"


@dataclass(frozen=True)
class SelectedImage:
    content: bytes
    filename: str
    mime_type: str


class DigitizeSession:
    """
    State machine: idle -> previewing -> processing -> result | errored.

    Selecting a new image from any state returns to previewing, clears the prior result and
    error, revokes the old preview, and advances the generation. A request started under an
    older generation is stale: its outcome is dropped instead of overwriting newer state.
    """

    def __init__(self, session_id: str, previews: PreviewRegistry) -> None:
        self.session_id = session_id
        self._previews = previews
        self._lock = threading.Lock()
        self._state = WorkflowState.idle
        self._generation = 0
        self.image: SelectedImage | None = None
        self.preview_id: str | None = None
        self.result: PatternData | None = None
        self.error: str | None = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def is_busy(self) -> bool:
        """True while a request is in flight; the uploader and digitize button are disabled."""
        return self._state == WorkflowState.processing

    def _set_state(self, new_state: WorkflowState) -> None:
        _log.debug("Session %s: %s -> %s", self.session_id, self._state.value, new_state.value)
        self._state = new_state

    def select_image(self, content: bytes, filename: str, mime_type: str) -> str:
        """Replace the selected image and return the new preview id."""
        with self._lock:
            self._previews.revoke(self.preview_id)
            self._generation += 1
            self.image = SelectedImage(content=content, filename=filename, mime_type=mime_type)
            self.preview_id = self._previews.create(content, mime_type)
            self.result = None
            self.error = None
            self._set_state(WorkflowState.previewing)
            return self.preview_id

    def begin(self) -> tuple[int, SelectedImage]:
        """
        Move to processing and return (token, image) for the request.

        Raises InputError when no image is selected (no request must be issued) and
        SessionBusyError when a request is already in flight.
        """
        with self._lock:
            if self._state == WorkflowState.processing:
                raise SessionBusyError("A digitization request is already in progress.")
            if self.image is None:
                self.error = NO_IMAGE_MESSAGE
                raise InputError(NO_IMAGE_MESSAGE)
            self.result = None
            self.error = None
            self._set_state(WorkflowState.processing)
            return self._generation, self.image

    def _is_current(self, token: int) -> bool:
        return token == self._generation and self._state == WorkflowState.processing

    def complete(self, token: int, data: PatternData) -> bool:
        """Store a successful result. Returns False (and drops it) if the token is stale."""
        with self._lock:
            if not self._is_current(token):
                _log.info("Session %s: dropping stale result for generation %d", self.session_id, token)
                return False
            self.result = data
            self.error = None
            self._set_state(WorkflowState.result)
            return True

    def fail(self, token: int, message: str) -> bool:
        """Store a failure message. Returns False (and drops it) if the token is stale."""
        with self._lock:
            if not self._is_current(token):
                _log.info("Session %s: dropping stale error for generation %d", self.session_id, token)
                return False
            self.result = None
            self.error = message
            self._set_state(WorkflowState.errored)
            return True

    def reject_upload(self, message: str) -> None:
        """A new selection could not be read: drop the prior result and show the error."""
        with self._lock:
            self._generation += 1
            self.result = None
            self.error = message
            self._set_state(WorkflowState.errored)

    def close(self) -> None:
        """Tear down: release the preview and invalidate any in-flight request."""
        with self._lock:
            self._previews.revoke(self.preview_id)
            self.preview_id = None
            self.image = None
            self.result = None
            self.error = None
            self._generation += 1
            self._set_state(WorkflowState.idle)


class SessionStore:
    """
    Thread-safe in-memory map of session id -> DigitizeSession. Nothing is persisted.

    Sessions idle for longer than idle_ttl_seconds are evicted, and past max_sessions the least
    recently used ones go first. Eviction closes the session, which releases its preview.
    Sessions with a request in flight are never evicted.
    """

    def __init__(
        self,
        previews: PreviewRegistry | None = None,
        max_sessions: int = 256,
        idle_ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.previews = previews or PreviewRegistry()
        self.max_sessions = max_sessions
        self.idle_ttl_seconds = idle_ttl_seconds
        self._clock = clock
        self._sessions: OrderedDict[str, DigitizeSession] = OrderedDict()
        self._last_seen: dict[str, float] = {}
        self._lock = threading.Lock()

    def _touch(self, session_id: str) -> None:
        self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = self._clock()

    def _pop_evictable(self, keep: str | None = None) -> list[DigitizeSession]:
        """Remove expired and over-capacity sessions (oldest first). Caller holds the lock."""
        now = self._clock()
        evicted: list[DigitizeSession] = []
        for sid in list(self._sessions):
            session = self._sessions[sid]
            if session.is_busy or sid == keep:
                continue
            expired = now - self._last_seen[sid] > self.idle_ttl_seconds
            if not expired and len(self._sessions) <= self.max_sessions:
                break
            del self._sessions[sid]
            del self._last_seen[sid]
            evicted.append(session)
        return evicted

    def _close_all(self, sessions: list[DigitizeSession]) -> None:
        for s in sessions:
            _log.info("Evicting idle session %s", s.session_id)
            s.close()

    def get_or_create(self, session_id: str | None) -> DigitizeSession:
        with self._lock:
            if session_id and session_id in self._sessions:
                self._touch(session_id)
                session = self._sessions[session_id]
            else:
                session = DigitizeSession(secrets.token_urlsafe(16), self.previews)
                self._sessions[session.session_id] = session
                self._touch(session.session_id)
            evicted = self._pop_evictable(session.session_id)
        self._close_all(evicted)
        return session

    def get(self, session_id: str | None) -> DigitizeSession | None:
        if not session_id:
            return None
        with self._lock:
            evicted = self._pop_evictable()
            session = self._sessions.get(session_id)
            if session is not None:
                self._touch(session_id)
        self._close_all(evicted)
        return session

    def discard(self, session_id: str | None) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None) if session_id else None
            self._last_seen.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def clear(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_seen.clear()
        for s in sessions:
            s.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
