"""In-memory preview handles for selected images (server-side counterpart of browser object URLs)."""

import logging
import secrets
import threading
from dataclasses import dataclass

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewImage:
    content: bytes
    mime_type: str


class PreviewRegistry:
    """
    Holds preview bytes keyed by an opaque id until revoked.

    Every create() must be paired with a revoke() when the preview is superseded or its
    session is torn down; len() reports how many previews are still alive.
    """

    def __init__(self) -> None:
        self._items: dict[str, PreviewImage] = {}
        self._lock = threading.Lock()

    def create(self, content: bytes, mime_type: str) -> str:
        preview_id = secrets.token_urlsafe(16)
        with self._lock:
            self._items[preview_id] = PreviewImage(content=content, mime_type=mime_type)
        _log.debug("Preview %s created (%d bytes)", preview_id, len(content))
        return preview_id

    def get(self, preview_id: str) -> PreviewImage | None:
        with self._lock:
            return self._items.get(preview_id)

    def revoke(self, preview_id: str | None) -> bool:
        """Release a preview. Returns False if it was unknown or already revoked."""
        if preview_id is None:
            return False
        with self._lock:
            removed = self._items.pop(preview_id, None) is not None
        if removed:
            _log.debug("Preview %s revoked", preview_id)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
