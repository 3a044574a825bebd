"""Session lifecycle signal shared by the stores."""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

SessionListener = Callable[[str], None]


class SessionSignal:
    """Broadcasts "session ended" to every store that caches per-user state."""

    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []

    def subscribe(self, listener: SessionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, reason: str) -> None:
        """Notify listeners in subscription order."""
        logger.info(f"Session ended ({reason}), notifying {len(self._listeners)} listener(s)")
        for listener in list(self._listeners):
            try:
                listener(reason)
            except Exception as e:
                logger.error(f"Session listener {listener!r} failed: {e}", exc_info=True)
