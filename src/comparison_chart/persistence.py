"""
Session Persistence

Debounced save of the whole session (timeframe, tickers, annotations) to a
history store. Saving never blocks or rolls back in-memory state: gateway
failures are logged and the session carries on.

The saver does not own a timer. The session calls notify() on every change
and something periodic (the server's lifespan task, or a test) calls poll().
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Protocol

from .models import SessionSnapshot

logger = logging.getLogger(__name__)


class PersistenceGateway(Protocol):
    """History store the session is saved to."""

    def save(self, session_id: str, payload: Dict[str, Any]) -> None:
        ...


class DebouncedSessionSaver:
    """
    Collapses bursts of changes into one write.

    Every notify() restarts the debounce window. A write is skipped when
    the serialized snapshot equals the last one written, or when the
    session has nothing worth keeping.
    """

    def __init__(
        self,
        gateway: Optional[PersistenceGateway],
        snapshot_provider: Callable[[], SessionSnapshot],
        debounce_seconds: float = 2.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self._gateway = gateway
        self._snapshot_provider = snapshot_provider
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self._due_at: Optional[float] = None
        self._last_saved: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._due_at is not None

    def notify(self) -> None:
        """Schedule a save at the end of a fresh debounce window."""
        self._due_at = self._clock() + self.debounce_seconds

    def poll(self) -> bool:
        """Write if the debounce window has elapsed. Returns True if written."""
        if self._due_at is None or self._clock() < self._due_at:
            return False
        return self.flush()

    def flush(self) -> bool:
        """Write now, subject to the skip rules. Returns True if written."""
        self._due_at = None
        if self._gateway is None:
            return False

        snapshot = self._snapshot_provider()
        if not snapshot.has_content():
            return False

        payload = snapshot.to_dict()
        serialized = json.dumps(payload, sort_keys=True)
        if serialized == self._last_saved:
            logger.debug(f"Session {snapshot.session_id} unchanged, skipping save")
            return False

        # Recorded before the write so a failing store is not retried in a loop
        self._last_saved = serialized
        try:
            self._gateway.save(snapshot.session_id, payload)
        except Exception as e:
            logger.error(f"Failed to save session {snapshot.session_id}: {e}")
            return False

        logger.info(f"Saved session {snapshot.session_id} to history")
        return True

    def reset(self, last_saved: Optional[SessionSnapshot] = None) -> None:
        """
        Drop any pending save.

        Args:
            last_saved: Snapshot already in the store (e.g. a restored
                entry), so an unchanged restore is not written back.
        """
        self._due_at = None
        self._last_saved = (
            json.dumps(last_saved.to_dict(), sort_keys=True) if last_saved else None
        )
