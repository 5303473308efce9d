"""
Per-session finalize timers.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from .models import BoostSession, SessionState
from .store import SessionStore

logger = logging.getLogger(__name__)


class SessionTimer:
    """
    Schedules session finalization on the running event loop.

    Each session holds its own timer handle. Arming replaces the pending
    handle, so every fee-bearing split restarts the full countdown. When a
    timer fires the finalize callback runs as a task and the session is then
    removed from the store whatever the callback's outcome.
    """

    def __init__(
        self,
        store: SessionStore,
        on_fire: Callable[[str], Awaitable[None]],
        after_cleanup: Optional[Callable[[str, bool], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the timer.

        Args:
            store: Store holding the sessions
            on_fire: Async finalize callback, called with the session key
            after_cleanup: Called with (session key, snapshot saved) once the
                session has been removed
            clock: Source of epoch seconds
        """
        self._store = store
        self._on_fire = on_fire
        self._after_cleanup = after_cleanup
        self._clock = clock
        self._tasks: set[asyncio.Task] = set()

    def arm(self, session: BoostSession, delay: float) -> None:
        """
        (Re)start the finalize countdown of a session.

        Args:
            session: Session to finalize
            delay: Seconds until finalization
        """
        session.cancel_timer()
        delay = max(0.0, delay)
        loop = asyncio.get_running_loop()
        session.timer_handle = loop.call_later(delay, self._fire, session.session_key)
        session.fires_at = self._clock() + delay
        session.state = SessionState.TIMER_ARMED
        logger.debug(f"Finalize timer armed for session {session.session_key} ({delay:.1f}s)")

    def _fire(self, key: str) -> None:
        session = self._store.get(key)
        if session is not None:
            session.timer_handle = None

        task = asyncio.create_task(self._run(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, key: str) -> None:
        try:
            await self._on_fire(key)
        except Exception as e:
            logger.error(f"Finalize failed for session {key}: {e}", exc_info=True)
        finally:
            self._store.remove(key)
            saved = await self._store.save()
            if self._after_cleanup:
                self._after_cleanup(key, saved)

    def cancel_all(self) -> None:
        """
        Cancel every pending timer without finalizing.

        Deadlines are kept so a following snapshot still records when each
        session was due.
        """
        for session in self._store.sessions():
            if session.timer_handle is not None:
                session.timer_handle.cancel()
                session.timer_handle = None

    @property
    def running_count(self) -> int:
        """Number of finalizations currently in progress."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for in-progress finalizations to complete."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
