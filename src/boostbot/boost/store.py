"""
In-flight boost sessions, keyed by a coarse time bucket and attribution.

Sessions are mirrored to a JSON snapshot file so a restart within the grace
window can resume them. The snapshot is a write-through cache, not a log: it
is fully rewritten on every save and a lost write only costs that window.
"""
import asyncio
import json
import logging
import os
import time
from collections import OrderedDict
from pathlib import Path
from typing import Any, Callable, Optional

from ..constants import (
    DEFAULT_BUCKET_SECONDS,
    DEFAULT_FINALIZED_RETENTION_SECONDS,
    DEFAULT_GRACE_SECONDS,
)
from ..helipad.models import PaymentSplitEvent
from .models import BoostSession, SessionState

logger = logging.getLogger(__name__)


def derive_session_key(event: PaymentSplitEvent, bucket_seconds: int = DEFAULT_BUCKET_SECONDS) -> str:
    """
    Derive the session key shared by all splits of one boost.

    Args:
        event: Split to key
        bucket_seconds: Width of the time bucket

    Returns:
        ``<bucket>-<sender>-<episode>-<show>``
    """
    bucket = event.timestamp_seconds // bucket_seconds
    return f"{bucket}-{event.sender_label}-{event.episode_name}-{event.show_name}"


class SessionStore:
    """Owns in-flight sessions, the finalized-key set and the snapshot file."""

    def __init__(
        self,
        sessions_file: Optional[str] = None,
        bucket_seconds: int = DEFAULT_BUCKET_SECONDS,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        finalized_retention_seconds: float = DEFAULT_FINALIZED_RETENTION_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the store.

        Args:
            sessions_file: Snapshot path; None disables persistence
            bucket_seconds: Width of the session key time bucket
            grace_seconds: Grace window added to the bucket before a fee-less session goes stale
            finalized_retention_seconds: How long finalized keys are remembered
            clock: Source of epoch seconds
        """
        self.sessions_file = Path(sessions_file) if sessions_file else None
        self.bucket_seconds = bucket_seconds
        self.grace_seconds = grace_seconds
        self.finalized_retention_seconds = finalized_retention_seconds
        self._clock = clock
        self._sessions: dict[str, BoostSession] = {}
        # key -> (terminal state, finalized at)
        self._finalized: OrderedDict[str, tuple[SessionState, float]] = OrderedDict()
        # Serializes snapshot writes so the newest state is written last
        self._save_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: str) -> bool:
        return key in self._sessions

    def derive_key(self, event: PaymentSplitEvent) -> str:
        """Session key of an event using this store's bucket width."""
        return derive_session_key(event, self.bucket_seconds)

    def upsert(self, event: PaymentSplitEvent) -> tuple[BoostSession, bool]:
        """
        Add a split to its session, creating the session if needed.

        Args:
            event: Split that passed the entry filters

        Returns:
            Tuple of (session, is_new_session)
        """
        key = self.derive_key(event)
        session = self._sessions.get(key)

        if session is None:
            session = BoostSession(session_key=key, winning_split=event)
            session.last_split_at = self._clock()
            self._sessions[key] = session
            return session, True

        session.add_split(event)
        session.last_split_at = self._clock()
        return session, False

    def get(self, key: str) -> Optional[BoostSession]:
        """Get an in-flight session."""
        return self._sessions.get(key)

    def remove(self, key: str) -> Optional[BoostSession]:
        """
        Drop an in-flight session and cancel its timer.

        Returns:
            The removed session, or None if it was not present
        """
        session = self._sessions.pop(key, None)
        if session is not None:
            session.cancel_timer()
        return session

    def sessions(self) -> list[BoostSession]:
        """All in-flight sessions."""
        return list(self._sessions.values())

    def collect_deadline(self, session: BoostSession) -> float:
        """When a session that never armed its timer goes stale."""
        last_split_at = session.last_split_at
        if last_split_at is None:
            last_split_at = self._clock()
        return last_split_at + self.bucket_seconds + self.grace_seconds

    def evict_stale(self) -> list[BoostSession]:
        """
        Drop sessions that never saw a fee-bearing split in time.

        A session without an armed timer is stale once a full bucket plus
        the grace window has passed since its last split. Stale sessions
        are discarded without posting.

        Returns:
            The evicted sessions
        """
        now = self._clock()
        stale = [
            session
            for key, session in self._sessions.items()
            if session.fires_at is None
            and key not in self._finalized
            and self.collect_deadline(session) <= now
        ]

        for session in stale:
            self.remove(session.session_key)
            logger.info(
                f"Discarding boost session {session.session_key} without a fee split",
                extra={
                    "session_key": session.session_key,
                    "sats": session.winning_split.sats,
                    "splits": len(session.all_splits),
                },
            )
        return stale

    def is_already_finalized(self, key: str) -> bool:
        """Whether a session with this key has already been finalized."""
        self._prune_finalized()
        return key in self._finalized

    def finalized_state(self, key: str) -> Optional[SessionState]:
        """Terminal state recorded for a finalized key."""
        entry = self._finalized.get(key)
        return entry[0] if entry else None

    def mark_finalized(self, key: str, state: SessionState = SessionState.FINALIZING) -> None:
        """
        Remember a key as finalized so late splits are ignored.

        Called once when finalization starts and again with the terminal state.
        """
        self._finalized[key] = (state, self._clock())
        self._finalized.move_to_end(key)
        self._prune_finalized()

    def _prune_finalized(self) -> None:
        cutoff = self._clock() - self.finalized_retention_seconds
        while self._finalized:
            key, (_, finalized_at) = next(iter(self._finalized.items()))
            if finalized_at >= cutoff:
                break
            self._finalized.popitem(last=False)

    # =========================================================================
    # Persistence
    # =========================================================================

    def snapshot(self) -> list[dict[str, Any]]:
        """
        Build snapshot records for every non-finalized session.

        Armed sessions expire when their timer is due. Sessions still
        waiting for a fee split expire at their collect deadline, and ones
        already past it are left out.
        """
        now = self._clock()
        records = []
        for key, session in self._sessions.items():
            if key in self._finalized:
                continue
            armed = session.fires_at is not None
            expires_at = session.fires_at if armed else self.collect_deadline(session)
            if not armed and expires_at <= now:
                continue
            records.append(session.to_record(int(expires_at * 1000), armed=armed))
        return records

    def _write_snapshot(self, records: list[dict[str, Any]]) -> None:
        self.sessions_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.sessions_file.with_name(self.sessions_file.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
        os.replace(tmp_path, self.sessions_file)

    async def save(self) -> bool:
        """
        Rewrite the snapshot file with the current sessions.

        Returns:
            True if written (or persistence disabled), False on I/O failure
        """
        if self.sessions_file is None:
            return True

        async with self._save_lock:
            records = self.snapshot()
            try:
                await asyncio.to_thread(self._write_snapshot, records)
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Failed to save boost sessions to {self.sessions_file}: {e}")
                return False

        logger.debug(f"Saved {len(records)} boost sessions to {self.sessions_file}")
        return True

    def _read_snapshot(self) -> list[dict[str, Any]]:
        with open(self.sessions_file, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError("snapshot is not a JSON array")
        return data

    async def load(self) -> list[tuple[BoostSession, Optional[float]]]:
        """
        Restore unexpired sessions from the snapshot file.

        Expired sessions are dropped and never posted. Sessions that had not
        armed a timer come back still collecting, keeping their deadline.

        Returns:
            List of (restored session, seconds until it is due), where the
            delay is None for sessions that must not be armed
        """
        if self.sessions_file is None:
            return []

        try:
            records = await asyncio.to_thread(self._read_snapshot)
        except FileNotFoundError:
            logger.info("No previous boost sessions found")
            return []
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load boost sessions from {self.sessions_file}: {e}")
            return []

        now = self._clock()
        restored: list[tuple[BoostSession, Optional[float]]] = []
        expired = 0

        for record in records:
            try:
                session = BoostSession.from_record(record)
                expires_at = record["expiresAtEpochMillis"] / 1000.0
                armed = bool(record.get("armed", True))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed persisted session: {e}")
                continue

            if expires_at <= now:
                expired += 1
                logger.info(
                    f"Dropping expired boost session {session.session_key}",
                    extra={"session_key": session.session_key, "sats": session.winning_split.sats},
                )
                continue

            if session.session_key in self._sessions:
                continue
            self._sessions[session.session_key] = session
            if armed:
                restored.append((session, expires_at - now))
            else:
                session.last_split_at = expires_at - self.bucket_seconds - self.grace_seconds
                restored.append((session, None))

        if restored or expired:
            logger.info(f"Loaded boost sessions: {len(restored)} active, {expired} expired")
        return restored
