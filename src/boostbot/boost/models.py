"""Data models for boost session aggregation."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..helipad.models import PaymentSplitEvent


class SessionState(str, Enum):
    """Lifecycle of a boost session."""

    COLLECTING = "collecting"
    TIMER_ARMED = "timer_armed"
    FINALIZING = "finalizing"
    POSTED = "posted"
    SKIPPED = "skipped"
    FAILED = "failed"  # Rendering failed before any publish attempt


class AggregationResult(str, Enum):
    """What happened to one inbound split."""

    FILTERED = "filtered"
    LATE_SPLIT_IGNORED = "late_split_ignored"
    COLLECTED = "collected"
    TIMER_ARMED = "timer_armed"


@dataclass
class BoostSession:
    """All splits believed to belong to one logical boost."""

    session_key: str
    winning_split: PaymentSplitEvent
    all_splits: list[PaymentSplitEvent] = field(default_factory=list)
    state: SessionState = SessionState.COLLECTING
    timer_handle: Optional[asyncio.TimerHandle] = field(default=None, repr=False, compare=False)
    fires_at: Optional[float] = None
    # Store clock time of the most recent split
    last_split_at: Optional[float] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.all_splits:
            self.all_splits = [self.winning_split]

    @property
    def armed(self) -> bool:
        """Whether a finalize timer is pending."""
        return self.timer_handle is not None and not self.timer_handle.cancelled()

    def add_split(self, event: PaymentSplitEvent) -> bool:
        """
        Append a split, promoting it to winner if strictly larger.

        Args:
            event: Split belonging to this session

        Returns:
            True if the split became the winning split
        """
        self.all_splits.append(event)
        if event.amount_msat > self.winning_split.amount_msat:
            self.winning_split = event
            return True
        return False

    def cancel_timer(self) -> None:
        """Cancel the pending finalize timer, if any."""
        if self.timer_handle is not None:
            self.timer_handle.cancel()
        self.timer_handle = None
        self.fires_at = None

    def to_record(self, expires_at_ms: int, armed: bool = True) -> dict[str, Any]:
        """Convert to the persisted snapshot record."""
        return {
            "sessionKey": self.session_key,
            "winningSplit": self.winning_split.to_dict(),
            "allSplits": [split.to_dict() for split in self.all_splits],
            "expiresAtEpochMillis": expires_at_ms,
            "armed": armed,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "BoostSession":
        """Rebuild a session from a persisted snapshot record."""
        winner = PaymentSplitEvent.from_dict(record["winningSplit"])
        splits = [PaymentSplitEvent.from_dict(s) for s in record.get("allSplits") or []]
        # Keep the winner a member of the split list even for hand-edited files
        if winner not in splits:
            splits.append(winner)
        return cls(session_key=record["sessionKey"], winning_split=winner, all_splits=splits)


@dataclass
class RecentPost:
    """Previously published content kept for duplicate screening."""

    content: str
    posted_at_millis: int
    session_key: str
