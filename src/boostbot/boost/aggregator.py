"""
Boost aggregator: turns a stream of payment splits into one post per boost.
"""
import logging
import time
from typing import Any, Callable, Optional

from ..constants import DEFAULT_GRACE_SECONDS
from ..helipad.filters import BoostFilter
from ..helipad.models import PaymentSplitEvent
from ..metrics import MetricsCollector, get_metrics
from ..publisher.interface import PublisherInterface
from .content import BoostContentRenderer
from .models import AggregationResult, SessionState
from .similarity import SimilarityChecker
from .store import SessionStore
from .timer import SessionTimer

logger = logging.getLogger(__name__)

OUTCOME_LABELS = {
    SessionState.POSTED: "posted",
    SessionState.SKIPPED: "skipped_duplicate",
    SessionState.FAILED: "failed",
}


class BoostAggregator:
    """
    Groups payment splits into boost sessions and posts each session once.

    Splits pass the entry filters, are keyed into a session and update its
    winning split. Fee-bearing splits (re)arm the session's finalize timer.
    On fire the winning split is rendered, screened for near-duplicates and
    handed to the publisher. The session key is then remembered so late
    splits are ignored.
    """

    def __init__(
        self,
        publisher: PublisherInterface,
        renderer: Optional[BoostContentRenderer] = None,
        store: Optional[SessionStore] = None,
        similarity: Optional[SimilarityChecker] = None,
        boost_filter: Optional[BoostFilter] = None,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the aggregator.

        Args:
            publisher: Destination of finalized posts
            renderer: Builds post content and tags
            store: In-flight session store
            similarity: Near-duplicate screen
            boost_filter: Entry filters applied to every split
            grace_seconds: Delay between the last fee-bearing split and posting
            metrics: Metrics collector (global one when None)
            clock: Source of epoch seconds
        """
        self.publisher = publisher
        self.renderer = renderer or BoostContentRenderer()
        self.store = store if store is not None else SessionStore(grace_seconds=grace_seconds, clock=clock)
        self.similarity = similarity or SimilarityChecker(clock=clock)
        self.boost_filter = boost_filter or BoostFilter()
        self.grace_seconds = grace_seconds
        self.metrics = metrics or get_metrics()
        self._clock = clock
        self.timer = SessionTimer(
            self.store,
            on_fire=self._finalize,
            after_cleanup=self._after_cleanup,
            clock=clock,
        )

    async def start(self) -> int:
        """
        Restore persisted sessions and re-arm their timers.

        Each restored armed session fires at its original deadline. Sessions
        still waiting for a fee split are restored without a timer.

        Returns:
            Number of sessions restored
        """
        restored = await self.store.load()
        for session, remaining in restored:
            if remaining is None:
                logger.info(
                    f"Restored boost session {session.session_key}, waiting for a fee split",
                    extra={"session_key": session.session_key, "sats": session.winning_split.sats},
                )
                continue
            self.timer.arm(session, remaining)
            logger.info(
                f"Restored boost session {session.session_key}, posting in {remaining:.1f}s",
                extra={"session_key": session.session_key, "sats": session.winning_split.sats},
            )

        self.metrics.set_sessions_in_flight(len(self.store))
        if restored:
            await self._save()
        return len(restored)

    async def stop(self) -> None:
        """Cancel pending timers, wait for running finalizations and save."""
        self.timer.cancel_all()
        await self.timer.drain()
        await self._save()
        logger.info(f"Boost aggregator stopped with {len(self.store)} sessions in flight")

    async def handle_event(self, event: PaymentSplitEvent) -> AggregationResult:
        """
        Process one inbound payment split.

        Args:
            event: Normalized split

        Returns:
            What happened to the split
        """
        self.metrics.record_payment(event.action)

        reason = self.boost_filter.rejection_reason(event)
        if reason:
            logger.info(
                f"Ignoring payment from {event.sender_label or 'unknown'}: {reason}",
                extra={"reason": reason, "action": event.action, "sats": event.sats},
            )
            self.metrics.record_filtered(reason)
            return AggregationResult.FILTERED

        self._evict_stale()

        key = self.store.derive_key(event)
        if self.store.is_already_finalized(key):
            logger.info(
                f"Ignoring late split for already finalized session {key}",
                extra={"session_key": key, "split_sats": event.split_sats},
            )
            self.metrics.record_late_split()
            return AggregationResult.LATE_SPLIT_IGNORED

        session, is_new = self.store.upsert(event)
        if is_new:
            self.metrics.record_session_created()
            logger.info(
                f"Created boost session {key}",
                extra={"session_key": key, "sats": event.sats, "split_sats": event.split_sats},
            )
        else:
            logger.info(
                f"Added split to boost session {key} ({len(session.all_splits)} splits)",
                extra={
                    "session_key": key,
                    "split_sats": event.split_sats,
                    "winning_split_sats": session.winning_split.split_sats,
                },
            )

        result = AggregationResult.COLLECTED
        if event.has_fee:
            self.timer.arm(session, self.grace_seconds)
            self.metrics.record_timer_armed()
            result = AggregationResult.TIMER_ARMED
            logger.info(
                f"Fee-bearing split armed finalize timer for {key} ({self.grace_seconds}s)",
                extra={"session_key": key, "fee_msat": event.fee_msat},
            )

        self.metrics.set_sessions_in_flight(len(self.store))
        await self._save()
        return result

    async def _finalize(self, key: str) -> None:
        """Render, screen and publish a session; never raises."""
        session = self.store.get(key)
        if session is None:
            logger.warning(f"Finalize timer fired for unknown session {key}")
            return

        self.store.mark_finalized(key)
        session.state = SessionState.FINALIZING
        winner = session.winning_split
        outcome = SessionState.FAILED

        logger.info(
            f"Finalizing boost session {key}",
            extra={
                "session_key": key,
                "sats": winner.sats,
                "sender": winner.sender_label,
                "show": winner.show_name,
                "episode": winner.episode_name,
                "total_splits": len(session.all_splits),
            },
        )

        try:
            rendered = await self.renderer.render(winner, session.all_splits)

            if self.similarity.is_duplicate(rendered.content, key):
                outcome = SessionState.SKIPPED
                logger.info(
                    "Skipping duplicate boost post",
                    extra={"session_key": key, "sender": winner.sender_label, "sats": winner.sats},
                )
                return

            outcome = SessionState.POSTED
            report = await self.publisher.publish(rendered.content, rendered.tags, zap=rendered.zap)
            for result in report.results:
                self.metrics.record_relay_result(result.success)

            if report.success:
                self.similarity.record_post(rendered.content, key)
                logger.info(
                    f"Posted boost for session {key}",
                    extra={
                        "session_key": key,
                        "sats": winner.sats,
                        "artist": rendered.artist,
                        **report.to_dict(),
                    },
                )
            else:
                self.metrics.record_error("publisher", "no_relay_accepted")
                logger.error(
                    f"Failed to publish boost for session {key} to any relay",
                    extra={"session_key": key, "sats": winner.sats, **report.to_dict()},
                )

        except Exception as e:
            self.metrics.record_error("aggregator", type(e).__name__)
            logger.error(
                f"Error finalizing boost session {key}: {e}",
                extra={"session_key": key, "sats": winner.sats},
                exc_info=True,
            )

        finally:
            session.state = outcome
            self.store.mark_finalized(key, outcome)
            self.metrics.record_finalized(OUTCOME_LABELS[outcome])

    def _evict_stale(self) -> None:
        evicted = self.store.evict_stale()
        if evicted:
            self.metrics.record_sessions_expired(len(evicted))
            self.metrics.set_sessions_in_flight(len(self.store))

    def _after_cleanup(self, key: str, saved: bool) -> None:
        self.metrics.set_sessions_in_flight(len(self.store))
        if not saved:
            self.metrics.record_error("session_store", "save_failed")

    async def _save(self) -> None:
        if not await self.store.save():
            self.metrics.record_error("session_store", "save_failed")

    def describe_sessions(self) -> list[dict[str, Any]]:
        """Summaries of in-flight sessions for status endpoints."""
        now = self._clock()
        summaries = []
        for session in self.store.sessions():
            summaries.append(
                {
                    "session_key": session.session_key,
                    "state": session.state.value,
                    "sats": session.winning_split.sats,
                    "winning_split_sats": session.winning_split.split_sats,
                    "split_count": len(session.all_splits),
                    "armed": session.armed,
                    "seconds_until_fire": (
                        max(0.0, session.fires_at - now) if session.armed and session.fires_at else None
                    ),
                }
            )
        return summaries
