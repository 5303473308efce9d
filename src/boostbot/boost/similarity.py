"""
Near-duplicate screening of outgoing boost posts.
"""
import logging
import time
from collections import deque
from typing import Callable

from ..constants import (
    DEFAULT_DUPLICATE_COMPARE_COUNT,
    DEFAULT_DUPLICATE_WINDOW_SECONDS,
    DEFAULT_RECENT_POST_CAP,
    DEFAULT_SIMILARITY_THRESHOLD,
)
from .models import RecentPost

logger = logging.getLogger(__name__)


def normalize_content(content: str) -> str:
    """Lowercase, collapse whitespace and trim."""
    return " ".join(content.lower().split())


def content_similarity(first: str, second: str) -> float:
    """
    Jaccard similarity of the word sets of two texts.

    Args:
        first: Text to compare
        second: Text to compare against

    Returns:
        1.0 for identical normalized text, otherwise |common| / |union| of words
    """
    norm1 = normalize_content(first)
    norm2 = normalize_content(second)

    if norm1 == norm2:
        return 1.0
    if not norm1 or not norm2:
        return 0.0

    words1 = set(norm1.split(" "))
    words2 = set(norm2.split(" "))
    union = len(words1 | words2)
    if union == 0:
        return 0.0
    return len(words1 & words2) / union


class SimilarityChecker:
    """
    Rolling window of recent posts used to suppress near-duplicate reposts.

    Posts older than the window are evicted and at most ``max_posts`` are kept.
    Only the newest ``compare_count`` posts are compared against a candidate.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_DUPLICATE_WINDOW_SECONDS,
        compare_count: int = DEFAULT_DUPLICATE_COMPARE_COUNT,
        max_posts: int = DEFAULT_RECENT_POST_CAP,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the checker.

        Args:
            window_seconds: Age after which a recent post no longer counts
            compare_count: Number of newest posts compared against a candidate
            max_posts: Maximum recent posts retained
            threshold: Similarity above which a candidate is a duplicate
            clock: Source of epoch seconds
        """
        self.window_seconds = window_seconds
        self.compare_count = compare_count
        self.max_posts = max_posts
        self.threshold = threshold
        self._clock = clock
        self._posts: deque[RecentPost] = deque()

    def _now_millis(self) -> int:
        return int(self._clock() * 1000)

    def _evict(self, now_millis: int) -> None:
        cutoff = now_millis - int(self.window_seconds * 1000)
        while self._posts and self._posts[0].posted_at_millis < cutoff:
            self._posts.popleft()
        while len(self._posts) > self.max_posts:
            self._posts.popleft()

    def is_duplicate(self, content: str, session_key: str) -> bool:
        """
        Check a candidate against the newest recent posts of other sessions.

        Args:
            content: Rendered post content
            session_key: Session the candidate belongs to

        Returns:
            True if the candidate should be suppressed
        """
        self._evict(self._now_millis())

        candidates = list(self._posts)[-self.compare_count:] if self.compare_count > 0 else []
        for post in candidates:
            if post.session_key == session_key:
                continue

            similarity = content_similarity(content, post.content)
            if similarity > self.threshold:
                logger.info(
                    f"Duplicate content detected ({round(similarity * 100)}% similarity)",
                    extra={
                        "session_key": session_key,
                        "previous_session_key": post.session_key,
                        "similarity": similarity,
                    },
                )
                return True

        return False

    def record_post(self, content: str, session_key: str) -> None:
        """
        Remember published content for later duplicate checks.

        Args:
            content: Content that was published
            session_key: Session it was published for
        """
        now = self._now_millis()
        self._posts.append(RecentPost(content=content, posted_at_millis=now, session_key=session_key))
        self._evict(now)
        logger.debug(
            "Added post to recent tracking",
            extra={"session_key": session_key, "recent_posts": len(self._posts)},
        )

    def recent_posts(self) -> list[RecentPost]:
        """Current recent posts, oldest first."""
        return list(self._posts)
