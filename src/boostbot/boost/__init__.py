"""Boost session aggregation, duplicate screening and content rendering."""

from .aggregator import BoostAggregator
from .content import BoostContentRenderer, MentionDirectory, RenderedBoost
from .models import AggregationResult, BoostSession, RecentPost, SessionState
from .similarity import SimilarityChecker, content_similarity
from .store import SessionStore, derive_session_key
from .timer import SessionTimer

__all__ = [
    "AggregationResult",
    "BoostAggregator",
    "BoostContentRenderer",
    "BoostSession",
    "MentionDirectory",
    "RecentPost",
    "RenderedBoost",
    "SessionState",
    "SessionStore",
    "SessionTimer",
    "SimilarityChecker",
    "content_similarity",
    "derive_session_key",
]
