"""Unit tests for near-duplicate screening."""

import pytest

from boostbot.boost.similarity import SimilarityChecker, content_similarity, normalize_content


class TestContentSimilarity:
    """Test the similarity measure."""

    def test_normalize_collapses_whitespace_and_case(self):
        """Test normalization lowercases, collapses whitespace and trims."""
        assert normalize_content("  Great   SHOW\n\n⚡ 100 sats ") == "great show ⚡ 100 sats"

    def test_identical_after_normalization(self):
        """Test texts equal after normalization are fully similar."""
        assert content_similarity("Great Show", "great   show") == 1.0

    def test_both_empty(self):
        """Test two empty texts are identical."""
        assert content_similarity("", "   ") == 1.0

    def test_one_side_empty(self):
        """Test an empty text is dissimilar to a non-empty one."""
        assert content_similarity("", "hello") == 0.0
        assert content_similarity("hello", "") == 0.0

    def test_jaccard_of_word_sets(self):
        """Test similarity is intersection over union of words."""
        # {a, b, c} vs {b, c, d}: 2 common, 4 total
        assert content_similarity("a b c", "b c d") == pytest.approx(0.5)

    def test_disjoint(self):
        """Test texts without shared words."""
        assert content_similarity("one two", "three four") == 0.0


class TestSimilarityChecker:
    """Test the rolling duplicate window."""

    def test_identical_content_other_session_is_duplicate(self, clock):
        """Test identical message twice within two minutes is suppressed."""
        checker = SimilarityChecker(clock=clock)
        checker.record_post("Great show!\n\n⚡ 5000 sats", "session-a")

        clock.advance(120)

        assert checker.is_duplicate("Great show!\n\n⚡ 5000 sats", "session-b") is True

    def test_identical_content_after_window_is_not_duplicate(self, clock):
        """Test identical message ten minutes later is published."""
        checker = SimilarityChecker(clock=clock)
        checker.record_post("Great show!\n\n⚡ 5000 sats", "session-a")

        clock.advance(600)

        assert checker.is_duplicate("Great show!\n\n⚡ 5000 sats", "session-b") is False
        assert checker.recent_posts() == []

    def test_same_session_is_skipped(self, clock):
        """Test a session never matches its own post."""
        checker = SimilarityChecker(clock=clock)
        checker.record_post("Great show!", "session-a")

        assert checker.is_duplicate("Great show!", "session-a") is False

    def test_below_threshold_is_published(self, clock):
        """Test different content passes the screen."""
        checker = SimilarityChecker(clock=clock)
        checker.record_post("Great show! ⚡ 5000 sats", "session-a")

        assert checker.is_duplicate("Loved the interview ⚡ 2100 sats", "session-b") is False

    def test_threshold_is_exclusive(self, clock):
        """Test similarity equal to the threshold is not a duplicate."""
        checker = SimilarityChecker(threshold=0.5, clock=clock)
        checker.record_post("a b c", "session-a")

        assert checker.is_duplicate("b c d", "session-b") is False

    def test_only_newest_posts_compared(self, clock):
        """Test posts older than the newest compare_count are ignored."""
        checker = SimilarityChecker(compare_count=2, clock=clock)
        checker.record_post("first boost message", "s1")
        checker.record_post("second boost message entirely different words", "s2")
        checker.record_post("third one also unrelated text here", "s3")

        assert checker.is_duplicate("first boost message", "s4") is False
        assert checker.is_duplicate("third one also unrelated text here", "s4") is True

    def test_count_cap_evicts_oldest(self, clock):
        """Test the recent post list never exceeds its cap."""
        checker = SimilarityChecker(max_posts=3, clock=clock)
        for i in range(5):
            checker.record_post(f"post {i}", f"s{i}")

        posts = checker.recent_posts()
        assert len(posts) == 3
        assert [p.session_key for p in posts] == ["s2", "s3", "s4"]

    def test_record_post_stamps_time(self, clock):
        """Test recorded posts carry the clock time in millis."""
        checker = SimilarityChecker(clock=clock)
        checker.record_post("hello", "s1")

        assert checker.recent_posts()[0].posted_at_millis == int(clock.now * 1000)

    def test_is_duplicate_does_not_record(self, clock):
        """Test checking has no side effect on the recent list."""
        checker = SimilarityChecker(clock=clock)
        checker.is_duplicate("hello", "s1")

        assert checker.recent_posts() == []
