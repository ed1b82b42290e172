from types import SimpleNamespace

from curator.services.review_session import ReviewSession


def chunks(*statuses):
    return [SimpleNamespace(chunk_index=i, review_status=s) for i, s in enumerate(statuses)]


class TestReviewSession:

    def test_stats_count_enriching_as_pending(self):
        session = ReviewSession(chunks("approved", "rejected", "pending", "enriching", "filtered"))

        assert session.stats == {
            "total": 5,
            "approved": 1,
            "rejected": 1,
            "pending": 2,
            "filtered": 1,
        }
        assert not session.is_complete

    def test_navigation_stays_in_bounds(self):
        session = ReviewSession(chunks("pending", "pending", "pending"))

        assert session.current.chunk_index == 0
        assert not session.has_previous
        assert session.previous().chunk_index == 0

        session.next()
        session.next()
        assert session.current.chunk_index == 2
        assert not session.has_next
        assert session.next().chunk_index == 2

    def test_go_to_clamps(self):
        session = ReviewSession(chunks("pending", "pending", "pending"))

        assert session.go_to(10).chunk_index == 2
        assert session.go_to(-4).chunk_index == 0
        assert session.go_to(1).chunk_index == 1

    def test_initial_index_clamped(self):
        assert ReviewSession(chunks("pending", "pending"), index=9).index == 1

    def test_progress_counts_approved_and_rejected(self):
        session = ReviewSession(chunks("approved", "rejected", "filtered", "pending"))

        assert session.progress == 0.5

    def test_complete_when_nothing_pending(self):
        session = ReviewSession(chunks("approved", "filtered", "rejected"))

        assert session.is_complete
        assert session.progress == 2 / 3

    def test_empty_session(self):
        session = ReviewSession([])

        assert session.current is None
        assert session.go_to(3) is None
        assert session.progress == 0.0
        assert not session.is_complete
        assert session.to_dict()["stats"]["total"] == 0
