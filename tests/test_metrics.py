"""Tests for curation metrics."""

from datetime import timedelta

from canora.curation.metrics import _median, compute_metrics
from canora.curation.promotion import PromotionEngine
from canora.db.models import PromotionEventModel, WorkModel


def backdate_promotion(db_session, work, to_tier, days_after_creation):
    """Shift a recorded promotion so latency can be measured in days."""
    db_session.expire_all()
    event = (
        db_session.query(PromotionEventModel)
        .filter_by(work_id=work.id, to_tier=to_tier)
        .one()
    )
    created = db_session.get(WorkModel, work.id).created_at
    event.created_at = created + timedelta(days=days_after_creation)
    db_session.commit()


class TestMedian:
    def test_empty(self):
        assert _median([]) is None

    def test_odd(self):
        assert _median([5, 1, 3]) == 3

    def test_even_takes_upper(self):
        assert _median([1, 2, 3, 4]) == 3


class TestComputeMetrics:
    def test_empty_store(self, store):
        metrics = compute_metrics(store)

        assert metrics.total_works == 0
        assert metrics.canon_percentage == 0.0
        assert metrics.median_jam_to_plate_days is None
        assert metrics.median_plate_to_canon_days is None

    def test_counts_by_tier(self, store, works, make_work, curator):
        engine = PromotionEngine(store)
        jam = make_work("Jam")
        plate = make_work("Plate")
        canon = make_work("Canon")
        works.create_work("Child", parent_ids=[jam.id])
        engine.promote(plate.id, "Ready for the plate tier.", curator)
        engine.promote(canon.id, "Ready for the plate tier.", curator)
        engine.promote(canon.id, "Ready for the canon tier.", curator)

        metrics = compute_metrics(store).to_dict()

        assert metrics["total_works"] == 4
        assert metrics["jam_count"] == 2
        assert metrics["plate_count"] == 1
        assert metrics["canon_count"] == 1
        assert metrics["canon_percentage"] == 25.0
        assert metrics["edge_count"] == 1

    def test_promotion_latency_in_whole_days(self, store, db_session, make_work, curator):
        engine = PromotionEngine(store)
        slow, fast = make_work("Slow"), make_work("Fast")
        for work in (slow, fast):
            engine.promote(work.id, "Ready for the plate tier.", curator)
        engine.promote(slow.id, "Ready for the canon tier.", curator)

        backdate_promotion(db_session, slow, "PLATE", 4.5)
        backdate_promotion(db_session, slow, "CANON", 10)
        backdate_promotion(db_session, fast, "PLATE", 1)

        metrics = compute_metrics(store)

        # jam->plate samples are [4, 1]; the upper median is 4
        assert metrics.median_jam_to_plate_days == 4
        # plate->canon: day 10 minus day 4.5
        assert metrics.median_plate_to_canon_days == 5

    def test_timestamps_are_timezone_safe(self, store, make_work, curator):
        work = make_work()
        PromotionEngine(store).promote(work.id, "Ready for the plate tier.", curator)

        metrics = compute_metrics(store)

        assert metrics.median_jam_to_plate_days == 0
