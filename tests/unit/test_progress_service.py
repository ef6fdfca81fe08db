"""Unit tests for the progress tracker (in-memory DB)."""
import pytest

from api.models.models import ProgressRecord
from api.schemas.segment_schemas import RangeKind
from api.services.progress_service import ProgressService
from api.utils.errors import NotFoundError

GROUP_ID = "did:plc:bookclub"
ITEM_ID = "item-dune"
ALICE = "did:plc:alice"
BOB = "did:plc:bob"


@pytest.mark.unit
class TestMarkComplete:
    def test_creates_completed_record(self, make_segment, db_session):
        segment = make_segment()
        record = ProgressService(db_session).mark_complete(segment.id, ALICE)
        assert record.segment_id == segment.id
        assert record.member_id == ALICE
        assert record.completed is True
        assert record.completed_at is not None

    def test_idempotent(self, make_segment, db_session):
        segment = make_segment()
        tracker = ProgressService(db_session)
        first = tracker.mark_complete(segment.id, ALICE)
        second = tracker.mark_complete(segment.id, ALICE)
        assert second.id == first.id
        assert second.completed_at == first.completed_at
        assert db_session.query(ProgressRecord).count() == 1

    def test_missing_segment(self, db_session):
        with pytest.raises(NotFoundError):
            ProgressService(db_session).mark_complete("nope", ALICE)

    def test_concurrent_duplicate_returns_existing_record(self, make_segment, db_session, monkeypatch):
        segment = make_segment()
        tracker = ProgressService(db_session)
        winner_id = tracker.mark_complete(segment.id, ALICE).id

        # Simulate a request that checked before the other one committed.
        real_find = tracker._find
        calls = []

        def stale_find(segment_id, member_id):
            calls.append(segment_id)
            return None if len(calls) == 1 else real_find(segment_id, member_id)

        monkeypatch.setattr(tracker, "_find", stale_find)
        record = tracker.mark_complete(segment.id, ALICE)
        assert record.id == winner_id
        assert db_session.query(ProgressRecord).count() == 1

    def test_members_are_independent(self, make_segment, db_session):
        segment = make_segment()
        tracker = ProgressService(db_session)
        tracker.mark_complete(segment.id, ALICE)
        tracker.mark_complete(segment.id, BOB)
        tracker.unmark(segment.id, ALICE)
        assert [r.member_id for r in tracker.completers(segment.id)] == [BOB]


@pytest.mark.unit
class TestUnmark:
    def test_never_marked_is_noop(self, make_segment, db_session):
        segment = make_segment()
        assert ProgressService(db_session).unmark(segment.id, ALICE) is False

    def test_unknown_segment_is_noop(self, db_session):
        assert ProgressService(db_session).unmark("nope", ALICE) is False

    def test_deletes_record(self, make_segment, db_session):
        segment = make_segment()
        tracker = ProgressService(db_session)
        tracker.mark_complete(segment.id, ALICE)
        assert tracker.unmark(segment.id, ALICE) is True
        assert db_session.query(ProgressRecord).count() == 0
        assert tracker.unmark(segment.id, ALICE) is False

    def test_mark_after_unmark_creates_fresh_record(self, make_segment, db_session):
        segment = make_segment()
        tracker = ProgressService(db_session)
        first = tracker.mark_complete(segment.id, ALICE)
        first_id = first.id
        tracker.unmark(segment.id, ALICE)
        again = tracker.mark_complete(segment.id, ALICE)
        assert again.id != first_id


@pytest.mark.unit
class TestItemProgress:
    def test_batch_includes_every_segment(self, three_segments, db_session):
        a, b, c = three_segments
        tracker = ProgressService(db_session)
        tracker.mark_complete(a.id, ALICE)
        tracker.mark_complete(a.id, BOB)
        tracker.mark_complete(c.id, BOB)

        by_segment = tracker.progress_for_item(GROUP_ID, ITEM_ID)
        assert set(by_segment) == {a.id, b.id, c.id}
        assert sorted(r.member_id for r in by_segment[a.id]) == [ALICE, BOB]
        assert by_segment[b.id] == []
        assert [r.member_id for r in by_segment[c.id]] == [BOB]

    def test_empty_item(self, db_session):
        assert ProgressService(db_session).progress_for_item(GROUP_ID, "no-such-item") == {}

    def test_completed_segment_ids_scoped_to_member_and_item(self, make_segment, db_session):
        mine = make_segment(label="mine", order=1)
        later = make_segment(label="later", order=2)
        elsewhere = make_segment(label="other item", item_id="item-other", kind=RangeKind.WHOLE)
        tracker = ProgressService(db_session)
        tracker.mark_complete(mine.id, ALICE)
        tracker.mark_complete(later.id, BOB)
        tracker.mark_complete(elsewhere.id, ALICE)
        assert tracker.completed_segment_ids(GROUP_ID, ITEM_ID, ALICE) == {mine.id}
        assert tracker.completed_segment_ids(GROUP_ID, ITEM_ID, BOB) == {later.id}
