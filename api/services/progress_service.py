"""
Progress tracker: which members have completed which segments.

Marking and unmarking are idempotent. A member double-clicking "done" gets the same
record back instead of an error.
"""

from collections import defaultdict
from typing import Dict, List, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from api.models.models import ProgressRecord, Segment
from api.utils.common import new_id, utcnow
from api.utils.errors import NotFoundError
from api.utils.logger import configure_logging

logger = configure_logging()


class ProgressService:
    """Per (segment, member) completion records."""

    def __init__(self, db: DBSession):
        self.db = db

    def _find(self, segment_id: str, member_id: str) -> ProgressRecord | None:
        return (
            self.db.query(ProgressRecord)
            .filter(ProgressRecord.segment_id == segment_id, ProgressRecord.member_id == member_id)
            .first()
        )

    def mark_complete(self, segment_id: str, member_id: str) -> ProgressRecord:
        """Record that the member finished the segment; returns the existing record if already marked."""
        existing = self._find(segment_id, member_id)
        if existing is not None:
            return existing

        if self.db.query(Segment.id).filter(Segment.id == segment_id).first() is None:
            raise NotFoundError(f"Segment {segment_id} not found")

        record = ProgressRecord(
            id=new_id(),
            segment_id=segment_id,
            member_id=member_id,
            completed=True,
            completed_at=utcnow(),
        )
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent request inserted the same pair first; keep theirs.
            self.db.rollback()
            winner = self._find(segment_id, member_id)
            if winner is None:
                raise
            return winner
        self.db.refresh(record)
        logger.info("progress marked segment=%s member=%s", segment_id, member_id)
        return record

    def unmark(self, segment_id: str, member_id: str) -> bool:
        """Remove the member's record. Returns False (no error) when there was none."""
        record = self._find(segment_id, member_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        logger.info("progress unmarked segment=%s member=%s", segment_id, member_id)
        return True

    def progress_for_item(self, group_id: str, item_id: str) -> Dict[str, List[ProgressRecord]]:
        """
        Completers of every segment of an item in one query.
        Every segment appears as a key; lists are ordered earliest completion first.
        """
        segment_ids = [
            sid
            for (sid,) in self.db.query(Segment.id)
            .filter(Segment.group_id == group_id, Segment.item_id == item_id)
            .all()
        ]
        by_segment: Dict[str, List[ProgressRecord]] = defaultdict(list)
        if segment_ids:
            records = (
                self.db.query(ProgressRecord)
                .filter(ProgressRecord.segment_id.in_(segment_ids))
                .order_by(ProgressRecord.completed_at.asc(), ProgressRecord.id.asc())
                .all()
            )
            for record in records:
                by_segment[record.segment_id].append(record)
        return {sid: by_segment.get(sid, []) for sid in segment_ids}

    def completed_segment_ids(self, group_id: str, item_id: str, member_id: str) -> Set[str]:
        rows = (
            self.db.query(ProgressRecord.segment_id)
            .join(Segment, Segment.id == ProgressRecord.segment_id)
            .filter(
                Segment.group_id == group_id,
                Segment.item_id == item_id,
                ProgressRecord.member_id == member_id,
            )
            .all()
        )
        return {sid for (sid,) in rows}

    def completers(self, segment_id: str) -> List[ProgressRecord]:
        """Roster of members who completed the segment, earliest first."""
        return (
            self.db.query(ProgressRecord)
            .filter(ProgressRecord.segment_id == segment_id)
            .order_by(ProgressRecord.completed_at.asc(), ProgressRecord.id.asc())
            .all()
        )
