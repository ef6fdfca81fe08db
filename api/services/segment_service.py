"""
Segment store: the ordered segments a group reads or watches an item in.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from api.models.models import Segment
from api.schemas.segment_schemas import RangeKind, SegmentRange
from api.utils.common import format_number, new_id, to_naive_utc, utcnow
from api.utils.errors import ConflictError, NotFoundError, ValidationError
from api.utils.logger import configure_logging, log_request

logger = configure_logging()

_UPDATABLE_FIELDS = {"label", "range", "order", "due_date"}


def normalize_range(rng: SegmentRange) -> tuple[RangeKind, float, float]:
    """
    Validate a range and return ``(kind, start, end)``.

    ``whole`` always becomes 0-100. Other kinds need a start; a missing end means a
    single chapter/page/percent point.
    """
    if rng.kind == RangeKind.WHOLE:
        return RangeKind.WHOLE, 0.0, 100.0

    if rng.start is None:
        raise ValidationError(f"range_start is required for '{rng.kind.value}' segments")
    start = float(rng.start)
    end = float(rng.end) if rng.end is not None else start

    if start < 0 or end < 0:
        raise ValidationError("range bounds must not be negative")
    if end < start:
        raise ValidationError("range_end must not be before range_start")
    if rng.kind == RangeKind.PERCENT and end > 100:
        raise ValidationError("percent ranges must lie within 0-100")
    if rng.kind in (RangeKind.PAGES, RangeKind.CHAPTERS) and not (start.is_integer() and end.is_integer()):
        raise ValidationError(f"{rng.kind.value} ranges take whole numbers")
    return rng.kind, start, end


def describe_range(kind: str, start: Optional[float], end: Optional[float]) -> str:
    """Human-readable range, e.g. 'Chapters 1–5', 'Page 7', 'Entire work'."""
    kind = RangeKind(kind)
    if kind == RangeKind.WHOLE:
        return "Entire work"
    if start is None:
        return ""
    single = end is None or end == start
    if kind == RangeKind.CHAPTERS:
        if single:
            return f"Chapter {format_number(start)}"
        return f"Chapters {format_number(start)}–{format_number(end)}"
    if kind == RangeKind.PAGES:
        if single:
            return f"Page {format_number(start)}"
        return f"Pages {format_number(start)}–{format_number(end)}"
    if start == 0 and end == 100:
        return "Entire work"
    if single:
        return f"{format_number(start)}%"
    return f"{format_number(start)}%–{format_number(end)}%"


def _clean_label(label: Optional[str]) -> str:
    cleaned = (label or "").strip()
    if not cleaned:
        raise ValidationError("Segment label must not be empty")
    return cleaned


class SegmentService:
    """Create, update, delete and list segments of an item."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_segment(self, segment_id: str) -> Segment:
        segment = self.db.query(Segment).filter(Segment.id == segment_id).first()
        if segment is None:
            raise NotFoundError(f"Segment {segment_id} not found")
        return segment

    def list_segments(self, group_id: str, item_id: str) -> list[Segment]:
        return (
            self.db.query(Segment)
            .filter(Segment.group_id == group_id, Segment.item_id == item_id)
            .order_by(Segment.order_index.asc())
            .all()
        )

    def _next_order(self, group_id: str, item_id: str) -> int:
        current = (
            self.db.query(func.max(Segment.order_index))
            .filter(Segment.group_id == group_id, Segment.item_id == item_id)
            .scalar()
        )
        return int(current) + 1 if current is not None else 1

    def _order_taken(self, group_id: str, item_id: str, order: int, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Segment.id).filter(
            Segment.group_id == group_id,
            Segment.item_id == item_id,
            Segment.order_index == order,
        )
        if exclude_id is not None:
            query = query.filter(Segment.id != exclude_id)
        return query.first() is not None

    def _commit(self, what: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"{what} conflicts with an existing segment order")

    def create_segment(
        self,
        group_id: str,
        item_id: str,
        label: str,
        segment_range: SegmentRange,
        created_by: str,
        order: Optional[int] = None,
        due_date: Optional[datetime] = None,
    ) -> Segment:
        """Create a segment; without ``order`` it is appended after the current last one."""
        cleaned = _clean_label(label)
        kind, start, end = normalize_range(segment_range)

        if order is None:
            order = self._next_order(group_id, item_id)
        elif self._order_taken(group_id, item_id, order):
            raise ConflictError(f"Order {order} is already used by another segment of this item")

        now = utcnow()
        segment = Segment(
            id=new_id(),
            group_id=group_id,
            item_id=item_id,
            label=cleaned,
            order_index=order,
            range_kind=kind.value,
            range_start=start,
            range_end=end,
            due_date=to_naive_utc(due_date),
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self.db.add(segment)
        self._commit("Segment")
        self.db.refresh(segment)
        logger.info("segment created id=%s group=%s item=%s order=%s", segment.id, group_id, item_id, order)
        return segment

    def update_segment(self, segment_id: str, patch: Dict[str, Any]) -> Segment:
        """
        Apply a partial update. ``patch`` holds only the fields to change
        (label, range, order, due_date); ``due_date: None`` clears the due date.
        """
        segment = self.get_segment(segment_id)
        unknown = set(patch) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown segment fields: {', '.join(sorted(unknown))}")

        # Validate the whole patch before assigning anything.
        changes: Dict[str, Any] = {}
        if "label" in patch:
            changes["label"] = _clean_label(patch["label"])
        if "range" in patch:
            rng = patch["range"]
            if rng is None:
                raise ValidationError("range must not be null")
            if isinstance(rng, dict):
                rng = SegmentRange(**rng)
            kind, start, end = normalize_range(rng)
            changes.update(range_kind=kind.value, range_start=start, range_end=end)
        if "order" in patch:
            order = patch["order"]
            if order is None:
                raise ValidationError("order must not be null")
            if self._order_taken(segment.group_id, segment.item_id, order, exclude_id=segment.id):
                raise ConflictError(f"Order {order} is already used by another segment of this item")
            changes["order_index"] = order
        if "due_date" in patch:
            changes["due_date"] = to_naive_utc(patch["due_date"])

        for field, value in changes.items():
            setattr(segment, field, value)

        segment.updated_at = utcnow()
        self.db.add(segment)
        self._commit("Segment update")
        self.db.refresh(segment)
        logger.info("segment updated id=%s fields=%s", segment.id, ",".join(sorted(patch)))
        return segment

    def delete_segment(self, segment_id: str) -> None:
        """
        Delete a segment together with its progress records and every post in its
        thread. One transaction: either all of it goes or nothing does.
        """
        segment = self.get_segment(segment_id)
        with log_request(logger, f"delete_segment id={segment_id}"):
            try:
                self.db.delete(segment)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.exception("segment delete rolled back id=%s", segment_id)
                raise ConflictError(f"Segment {segment_id} could not be deleted; no changes were applied") from e
