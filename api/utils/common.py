"""
Common utility functions used across services and routes.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session


def utcnow() -> datetime:
    """Current time as naive UTC, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalise an aware datetime to naive UTC; naive values are assumed UTC already."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def iso_format(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO string with Z suffix."""
    if dt is None:
        return None
    return to_naive_utc(dt).isoformat() + "Z"


def new_id() -> str:
    return str(uuid4())


def next_seq(segment_id: str, db: Session) -> int:
    """Get next post sequence number for a segment."""
    from api.models.models import Post
    last = (
        db.query(Post)
        .filter(Post.segment_id == segment_id)
        .order_by(Post.seq.desc())
        .first()
    )
    return int(last.seq) + 1 if last else 1


def format_number(value: Optional[float]) -> str:
    """Render a range bound without a trailing .0 for whole numbers."""
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"
