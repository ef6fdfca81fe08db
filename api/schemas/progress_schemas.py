"""
Segment progress schemas (per-member completion records and batch views).
"""

from pydantic import BaseModel


class ProgressRecordResponse(BaseModel):
    id: str
    segment_id: str
    member_id: str
    completed: bool
    completed_at: str  # ISO


class ItemProgressResponse(BaseModel):
    """Completers of every segment of an item, keyed by segment id."""
    item_id: str
    progress_by_segment: dict[str, list[ProgressRecordResponse]]


class RosterResponse(BaseModel):
    segment_id: str
    completers: list[ProgressRecordResponse]
