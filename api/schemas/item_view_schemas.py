"""
Member-facing item view: segments with per-member progress and visibility.
"""

from typing import Optional

from pydantic import BaseModel

from api.schemas.permission_schemas import CollectionPermission
from api.schemas.segment_schemas import RangeKind


class SegmentView(BaseModel):
    id: str
    label: str
    order: int
    range_kind: RangeKind
    range_label: str
    due_date: Optional[str] = None  # ISO
    completed_count: int
    completers: list[str]  # member ids, earliest first
    i_completed: bool
    is_due_overdue: bool
    can_view_discussion: bool


class ItemPermissions(BaseModel):
    segment: CollectionPermission
    post: CollectionPermission


class ItemViewResponse(BaseModel):
    group_id: str
    item_id: str
    segments: list[SegmentView]
    completed_count: int
    total: int
    overall_progress: float  # completed_count / total, 0.0 for an item without segments
    permissions: ItemPermissions
