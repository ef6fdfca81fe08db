"""
Segment schemas: range definitions, create/update requests, responses.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class RangeKind(str, Enum):
    """How a segment's range bounds are measured."""
    PAGES = "pages"
    PERCENT = "percent"
    CHAPTERS = "chapters"
    WHOLE = "whole"


class SegmentRange(BaseModel):
    kind: RangeKind
    start: Optional[float] = None
    end: Optional[float] = None


class CreateSegmentRequest(BaseModel):
    label: str
    range: SegmentRange
    order: Optional[int] = None  # appended after the current last segment when omitted
    due_date: Optional[datetime] = None


class UpdateSegmentRequest(BaseModel):
    """Partial update. Only fields present in the body are applied; due_date=null clears it."""
    label: Optional[str] = None
    range: Optional[SegmentRange] = None
    order: Optional[int] = None
    due_date: Optional[datetime] = None


class SegmentResponse(BaseModel):
    id: str
    group_id: str
    item_id: str
    label: str
    order: int
    range_kind: RangeKind
    range_start: Optional[float] = None
    range_end: Optional[float] = None
    range_label: str
    due_date: Optional[str] = None  # ISO
    created_by: str
    created_at: str
    updated_at: str


class SegmentListResponse(BaseModel):
    segments: list[SegmentResponse]
