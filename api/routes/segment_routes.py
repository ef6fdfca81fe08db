"""
Segment and item-view endpoints.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.auth_schemas import Member
from api.schemas.item_view_schemas import ItemViewResponse
from api.schemas.segment_schemas import (
    CreateSegmentRequest,
    SegmentListResponse,
    SegmentResponse,
    UpdateSegmentRequest,
)
from api.services.group_item_service import GroupItemService, segment_response
from api.services.permissions import PermissionProvider, get_permission_provider
from api.utils.auth import get_current_member

segment_routes = APIRouter()


@segment_routes.get("/groups/{group_id}/items/{item_id}", response_model=ItemViewResponse)
def get_item_view(
    group_id: str,
    item_id: str,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> ItemViewResponse:
    """Segments of an item with the caller's progress, overdue flags and discussion access."""
    service = GroupItemService(db, permissions)
    return service.get_item_view(group_id, item_id, current_member.member_id)


@segment_routes.get("/groups/{group_id}/items/{item_id}/segments", response_model=SegmentListResponse)
def list_segments(
    group_id: str,
    item_id: str,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> SegmentListResponse:
    service = GroupItemService(db, permissions)
    segments = service.list_segments(group_id, item_id, current_member.member_id)
    return SegmentListResponse(segments=[segment_response(s) for s in segments])


@segment_routes.post(
    "/groups/{group_id}/items/{item_id}/segments",
    response_model=SegmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_segment(
    group_id: str,
    item_id: str,
    req: CreateSegmentRequest,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> SegmentResponse:
    """Create a segment. Without ``order`` it goes after the current last segment."""
    service = GroupItemService(db, permissions)
    segment = service.create_segment(
        group_id,
        item_id,
        current_member.member_id,
        label=req.label,
        segment_range=req.range,
        order=req.order,
        due_date=req.due_date,
    )
    return segment_response(segment)


@segment_routes.put("/groups/{group_id}/segments/{segment_id}", response_model=SegmentResponse)
def update_segment(
    group_id: str,
    segment_id: str,
    req: UpdateSegmentRequest,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> SegmentResponse:
    """Partial update: only fields present in the body change."""
    service = GroupItemService(db, permissions)
    segment = service.update_segment(
        segment_id,
        current_member.member_id,
        req.model_dump(exclude_unset=True),
        group_id=group_id,
    )
    return segment_response(segment)


@segment_routes.delete("/groups/{group_id}/segments/{segment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_segment(
    group_id: str,
    segment_id: str,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> Response:
    """Delete a segment with its progress records and discussion."""
    service = GroupItemService(db, permissions)
    service.delete_segment(segment_id, current_member.member_id, group_id=group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
