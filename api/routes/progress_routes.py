"""
Segment progress endpoints: mark, unmark, batch progress and roster.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.auth_schemas import Member
from api.schemas.item_view_schemas import ItemViewResponse
from api.schemas.progress_schemas import ItemProgressResponse, RosterResponse
from api.services.group_item_service import GroupItemService, progress_response
from api.services.permissions import PermissionProvider, get_permission_provider
from api.utils.auth import get_current_member

progress_routes = APIRouter()


@progress_routes.get("/groups/{group_id}/items/{item_id}/progress", response_model=ItemProgressResponse)
def get_item_progress(
    group_id: str,
    item_id: str,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> ItemProgressResponse:
    """Completers of every segment of the item, in one response."""
    service = GroupItemService(db, permissions)
    by_segment = service.item_progress(group_id, item_id, current_member.member_id)
    return ItemProgressResponse(
        item_id=item_id,
        progress_by_segment={
            sid: [progress_response(r) for r in records] for sid, records in by_segment.items()
        },
    )


@progress_routes.post("/groups/{group_id}/segments/{segment_id}/progress", response_model=ItemViewResponse)
def mark_segment_complete(
    group_id: str,
    segment_id: str,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> ItemViewResponse:
    """Mark the segment done for the caller. Repeating the call changes nothing."""
    service = GroupItemService(db, permissions)
    return service.mark_and_refresh(segment_id, current_member.member_id, group_id=group_id)


@progress_routes.delete("/groups/{group_id}/segments/{segment_id}/progress", response_model=ItemViewResponse)
def unmark_segment_complete(
    group_id: str,
    segment_id: str,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> ItemViewResponse:
    service = GroupItemService(db, permissions)
    return service.unmark_and_refresh(segment_id, current_member.member_id, group_id=group_id)


@progress_routes.get("/groups/{group_id}/segments/{segment_id}/roster", response_model=RosterResponse)
def get_roster(
    group_id: str,
    segment_id: str,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> RosterResponse:
    service = GroupItemService(db, permissions)
    records = service.roster(segment_id, current_member.member_id, group_id=group_id)
    return RosterResponse(segment_id=segment_id, completers=[progress_response(r) for r in records])
