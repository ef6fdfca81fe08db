"""
Segment discussion endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.auth_schemas import Member
from api.schemas.discussion_schemas import CreatePostRequest, DiscussionResponse, PostResponse
from api.services.group_item_service import GroupItemService, post_response
from api.services.permissions import PermissionProvider, get_permission_provider
from api.utils.auth import get_current_member

discussion_routes = APIRouter()


@discussion_routes.get("/groups/{group_id}/segments/{segment_id}/posts", response_model=DiscussionResponse)
def get_discussion(
    group_id: str,
    segment_id: str,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> DiscussionResponse:
    """Thread for the segment; ``locked`` with no posts until the caller reaches it."""
    service = GroupItemService(db, permissions)
    return service.get_discussion(segment_id, current_member.member_id, group_id=group_id)


@discussion_routes.post(
    "/groups/{group_id}/segments/{segment_id}/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_post(
    group_id: str,
    segment_id: str,
    req: CreatePostRequest,
    current_member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
    permissions: PermissionProvider = Depends(get_permission_provider),
) -> PostResponse:
    service = GroupItemService(db, permissions)
    post = service.post_comment(
        segment_id,
        current_member.member_id,
        req.text,
        parent_post_id=req.parent_post_id,
        group_id=group_id,
    )
    return post_response(post)
