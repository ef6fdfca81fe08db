"""
API schemas package. Import from submodules or from this package.

Example:
    from api.schemas import SegmentResponse, ItemViewResponse
    from api.schemas.segment_schemas import SegmentResponse
"""

from api.schemas.auth_schemas import AuthTokenPayload, Member
from api.schemas.permission_schemas import CollectionPermission, ResourceType
from api.schemas.segment_schemas import (
    RangeKind,
    SegmentRange,
    CreateSegmentRequest,
    UpdateSegmentRequest,
    SegmentResponse,
    SegmentListResponse,
)
from api.schemas.progress_schemas import (
    ProgressRecordResponse,
    ItemProgressResponse,
    RosterResponse,
)
from api.schemas.discussion_schemas import (
    CreatePostRequest,
    PostResponse,
    ThreadPost,
    DiscussionResponse,
)
from api.schemas.item_view_schemas import (
    SegmentView,
    ItemPermissions,
    ItemViewResponse,
)

__all__ = [
    # auth
    "AuthTokenPayload",
    "Member",
    # permissions
    "CollectionPermission",
    "ResourceType",
    # segments
    "RangeKind",
    "SegmentRange",
    "CreateSegmentRequest",
    "UpdateSegmentRequest",
    "SegmentResponse",
    "SegmentListResponse",
    # progress
    "ProgressRecordResponse",
    "ItemProgressResponse",
    "RosterResponse",
    # discussion
    "CreatePostRequest",
    "PostResponse",
    "ThreadPost",
    "DiscussionResponse",
    # item view
    "SegmentView",
    "ItemPermissions",
    "ItemViewResponse",
]
