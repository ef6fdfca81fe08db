"""
Group item service: the member-facing operations on a group item's segments.

Every call is checked against the permission collaborator, and discussion contents
only leave this service when the spoiler gate lets the member see them.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session as DBSession

from api.models.models import Post, ProgressRecord, Segment
from api.schemas.discussion_schemas import DiscussionResponse, PostResponse
from api.schemas.item_view_schemas import ItemPermissions, ItemViewResponse, SegmentView
from api.schemas.permission_schemas import CollectionPermission, ResourceType
from api.schemas.progress_schemas import ProgressRecordResponse
from api.schemas.segment_schemas import RangeKind, SegmentRange, SegmentResponse
from api.services.discussion_service import DiscussionService
from api.services.permissions import PermissionProvider
from api.services.progress_service import ProgressService
from api.services.segment_service import SegmentService, describe_range
from api.services.visibility import can_view, visible_segment_ids
from api.utils.common import iso_format, utcnow
from api.utils.errors import NotFoundError, PermissionDeniedError, ValidationError
from api.utils.logger import configure_logging

logger = configure_logging()

_ACTIONS = {
    "create": "can_create",
    "read": "can_read",
    "update": "can_update",
    "delete": "can_delete",
}


def segment_response(segment: Segment) -> SegmentResponse:
    return SegmentResponse(
        id=segment.id,
        group_id=segment.group_id,
        item_id=segment.item_id,
        label=segment.label,
        order=segment.order_index,
        range_kind=RangeKind(segment.range_kind),
        range_start=segment.range_start,
        range_end=segment.range_end,
        range_label=describe_range(segment.range_kind, segment.range_start, segment.range_end),
        due_date=iso_format(segment.due_date),
        created_by=segment.created_by,
        created_at=iso_format(segment.created_at),
        updated_at=iso_format(segment.updated_at),
    )


def progress_response(record: ProgressRecord) -> ProgressRecordResponse:
    return ProgressRecordResponse(
        id=record.id,
        segment_id=record.segment_id,
        member_id=record.member_id,
        completed=bool(record.completed),
        completed_at=iso_format(record.completed_at),
    )


def post_response(post: Post) -> PostResponse:
    return PostResponse(
        id=post.id,
        segment_id=post.segment_id,
        parent_post_id=post.parent_post_id,
        author_id=post.author_id,
        text=post.text,
        created_at=iso_format(post.created_at),
    )


class GroupItemService:
    """Orchestrates segment store, progress tracker, discussion store and the gate."""

    def __init__(
        self,
        db: DBSession,
        permissions: PermissionProvider,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.permissions = permissions
        self.clock = clock
        self.segments = SegmentService(db)
        self.progress = ProgressService(db)
        self.discussion = DiscussionService(db)

    # ----- permission plumbing -----

    def _permission(self, member_id: str, group_id: str, resource_type: ResourceType) -> CollectionPermission:
        return self.permissions.get_permissions(member_id, group_id, resource_type)

    def _require(self, member_id: str, group_id: str, resource_type: ResourceType, action: str) -> None:
        permission = self._permission(member_id, group_id, resource_type)
        if not getattr(permission, _ACTIONS[action]):
            logger.warning(
                "permission denied member=%s group=%s resource=%s action=%s",
                member_id, group_id, resource_type.value, action,
            )
            raise PermissionDeniedError(f"Not allowed to {action} {resource_type.value}s in this group")

    def _segment(self, segment_id: str, group_id: Optional[str] = None) -> Segment:
        """Load a segment, treating one from another group as missing."""
        segment = self.segments.get_segment(segment_id)
        if group_id is not None and segment.group_id != group_id:
            raise NotFoundError(f"Segment {segment_id} not found")
        return segment

    def _can_view(self, segment: Segment, member_id: str) -> bool:
        siblings = self.segments.list_segments(segment.group_id, segment.item_id)
        completed = self.progress.completed_segment_ids(segment.group_id, segment.item_id, member_id)
        return can_view(siblings, completed, segment)

    # ----- item view -----

    def get_item_view(self, group_id: str, item_id: str, member_id: str) -> ItemViewResponse:
        segment_perm = self._permission(member_id, group_id, ResourceType.SEGMENT)
        if not segment_perm.can_read:
            logger.warning("permission denied member=%s group=%s resource=segment action=read", member_id, group_id)
            raise PermissionDeniedError("Not allowed to read segments in this group")
        post_perm = self._permission(member_id, group_id, ResourceType.POST)

        segments = self.segments.list_segments(group_id, item_id)
        progress = self.progress.progress_for_item(group_id, item_id)
        mine = {sid for sid, records in progress.items() if any(r.member_id == member_id for r in records)}
        visible = visible_segment_ids(segments, mine)
        now = self.clock()

        views: List[SegmentView] = []
        for segment in segments:
            records = progress.get(segment.id, [])
            i_completed = segment.id in mine
            views.append(
                SegmentView(
                    id=segment.id,
                    label=segment.label,
                    order=segment.order_index,
                    range_kind=RangeKind(segment.range_kind),
                    range_label=describe_range(segment.range_kind, segment.range_start, segment.range_end),
                    due_date=iso_format(segment.due_date),
                    completed_count=len(records),
                    completers=[r.member_id for r in records],
                    i_completed=i_completed,
                    is_due_overdue=segment.due_date is not None and segment.due_date < now and not i_completed,
                    can_view_discussion=segment.id in visible,
                )
            )

        total = len(segments)
        completed_count = len(mine)
        return ItemViewResponse(
            group_id=group_id,
            item_id=item_id,
            segments=views,
            completed_count=completed_count,
            total=total,
            overall_progress=completed_count / total if total else 0.0,
            permissions=ItemPermissions(segment=segment_perm, post=post_perm),
        )

    # ----- segments -----

    def list_segments(self, group_id: str, item_id: str, member_id: str) -> List[Segment]:
        self._require(member_id, group_id, ResourceType.SEGMENT, "read")
        return self.segments.list_segments(group_id, item_id)

    def create_segment(
        self,
        group_id: str,
        item_id: str,
        member_id: str,
        label: str,
        segment_range: SegmentRange,
        order: Optional[int] = None,
        due_date: Optional[datetime] = None,
    ) -> Segment:
        self._require(member_id, group_id, ResourceType.SEGMENT, "create")
        return self.segments.create_segment(
            group_id,
            item_id,
            label,
            segment_range,
            created_by=member_id,
            order=order,
            due_date=due_date,
        )

    def update_segment(
        self,
        segment_id: str,
        member_id: str,
        patch: Dict[str, Any],
        group_id: Optional[str] = None,
    ) -> Segment:
        segment = self._segment(segment_id, group_id)
        self._require(member_id, segment.group_id, ResourceType.SEGMENT, "update")
        return self.segments.update_segment(segment.id, patch)

    def delete_segment(self, segment_id: str, member_id: str, group_id: Optional[str] = None) -> None:
        segment = self._segment(segment_id, group_id)
        self._require(member_id, segment.group_id, ResourceType.SEGMENT, "delete")
        self.segments.delete_segment(segment.id)

    # ----- progress -----

    def item_progress(self, group_id: str, item_id: str, member_id: str) -> Dict[str, List[ProgressRecord]]:
        self._require(member_id, group_id, ResourceType.SEGMENT, "read")
        return self.progress.progress_for_item(group_id, item_id)

    def mark_and_refresh(self, segment_id: str, member_id: str, group_id: Optional[str] = None) -> ItemViewResponse:
        segment = self._segment(segment_id, group_id)
        self._require(member_id, segment.group_id, ResourceType.SEGMENT, "read")
        self.progress.mark_complete(segment.id, member_id)
        return self.get_item_view(segment.group_id, segment.item_id, member_id)

    def unmark_and_refresh(self, segment_id: str, member_id: str, group_id: Optional[str] = None) -> ItemViewResponse:
        segment = self._segment(segment_id, group_id)
        self._require(member_id, segment.group_id, ResourceType.SEGMENT, "read")
        self.progress.unmark(segment.id, member_id)
        return self.get_item_view(segment.group_id, segment.item_id, member_id)

    def roster(self, segment_id: str, member_id: str, group_id: Optional[str] = None) -> List[ProgressRecord]:
        segment = self._segment(segment_id, group_id)
        self._require(member_id, segment.group_id, ResourceType.SEGMENT, "read")
        return self.progress.completers(segment.id)

    # ----- discussion -----

    def get_discussion(self, segment_id: str, member_id: str, group_id: Optional[str] = None) -> DiscussionResponse:
        """Thread for the segment, or a locked marker without any post contents."""
        segment = self._segment(segment_id, group_id)
        self._require(member_id, segment.group_id, ResourceType.POST, "read")
        if not self._can_view(segment, member_id):
            logger.info("discussion locked segment=%s member=%s", segment.id, member_id)
            return DiscussionResponse(segment_id=segment.id, locked=True, posts=[])
        return DiscussionResponse(
            segment_id=segment.id,
            locked=False,
            posts=self.discussion.list_thread(segment.id),
        )

    def post_comment(
        self,
        segment_id: str,
        member_id: str,
        text: str,
        parent_post_id: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> Post:
        """Top-level post, or a reply when ``parent_post_id`` is given."""
        segment = self._segment(segment_id, group_id)
        self._require(member_id, segment.group_id, ResourceType.POST, "create")
        if not self._can_view(segment, member_id):
            logger.warning("post refused, segment locked segment=%s member=%s", segment.id, member_id)
            raise PermissionDeniedError("Complete this segment before joining its discussion")

        if parent_post_id is None:
            return self.discussion.post_top_level(segment.id, member_id, text)
        parent = self.discussion.get_post(parent_post_id)
        if parent.segment_id != segment.id:
            raise ValidationError("Replies must stay in the parent post's segment")
        return self.discussion.reply(parent.id, member_id, text)
