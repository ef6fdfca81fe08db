"""
Discussion store: threaded posts attached to a segment.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from api.config import settings
from api.models.models import Post, Segment
from api.schemas.discussion_schemas import ThreadPost
from api.utils.common import iso_format, new_id, next_seq, utcnow
from api.utils.errors import ConflictError, NotFoundError, ValidationError
from api.utils.logger import configure_logging

logger = configure_logging()

# Attempts at claiming the next seq when concurrent posts collide.
_SEQ_ATTEMPTS = 5


def _clean_text(text: Optional[str]) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError("Post text must not be empty")
    if len(cleaned) > settings.max_post_length:
        raise ValidationError(f"Post text exceeds {settings.max_post_length} characters")
    return cleaned


def _creation_order(post: Post):
    return (post.seq, post.created_at, post.id)


def flatten_thread(posts: List[Post]) -> List[ThreadPost]:
    """
    Order a segment's posts as its reply forest, flattened in pre-order.

    Roots and siblings keep creation order; posts whose parent is not in the list are
    roots. Walks with an explicit stack, so any reply depth is fine.
    """
    ordered = sorted(posts, key=_creation_order)
    known = {p.id for p in ordered}
    children: Dict[Optional[str], List[Post]] = defaultdict(list)
    for post in ordered:
        parent = post.parent_post_id if post.parent_post_id in known else None
        children[parent].append(post)

    thread: List[ThreadPost] = []
    stack = [(root, 0) for root in reversed(children[None])]
    while stack:
        post, depth = stack.pop()
        thread.append(
            ThreadPost(
                id=post.id,
                segment_id=post.segment_id,
                parent_post_id=post.parent_post_id,
                author_id=post.author_id,
                text=post.text,
                created_at=iso_format(post.created_at),
                depth=depth,
            )
        )
        stack.extend((child, depth + 1) for child in reversed(children.get(post.id, [])))
    return thread


class DiscussionService:
    """Top-level posts, replies, and thread listing for segments."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_post(self, post_id: str) -> Post:
        post = self.db.query(Post).filter(Post.id == post_id).first()
        if post is None:
            raise NotFoundError(f"Post {post_id} not found")
        return post

    def _create(self, segment_id: str, author_id: str, text: str, parent_post_id: Optional[str]) -> Post:
        for attempt in range(1, _SEQ_ATTEMPTS + 1):
            post = Post(
                id=new_id(),
                segment_id=segment_id,
                parent_post_id=parent_post_id,
                author_id=author_id,
                text=text,
                seq=next_seq(segment_id, self.db),
                created_at=utcnow(),
            )
            self.db.add(post)
            try:
                self.db.commit()
            except IntegrityError:
                # Another post claimed this seq first.
                self.db.rollback()
                logger.info("post seq collision segment=%s seq=%s attempt=%s", segment_id, post.seq, attempt)
                continue
            self.db.refresh(post)
            logger.info(
                "post created id=%s segment=%s parent=%s author=%s",
                post.id, segment_id, parent_post_id or "-", author_id,
            )
            return post
        logger.warning("post not created, seq contention segment=%s", segment_id)
        raise ConflictError("Too many concurrent posts in this segment; try again")

    def post_top_level(self, segment_id: str, author_id: str, text: str) -> Post:
        cleaned = _clean_text(text)
        if self.db.query(Segment.id).filter(Segment.id == segment_id).first() is None:
            raise NotFoundError(f"Segment {segment_id} not found")
        return self._create(segment_id, author_id, cleaned, None)

    def reply(self, parent_post_id: str, author_id: str, text: str) -> Post:
        """Reply to a post; the reply lives in the parent's segment."""
        cleaned = _clean_text(text)
        parent = self.get_post(parent_post_id)
        return self._create(parent.segment_id, author_id, cleaned, parent.id)

    def list_thread(self, segment_id: str) -> List[ThreadPost]:
        posts = self.db.query(Post).filter(Post.segment_id == segment_id).all()
        return flatten_thread(posts)
