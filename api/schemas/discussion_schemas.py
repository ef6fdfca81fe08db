"""
Discussion schemas: post creation and the nested thread view.
"""

from typing import Optional

from pydantic import BaseModel


class CreatePostRequest(BaseModel):
    text: str
    parent_post_id: Optional[str] = None  # reply when set


class PostResponse(BaseModel):
    id: str
    segment_id: str
    parent_post_id: Optional[str] = None
    author_id: str
    text: str
    created_at: str


class ThreadPost(PostResponse):
    """
    One entry of a flattened thread. Threads are listed in pre-order: each post is
    followed by its replies, so ``depth`` and ``parent_post_id`` rebuild the nesting.
    """
    depth: int = 0  # 0 for top-level posts


class DiscussionResponse(BaseModel):
    """
    Thread for a segment. When ``locked`` is true the member has not reached the
    segment yet and ``posts`` is always empty.
    """
    segment_id: str
    locked: bool
    posts: list[ThreadPost] = []
