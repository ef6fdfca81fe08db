"""
API data models. Single import surface for DB entities.

DB entities (api.models.models):
- Segment, ProgressRecord, Post
"""

from api.models.models import (
    Segment,
    ProgressRecord,
    Post,
)

__all__ = [
    "Segment",
    "ProgressRecord",
    "Post",
]
