from api.config import Base
from api.utils.common import utcnow
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, Float, UniqueConstraint
from sqlalchemy.orm import backref, relationship


class Segment(Base):
    __tablename__ = "segments"
    __table_args__ = (
        UniqueConstraint("group_id", "item_id", "order_index", name="uq_segment_item_order"),
    )

    id = Column(String, primary_key=True, index=True)  # uuid
    group_id = Column(String, index=True, nullable=False)
    item_id = Column(String, index=True, nullable=False)
    label = Column(String, nullable=False)
    order_index = Column(Integer, nullable=False)
    range_kind = Column(String, nullable=False)  # pages|percent|chapters|whole
    range_start = Column(Float, nullable=True)
    range_end = Column(Float, nullable=True)
    due_date = Column(DateTime, nullable=True)  # naive UTC
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    progress = relationship(
        "ProgressRecord",
        backref="segment",
        cascade="all, delete",
    )
    posts = relationship(
        "Post",
        backref="segment",
        cascade="all, delete",
    )


class ProgressRecord(Base):
    __tablename__ = "segment_progress"
    __table_args__ = (
        UniqueConstraint("segment_id", "member_id", name="uq_progress_segment_member"),
    )

    id = Column(String, primary_key=True, index=True)  # uuid
    segment_id = Column(String, ForeignKey("segments.id"), index=True, nullable=False)
    member_id = Column(String, index=True, nullable=False)
    # Always true while the row exists; unmarking deletes the row.
    completed = Column(Boolean, default=True, nullable=False)
    completed_at = Column(DateTime, default=utcnow, nullable=False)


class Post(Base):
    __tablename__ = "segment_posts"
    __table_args__ = (
        UniqueConstraint("segment_id", "seq", name="uq_post_segment_seq"),
    )

    id = Column(String, primary_key=True, index=True)  # uuid
    segment_id = Column(String, ForeignKey("segments.id"), index=True, nullable=False)
    parent_post_id = Column(String, ForeignKey("segment_posts.id"), index=True, nullable=True)
    author_id = Column(String, nullable=False)
    text = Column(Text, nullable=False)
    seq = Column(Integer, nullable=False)  # creation order within the segment
    created_at = Column(DateTime, default=utcnow, nullable=False)

    replies = relationship(
        "Post",
        backref=backref("parent", remote_side=[id]),
        cascade="all, delete",
        order_by="Post.seq",
    )
