"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and provides common fixtures for unit and integration tests.
"""
import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

# Settings are read at import time; keep tests off the real database and log dir.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "group-progress-test-logs"))
os.environ.setdefault("NO_COLOR", "1")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

NOW = datetime(2026, 3, 14, 12, 0, 0)
GROUP_ID = "did:plc:bookclub"
ITEM_ID = "item-dune"


# ----- In-memory DB (for tests that need DB without touching real DB) -----
@pytest.fixture
def in_memory_engine():
    """Create an in-memory SQLite engine for tests."""
    return create_engine("sqlite:///:memory:", echo=False)


@pytest.fixture
def db_session(in_memory_engine):
    """Create an in-memory database session. Uses api.config.Base for schema."""
    import api.models  # noqa: F401
    from api.config import Base
    Base.metadata.create_all(in_memory_engine)
    SessionLocal = sessionmaker(bind=in_memory_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def permissions():
    """Permission provider granting everything unless a test narrows it."""
    from api.schemas.permission_schemas import CollectionPermission
    from api.services.permissions import StaticPermissionProvider
    return StaticPermissionProvider(default=CollectionPermission.all())


@pytest.fixture
def group_item_service(db_session, permissions):
    from api.services.group_item_service import GroupItemService
    return GroupItemService(db_session, permissions, clock=lambda: NOW)


@pytest.fixture
def make_segment(db_session):
    """Factory creating segments of the test item through the segment store."""
    from api.schemas.segment_schemas import RangeKind, SegmentRange
    from api.services.segment_service import SegmentService

    store = SegmentService(db_session)

    def _make(label="Chapters 1-5", order=None, kind=RangeKind.CHAPTERS, start=1, end=5,
              due_date=None, item_id=ITEM_ID, group_id=GROUP_ID, created_by="did:plc:organizer"):
        return store.create_segment(
            group_id,
            item_id,
            label,
            SegmentRange(kind=kind, start=start, end=end),
            created_by=created_by,
            order=order,
            due_date=due_date,
        )

    return _make


@pytest.fixture
def three_segments(make_segment):
    """Segments A, B, C with orders 1, 2, 3."""
    a = make_segment(label="A", order=1, start=1, end=5)
    b = make_segment(label="B", order=2, start=6, end=10)
    c = make_segment(label="C", order=3, start=11, end=15)
    return a, b, c
