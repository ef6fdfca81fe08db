"""
Integration test fixtures. Overrides get_db and the permission provider for API tests.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


@pytest.fixture
def override_get_db():
    """Create in-memory engine and session factory for API tests."""
    import api.models  # noqa: F401
    from api.config import Base
    # One shared connection so every request sees the same in-memory database.
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def api_permissions():
    """Grant-everything provider; tests narrow it per member with ``grant``."""
    from api.schemas.permission_schemas import CollectionPermission
    from api.services.permissions import StaticPermissionProvider
    return StaticPermissionProvider(default=CollectionPermission.all())


@pytest.fixture
def api_client(override_get_db, api_permissions):
    """FastAPI TestClient with in-memory DB and static permissions."""
    from fastapi.testclient import TestClient
    from api.api import app
    from api.config import get_db
    from api.services.permissions import get_permission_provider
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_permission_provider] = lambda: api_permissions
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build a bearer Authorization header for a member id."""
    from api.schemas.auth_schemas import AuthTokenPayload
    from api.utils.jwt import create_access_token

    def _headers(member_id: str) -> dict:
        token = create_access_token(AuthTokenPayload(sub=member_id))
        return {"Authorization": f"Bearer {token}"}

    return _headers
