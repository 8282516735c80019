"""
Shared fixtures: an in-memory SQLite database wired into the app.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.app import app
from src.lib.db import Base, get_db
from src.lib.jwt import create_access_token
from src.lib.metrics import reset_metrics
from src.lib.rate_limit import login_rate_limiter, transaction_rate_limiter
import src.models  # noqa: F401  registers every table on Base.metadata
from src.models.admins import Admin
from src.services.auth_service import hash_password


ADMIN_USERNAME = "frontdesk"
ADMIN_PASSWORD = "barb3r-shop-pass"


@pytest.fixture(autouse=True)
def clean_process_state():
    """Rate limiters and metrics are process globals."""
    reset_metrics()
    login_rate_limiter.reset_all()
    transaction_rate_limiter.reset_all()
    yield
    reset_metrics()
    login_rate_limiter.reset_all()
    transaction_rate_limiter.reset_all()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def admin(db_session):
    admin = Admin(username=ADMIN_USERNAME, password_hash=hash_password(ADMIN_PASSWORD))
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture
def auth_headers(admin):
    token = create_access_token(admin_id=str(admin.id), username=admin.username)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(session_factory):
    """TestClient whose requests use the in-memory database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def admin_password():
    return ADMIN_PASSWORD
