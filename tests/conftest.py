import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BOOTSTRAP_ADMIN"] = "false"

from attendance_hub.database import Base, get_db
from attendance_hub.main import app
from attendance_hub.core import security
from attendance_hub.models.user import User, UserRole
from attendance_hub.services.auth import AuthService, CallerContext
from fastapi.testclient import TestClient

TEST_PASSWORD = "Password123!"

@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database per test, so services may commit and roll back freely."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return security.get_password_hash(TEST_PASSWORD)

@pytest.fixture(scope="function")
def make_user(db_session, password_hash):
    def _make_user(username, role=UserRole.EMPLOYEE, name=None, department="Engineering"):
        user = User(
            username=username,
            hashed_password=password_hash,
            name=name or username.title(),
            role=role,
            department=department,
            position="Staff",
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user

@pytest.fixture(scope="function")
def admin_user(make_user):
    return make_user("admin", UserRole.ADMIN, name="System Admin", department="Administration")

@pytest.fixture(scope="function")
def manager_user(make_user):
    return make_user("manager", UserRole.MANAGER, name="Team Manager")

@pytest.fixture(scope="function")
def employee_user(make_user):
    return make_user("alice", UserRole.EMPLOYEE, name="Alice")

@pytest.fixture(scope="function")
def caller_for():
    return CallerContext.from_user

@pytest.fixture(scope="function")
def get_token(db_session):
    """Helper fixture to create bearer tokens."""
    def _get_token(user):
        return AuthService(db_session).issue_token(user)
    return _get_token

@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _auth_headers

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
