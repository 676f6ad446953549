"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any
from uuid import uuid4

# Disable rate limiting and the background dispatcher in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OUTBOX_ENABLED"] = "false"
os.environ["LLM_API_KEY"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.services.profile_service import ProfileService
from infrastructure.auth.jwt_provider import JWKSCache, JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_SECRET = "test-secret-key"


def _make_user(name: str) -> TokenUser:
    return TokenUser(id=uuid4(), email=f"{name}@example.com", display_name=name.capitalize())


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy
    # emit BEGIN itself.
    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def alice() -> TokenUser:
    return _make_user("alice")


@pytest.fixture
def bob() -> TokenUser:
    return _make_user("bob")


@pytest.fixture
def carol() -> TokenUser:
    return _make_user("carol")


@pytest.fixture
def dave() -> TokenUser:
    return _make_user("dave")


@pytest.fixture
def test_user(alice: TokenUser) -> TokenUser:
    return alice


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """HS256 provider with JWKS disabled."""
    return JWTAuthProvider(
        secret_key=TEST_SECRET,
        algorithm="HS256",
        expire_minutes=30,
        jwks=JWKSCache(""),
    )


@pytest.fixture
def headers_for(auth_provider: JWTAuthProvider) -> Callable[[TokenUser], dict[str, str]]:
    """Authorization (and CSRF) headers for a given user."""

    def build(user: TokenUser) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {auth_provider.create_token(user)}",
            "X-Requested-With": "XMLHttpRequest",
        }

    return build


@pytest.fixture
def auth_headers(
    headers_for: Callable[[TokenUser], dict[str, str]], test_user: TokenUser
) -> dict[str, str]:
    return headers_for(test_user)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth, no database)."""
    from main import create_app

    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def services(uow_factory: Callable[[], SQLAlchemyUnitOfWork]) -> dict[str, Any]:
    """The service graph wired against the test database, without a broadcaster."""
    from domain.services.assignment_service import AssignmentService
    from domain.services.comment_service import CommentService
    from domain.services.invitation_service import InvitationService
    from domain.services.notification_service import NotificationService
    from domain.services.permission_service import PermissionService
    from domain.services.project_service import ProjectService
    from domain.services.task_service import TaskService
    from domain.services.workspace_service import WorkspaceService

    permissions = PermissionService(uow_factory)
    notifications = NotificationService(uow_factory)
    assignments = AssignmentService(uow_factory, permissions, notifications)
    return {
        "profile": ProfileService(uow_factory),
        "permission": permissions,
        "notification": notifications,
        "assignment": assignments,
        "task": TaskService(uow_factory, permissions, assignments, notifications),
        "comment": CommentService(uow_factory, permissions, notifications),
        "project": ProjectService(uow_factory, permissions, notifications),
        "workspace": WorkspaceService(uow_factory, permissions, notifications),
        "invitation": InvitationService(uow_factory, permissions, notifications),
    }


@pytest.fixture
async def api_client(
    services: dict[str, Any],
    auth_provider: JWTAuthProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client backed by the in-memory database.

    Authentication runs for real against ``auth_provider``; send
    ``headers_for(user)`` with each request to act as that user. Profiles are
    provisioned on first request exactly as in production.
    """
    from api.dependencies.auth import get_auth_provider, get_profile_service
    from api.v1 import dependencies as deps
    from main import create_app

    ProfileService.clear_provisioned_cache()
    app = create_app()

    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_profile_service] = lambda: services["profile"]
    app.dependency_overrides[deps.get_permission_service] = lambda: services["permission"]
    app.dependency_overrides[deps.get_notification_service] = lambda: services["notification"]
    app.dependency_overrides[deps.get_assignment_service] = lambda: services["assignment"]
    app.dependency_overrides[deps.get_task_service] = lambda: services["task"]
    app.dependency_overrides[deps.get_comment_service] = lambda: services["comment"]
    app.dependency_overrides[deps.get_project_service] = lambda: services["project"]
    app.dependency_overrides[deps.get_workspace_service] = lambda: services["workspace"]
    app.dependency_overrides[deps.get_invitation_service] = lambda: services["invitation"]

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
    ProfileService.clear_provisioned_cache()
