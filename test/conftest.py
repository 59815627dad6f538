"""
Pytest configuration and fixtures for Example Module tests

Every test gets its own in-memory SQLite database. The `engine` fixture only
holds the host tables (modules, permissions, role_permissions); the module's
own tables appear once the installer has run (`installed_engine`).
"""

import os
import sys
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

from example_module.database import Base, build_engine  # noqa: E402
from example_module.install import InstallOptions, install_module  # noqa: E402
from example_module.models import Module, Permission, RolePermission  # noqa: E402
from example_module.plugins.events import HookBus  # noqa: E402
from example_module.utils.context import CSRFTokens, RequestContext  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_SECRET_KEY = "test-secret-key"

HOST_TABLES = [Module.__table__, Permission.__table__, RolePermission.__table__]


async def create_host_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, tables=HOST_TABLES))


@pytest.fixture
def module_path(tmp_path):
    """Directory the installer writes asset files into."""
    path = tmp_path / "example_module"
    path.mkdir()
    return path


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh database holding only the host tables."""
    test_engine = build_engine(TEST_DATABASE_URL)
    await create_host_tables(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def installed_engine(engine, module_path) -> AsyncEngine:
    """Database with the module installed (tables, registration, permissions)."""
    assert await install_module(engine, InstallOptions(module_path=module_path))
    return engine


@pytest.fixture
def session_factory(installed_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(installed_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    A session on the installed database.

    The in-memory database lives on a single shared connection, so tests that
    also run the installer or uninstaller must not keep this session open
    across those calls.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def bus() -> HookBus:
    return HookBus()


@pytest.fixture
def tokens() -> CSRFTokens:
    return CSRFTokens(secret_key=TEST_SECRET_KEY, token_expiry=3600)


@pytest.fixture
def ctx(tokens) -> RequestContext:
    """Request context carrying a valid CSRF token."""
    return RequestContext(
        csrf_token=tokens.generate(),
        client_ip="203.0.113.7",
        user_agent="pytest",
        request_uri="/example-module/form",
    )
