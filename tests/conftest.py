# tests/conftest.py
import os

# Must be set before anything under src/ or config/ is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.backend.app import app
from src.backend.models.security import Menu, Permission, Role, RolePermission
from src.backend.models.user import User
from src.backend.utils.database import Base, get_db
from src.backend.utils.menu_cache import invalidate_all_menu_cache
from src.backend.utils.security import create_access_token

# id -> code; 1..4 guard the menu admin API
PERMISSIONS = {
    1: "menus.view",
    2: "menus.create",
    3: "menus.edit",
    4: "menus.delete",
    5: "reports.view",
}

#   1 dashboard (public)
#   2 admin            [menus.view]
#     3 admin.menus    [menus.view]
#     4 admin.users    [reports.view]
#   5 reports          [reports.view]
#   6 hidden.tools     (show_in_menu = False)
MENUS = [
    dict(id=1, code="dashboard", name="Dashboard", path="/", sort_order=0, is_public=True),
    dict(id=2, code="admin", name="Administration", type="group", sort_order=1, required_permission_id=1),
    dict(id=3, code="admin.menus", name="Menus", path="/admin/menus", parent_id=2, sort_order=0, required_permission_id=1),
    dict(id=4, code="admin.users", name="Users", path="/admin/users", parent_id=2, sort_order=1, required_permission_id=5),
    dict(id=5, code="reports", name="Reports", path="/reports", sort_order=2, required_permission_id=5),
    dict(id=6, code="hidden.tools", name="Hidden tools", path="/tools", sort_order=3, show_in_menu=False),
]


@pytest.fixture(autouse=True)
def _fresh_menu_cache():
    invalidate_all_menu_cache()
    yield
    invalidate_all_menu_cache()


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def seeded(session_factory):
    async with session_factory() as s:
        s.add_all([
            Role(role_id="AD", role_name="Administrator", status="active"),
            Role(role_id="US", role_name="Staff", status="active"),
        ])
        s.add_all([Permission(id=pid, code=code, name=code, status="active") for pid, code in PERMISSIONS.items()])
        await s.flush()

        s.add_all([RolePermission(role_id="AD", permission_id=pid, status="active") for pid in (1, 2, 3, 4)])
        s.add(RolePermission(role_id="US", permission_id=5, status="active"))

        s.add_all([
            User(login_id="admin", role_id="AD", email="admin@example.com", status="A"),
            User(login_id="staff", role_id="US", email="staff@example.com", status="A"),
            User(login_id="gone", role_id="AD", email="gone@example.com", status="I"),
        ])
        s.add_all([Menu(**m) for m in MENUS])
        await s.commit()
    return session_factory


@pytest.fixture
async def client(seeded):
    async def _override_get_db():
        async with seeded() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth(login_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': login_id})}"}


@pytest.fixture
def admin_headers():
    return auth("admin")


@pytest.fixture
def staff_headers():
    return auth("staff")


@pytest.fixture
def inactive_headers():
    return auth("gone")
