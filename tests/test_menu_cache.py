# tests/test_menu_cache.py
from sqlalchemy import update

from src.backend.models.security.menu import Menu
from src.backend.utils import menu_cache


def codes(items):
    return [i["code"] for i in items]


async def test_cache_serves_copies_until_invalidated(seeded):
    async with seeded() as db:
        flat, tree = await menu_cache.get_cached_visible_menus_and_tree(db, "AD", {1, 2, 3, 4})
        assert codes(flat) == ["dashboard", "admin", "admin.menus"]

        flat.clear()
        tree[0]["name"] = "mutated"

        # change behind the cache's back: still served from cache
        await db.execute(update(Menu).where(Menu.id == 1).values(name="Home"))
        await db.commit()

        flat2, tree2 = await menu_cache.get_cached_visible_menus_and_tree(db, "AD", {1, 2, 3, 4})
        assert codes(flat2) == ["dashboard", "admin", "admin.menus"]
        assert tree2[0]["name"] == "Dashboard"

        menu_cache.invalidate_all_menu_cache()
        flat3, _ = await menu_cache.get_cached_visible_menus_and_tree(db, "AD", {1, 2, 3, 4})
        assert flat3[0]["name"] == "Home"


async def test_roles_are_cached_separately(seeded):
    async with seeded() as db:
        admin, _ = await menu_cache.get_cached_visible_menus_and_tree(db, "AD", {1})
        staff, _ = await menu_cache.get_cached_visible_menus_and_tree(db, "US", {5})
        assert codes(admin) == ["dashboard", "admin", "admin.menus"]
        assert codes(staff) == ["dashboard", "reports"]

        menu_cache.invalidate_role_menu_cache("US")
        assert "US" not in menu_cache._CACHE
        assert "AD" in menu_cache._CACHE


async def test_blank_role_gets_nothing(seeded):
    async with seeded() as db:
        assert await menu_cache.get_cached_visible_menus_and_tree(db, "  ", {1}) == ([], [])


async def test_disabled_cache_always_rebuilds(seeded, monkeypatch):
    monkeypatch.setattr(menu_cache.settings, "MENU_CACHE_ENABLED", False)
    async with seeded() as db:
        await menu_cache.get_cached_visible_menus_and_tree(db, "AD", {1})
        assert "AD" not in menu_cache._CACHE


async def test_lru_bound(seeded, monkeypatch):
    monkeypatch.setattr(menu_cache.settings, "MENU_CACHE_MAX_ROLES", 1)
    async with seeded() as db:
        await menu_cache.get_cached_visible_menus_and_tree(db, "AD", {1})
        await menu_cache.get_cached_visible_menus_and_tree(db, "US", {5})
        assert list(menu_cache._CACHE) == ["US"]
