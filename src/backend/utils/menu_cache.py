# src/backend/utils/menu_cache.py
from __future__ import annotations

import time
import asyncio
import copy
import logging
from collections import OrderedDict
from typing import Any, Collection, Dict, List, Tuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.backend.crud.menu import load_menu_tree
from src.backend.utils.menu_presenter import flat_dicts, nest, resolve_visible_menu

logger = logging.getLogger(__name__)

# role_id -> {"epoch": int, "expires": float, "flat": List[dict], "tree": List[dict], "last": float}
_CACHE: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()

# role_id -> asyncio.Lock
_ROLE_LOCKS: Dict[str, asyncio.Lock] = {}
_LOCKS_GUARD = asyncio.Lock()

# Global "epoch": bump it to force all cache entries stale immediately
_CACHE_EPOCH: int = 1


def _debug(msg: str, *args: Any) -> None:
    if settings.MENU_CACHE_DEBUG:
        logger.debug(msg, *args)


async def _get_role_lock(role_id: str) -> asyncio.Lock:
    async with _LOCKS_GUARD:
        lock = _ROLE_LOCKS.get(role_id)
        if lock is None:
            lock = asyncio.Lock()
            _ROLE_LOCKS[role_id] = lock
        return lock


def _cache_get(role_id: str, now: float) -> Tuple[Optional[List[Dict[str, Any]]], Optional[List[Dict[str, Any]]]]:
    cached = _CACHE.get(role_id)
    if not cached:
        return None, None

    # epoch mismatch => treat as miss
    if int(cached.get("epoch", 0)) != _CACHE_EPOCH:
        return None, None

    if float(cached.get("expires", 0)) <= now:
        return None, None

    cached["last"] = now
    _CACHE.move_to_end(role_id, last=True)

    return copy.deepcopy(cached["flat"]), copy.deepcopy(cached["tree"])


def _cache_set(role_id: str, flat: List[Dict[str, Any]], tree: List[Dict[str, Any]]) -> None:
    now = time.time()
    ttl = max(5.0, float(settings.MENU_CACHE_TTL_SECONDS))
    _CACHE[role_id] = {
        "epoch": _CACHE_EPOCH,
        "expires": now + ttl,
        "flat": flat,
        "tree": tree,
        "last": now,
    }
    _CACHE.move_to_end(role_id, last=True)

    max_roles = max(1, int(settings.MENU_CACHE_MAX_ROLES))
    while len(_CACHE) > max_roles:
        _CACHE.popitem(last=False)


def invalidate_role_menu_cache(role_id: str) -> None:
    """Invalidate cache for one role (e.g., after changing that role's grants)."""
    rid = (role_id or "").strip()
    if not rid:
        return
    _CACHE.pop(rid, None)
    _debug("MENU CACHE INVALIDATE role_id=%s", rid)


def invalidate_all_menu_cache() -> None:
    """
    Invalidate cache for all roles (after any menu create/update/delete/restore).
    Uses an epoch bump so in-flight builds from an older snapshot are not served.
    """
    global _CACHE_EPOCH
    _CACHE_EPOCH += 1
    _CACHE.clear()
    _debug("MENU CACHE INVALIDATE ALL (epoch=%s)", _CACHE_EPOCH)


async def build_visible_menus(
    db: AsyncSession,
    permission_ids: Collection[Any],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Uncached (flat, tree) for a permission set. Deleted menus prune their subtrees."""
    tree = await load_menu_tree(db, deleted="with")
    entries = resolve_visible_menu(tree, permission_ids)
    return flat_dicts(entries), nest(entries)


async def get_cached_visible_menus_and_tree(
    db: AsyncSession,
    role_id: str,
    permission_ids: Collection[Any],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Returns (flat_visible_menus, menu_tree) for a role.

    - Cache by role_id with TTL
    - Stampede-safe per-role lock
    - Deep-copies returned structures (callers can't mutate shared cache)
    """
    rid = (role_id or "").strip()
    if not rid:
        return [], []

    if not settings.MENU_CACHE_ENABLED:
        _debug("MENU CACHE DISABLED -> DB HIT role_id=%s", rid)
        return await build_visible_menus(db, permission_ids)

    now = time.time()
    flat_cached, tree_cached = _cache_get(rid, now)
    if flat_cached is not None and tree_cached is not None:
        _debug("MENU CACHE HIT role_id=%s", rid)
        return flat_cached, tree_cached

    lock = await _get_role_lock(rid)
    async with lock:
        flat_cached2, tree_cached2 = _cache_get(rid, time.time())
        if flat_cached2 is not None and tree_cached2 is not None:
            _debug("MENU CACHE HIT(after lock) role_id=%s", rid)
            return flat_cached2, tree_cached2

        _debug("MENU CACHE MISS -> DB HIT role_id=%s", rid)

        epoch = _CACHE_EPOCH
        flat, tree = await build_visible_menus(db, permission_ids)
        if epoch == _CACHE_EPOCH:
            _cache_set(rid, flat, tree)
        return copy.deepcopy(flat), copy.deepcopy(tree)
