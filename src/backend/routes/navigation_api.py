# src/backend/routes/navigation_api.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.backend.crud.menu import load_menu_tree
from src.backend.models.user import User
from src.backend.utils.auth import get_current_user
from src.backend.utils.database import get_db
from src.backend.utils.menu_cache import get_cached_visible_menus_and_tree
from src.backend.utils.menu_presenter import (
    VisibilityOptions,
    flat_dicts,
    nest,
    resolve_visible_menu,
)
from src.backend.utils.permissions import MENU_PERMITS, ensure_request_perms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/navigation", tags=["Navigation"])


@router.get("")
async def api_navigation(
    request: Request,
    management: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Sidebar menu for the current user.
    management=true lists hidden/inactive menus too (admins editing menus);
    that view is never cached.
    """
    perms = await ensure_request_perms(db, current_user, request)

    if management:
        if not perms.has(MENU_PERMITS["view"]):
            raise HTTPException(status_code=403, detail="Forbidden")
        tree = await load_menu_tree(db, deleted="with")
        entries = resolve_visible_menu(tree, perms.ids, VisibilityOptions(management=True))
        return {"items": flat_dicts(entries), "tree": nest(entries)}

    flat, menu_tree = await get_cached_visible_menus_and_tree(db, current_user.role_id, perms.ids)
    logger.debug(
        "navigation(): login_id=%r role_id=%r visible=%s",
        current_user.login_id,
        current_user.role_id,
        len(flat),
    )
    return {"items": flat, "tree": menu_tree}
