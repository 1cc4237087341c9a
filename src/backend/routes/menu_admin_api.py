# src/backend/routes/menu_admin_api.py
from __future__ import annotations

import math
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.backend.crud.menu import (
    create_menu,
    get_menu_by_code,
    get_menu_by_id,
    list_menus,
    load_menu_tree,
    restore_menu,
    soft_delete_menu,
    update_menu,
)
from src.backend.models.user import User
from src.backend.schemas.menu import MenuCreate, MenuOut, MenuUpdate, ParentOptionOut
from src.backend.utils.auth import actor_name, get_current_user
from src.backend.utils.database import get_db
from src.backend.utils.menu_cache import invalidate_all_menu_cache
from src.backend.utils.menu_presenter import flatten, list_reparent_candidates, nest
from src.backend.utils.permissions import (
    require_create,
    require_delete,
    require_edit,
    require_view,
)

router = APIRouter(prefix="/api/admin/menus", tags=["Admin Menus"])

INTEGRITY_CONFLICT = "Menu could not be saved: it conflicts with existing data."


def _out(row: Any) -> Dict[str, Any]:
    return MenuOut.model_validate(row).model_dump(mode="json")


# -----------------------
# READS (gated)
# -----------------------
@router.get("", dependencies=[Depends(require_view)])
async def api_list_menus(
    q: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    parent_id: Optional[int] = Query(None, ge=0),
    deleted: Literal["without", "with", "only"] = Query("with"),
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=5, le=100),
    db: AsyncSession = Depends(get_db),
):
    offset = (page - 1) * size
    rows, total = await list_menus(
        db,
        q=q,
        status=status,
        menu_type=type,
        parent_id=parent_id,
        deleted=deleted,
        limit=size,
        offset=offset,
    )
    pages = max(1, math.ceil(total / size)) if size else 1
    return {
        "items": [_out(r) for r in rows],
        "pagination": {"page": page, "totalPages": pages, "totalItems": total},
    }


@router.get("/tree", dependencies=[Depends(require_view)])
async def api_menu_tree(db: AsyncSession = Depends(get_db)):
    """Nested tree of live menus, hidden/inactive included. A deleted menu drops its subtree."""
    tree = await load_menu_tree(db, deleted="with")
    return {"items": nest(flatten(tree, include=lambda n: not n.is_deleted))}


@router.get("/parent-options", dependencies=[Depends(require_view)])
async def api_parent_options(
    editing_id: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """
    Parent dropdown for the menu form. Computed from the full tree so that
    sub-menus hanging under a deleted menu still count as descendants.
    """
    tree = await load_menu_tree(db, deleted="with")
    options = list_reparent_candidates(tree, editing_id)
    return {"items": [ParentOptionOut.model_validate(o).model_dump() for o in options]}


@router.get("/{menu_id}", dependencies=[Depends(require_view)])
async def api_get_menu(menu_id: int, db: AsyncSession = Depends(get_db)):
    row = await get_menu_by_id(db, menu_id)
    if not row:
        raise HTTPException(status_code=404, detail="Menu not found")
    return _out(row)


# -------------------------
# WRITES (gated)
# -------------------------
@router.post("", status_code=201, dependencies=[Depends(require_create)])
async def api_create_menu(
    payload: MenuCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        row = await create_menu(db, payload, created_by=actor_name(current_user))
    except IntegrityError:
        if await get_menu_by_code(db, payload.code):
            raise HTTPException(status_code=409, detail=f"Menu code '{payload.code}' already exists")
        raise HTTPException(status_code=409, detail=INTEGRITY_CONFLICT)

    invalidate_all_menu_cache()
    return _out(row)


@router.put("/{menu_id}", dependencies=[Depends(require_edit)])
async def api_update_menu(
    menu_id: int,
    payload: MenuUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # MenuError subclasses go to the error handler
    try:
        row = await update_menu(db, menu_id, payload, updated_by=actor_name(current_user))
    except IntegrityError:
        raise HTTPException(status_code=409, detail=INTEGRITY_CONFLICT)
    invalidate_all_menu_cache()
    return _out(row)


@router.delete("/{menu_id}", dependencies=[Depends(require_delete)])
async def api_delete_menu(
    menu_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ok, msg = await soft_delete_menu(db, menu_id, deleted_by=actor_name(current_user))
    if not ok:
        status = 404 if "not found" in msg else 409
        raise HTTPException(status_code=status, detail=msg)

    invalidate_all_menu_cache()
    return {"success": True, "message": msg}


@router.put("/{menu_id}/restore", dependencies=[Depends(require_edit)])
async def api_restore_menu(
    menu_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ok, msg = await restore_menu(db, menu_id, restored_by=actor_name(current_user))
    if not ok:
        status = 404 if "not found" in msg else 409
        raise HTTPException(status_code=status, detail=msg)

    invalidate_all_menu_cache()
    return {"success": True, "message": msg}
