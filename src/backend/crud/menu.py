# src/backend/crud/menu.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.backend.crud.permissions import get_permission_by_id
from src.backend.models.security.menu import Menu
from src.backend.schemas.menu import MenuCreate, MenuUpdate
from src.backend.utils.menu_errors import MenuNotFound, UnknownPermission
from src.backend.utils.menu_tree import MenuTree, Reporter

logger = logging.getLogger(__name__)

DeletedScope = Literal["without", "with", "only"]


def _menu_row_to_dict(m: Menu) -> Dict[str, Any]:
    return {
        "id": m.id,
        "code": (m.code or "").strip(),
        "name": (m.name or "").strip(),
        "path": m.path,
        "api_path": m.api_path,
        "icon": m.icon,
        "type": (m.type or "route").strip().lower(),
        "status": (m.status or "active").strip().lower(),
        "parent_id": m.parent_id,
        "sort_order": int(m.sort_order or 0),
        "is_public": bool(m.is_public),
        "show_in_menu": m.show_in_menu is not False,
        "required_permission_id": m.required_permission_id,
        "deleted_at": m.deleted_at,
    }


def _apply_deleted_scope(stmt, deleted: DeletedScope):
    if deleted == "only":
        return stmt.where(Menu.deleted_at.is_not(None))
    if deleted == "without":
        return stmt.where(Menu.deleted_at.is_(None))
    return stmt


class SqlMenuStore:
    """
    Persistence collaborator for MenuTree edits.
    Receives already-validated changes; commits and returns the fresh row.
    """

    def __init__(self, db: AsyncSession, updated_by: str = "System") -> None:
        self.db = db
        self.updated_by = updated_by

    async def save(self, node_id: Any, changes: Dict[str, Any]) -> Menu:
        row = await get_menu_by_id(self.db, node_id)
        if not row:
            raise MenuNotFound(f"Menu {node_id!r} not found.", node_id=node_id)

        for key, value in changes.items():
            setattr(row, key, value)
        setattr(row, "updated_by", self.updated_by)

        try:
            await self.db.commit()
            await self.db.refresh(row)
        except IntegrityError:
            await self.db.rollback()
            raise
        return row


# -----------------------------
# Reads
# -----------------------------
async def get_menu_by_id(db: AsyncSession, menu_id: Any) -> Optional[Menu]:
    try:
        mid = int(menu_id)
    except (TypeError, ValueError):
        return None
    res = await db.execute(select(Menu).where(Menu.id == mid))
    return res.scalar_one_or_none()


async def get_menu_by_code(db: AsyncSession, code: str) -> Optional[Menu]:
    res = await db.execute(select(Menu).where(Menu.code == (code or "").strip()))
    return res.scalar_one_or_none()


async def list_menus(
    db: AsyncSession,
    q: Optional[str] = None,
    status: Optional[str] = None,
    menu_type: Optional[str] = None,
    parent_id: Optional[int] = None,
    deleted: DeletedScope = "with",
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Menu], int]:
    stmt = select(Menu)
    if q:
        like = f"%{q.strip()}%"
        stmt = stmt.where(
            or_(
                Menu.code.ilike(like),
                Menu.name.ilike(like),
                Menu.path.ilike(like),
            )
        )
    if status:
        stmt = stmt.where(Menu.status == status.strip().lower())
    if menu_type:
        stmt = stmt.where(Menu.type == menu_type.strip().lower())
    if parent_id is not None:
        # 0 => root menus
        stmt = stmt.where(Menu.parent_id.is_(None) if parent_id == 0 else Menu.parent_id == parent_id)
    stmt = _apply_deleted_scope(stmt, deleted)

    count_res = await db.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
    total = int(count_res.scalar() or 0)

    stmt = stmt.order_by(Menu.sort_order.asc(), Menu.id.asc())
    res = await db.execute(stmt.limit(limit).offset(offset))
    return list(res.scalars().all()), total


async def load_menu_records(db: AsyncSession, deleted: DeletedScope = "with") -> List[Dict[str, Any]]:
    """All menus as plain dicts, in id order (the tree's source order)."""
    stmt = _apply_deleted_scope(select(Menu), deleted).order_by(Menu.id.asc())
    res = await db.execute(stmt)
    return [_menu_row_to_dict(m) for m in res.scalars().all()]


async def load_menu_tree(
    db: AsyncSession,
    deleted: DeletedScope = "with",
    reporter: Optional[Reporter] = None,
) -> MenuTree:
    records = await load_menu_records(db, deleted=deleted)
    return MenuTree.from_records(records, reporter=reporter)


# -----------------------------
# Writes
# -----------------------------
async def _check_permission_ref(db: AsyncSession, permission_id: Any) -> None:
    if permission_id is None:
        return
    if await get_permission_by_id(db, permission_id) is None:
        raise UnknownPermission(
            f"Permission {permission_id!r} does not exist.", required_permission_id=permission_id
        )


async def create_menu(db: AsyncSession, data: MenuCreate, created_by: str = "System") -> Menu:
    tree = await load_menu_tree(db)
    tree.check_parent(None, data.parent_id)
    await _check_permission_ref(db, data.required_permission_id)

    row = Menu(
        code=data.code,
        name=data.name,
        path=data.path,
        api_path=data.api_path,
        icon=data.icon,
        type=data.type,
        status=data.status,
        parent_id=data.parent_id,
        sort_order=data.sort_order,
        is_public=data.is_public,
        show_in_menu=data.show_in_menu,
        required_permission_id=data.required_permission_id,
        created_by=created_by,
        updated_by=created_by,
    )
    db.add(row)
    try:
        await db.commit()
        await db.refresh(row)
    except IntegrityError:
        await db.rollback()
        raise
    logger.info("Menu created id=%s code=%s by=%s", row.id, row.code, created_by)
    return row


async def update_menu(db: AsyncSession, menu_id: int, data: MenuUpdate, updated_by: str = "System") -> Menu:
    """Validate against the live tree, then persist. Raises MenuError subclasses."""
    changes = data.changes()
    if "required_permission_id" in changes:
        await _check_permission_ref(db, changes["required_permission_id"])
    tree = await load_menu_tree(db)
    return await tree.apply_edit(menu_id, changes, SqlMenuStore(db, updated_by=updated_by))


async def soft_delete_menu(db: AsyncSession, menu_id: int, deleted_by: str = "System") -> Tuple[bool, str]:
    tree = await load_menu_tree(db)
    try:
        row = await tree.soft_delete(menu_id, SqlMenuStore(db, updated_by=deleted_by))
    except MenuNotFound:
        return False, f"Menu '{menu_id}' not found."
    if row is None:
        return False, f"Menu '{menu_id}' is already deleted."
    return True, f"Menu '{row.code}' deleted successfully."


async def restore_menu(db: AsyncSession, menu_id: int, restored_by: str = "System") -> Tuple[bool, str]:
    tree = await load_menu_tree(db)
    try:
        row = await tree.restore(menu_id, SqlMenuStore(db, updated_by=restored_by))
    except MenuNotFound:
        return False, f"Menu '{menu_id}' not found."
    if row is None:
        return False, f"Menu '{menu_id}' is not deleted."
    return True, f"Menu '{row.code}' restored successfully."
