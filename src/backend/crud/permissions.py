# src/backend/crud/permissions.py
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.backend.models.security.permission import Permission, RolePermission


async def get_role_permissions(db: AsyncSession, role_id: str) -> List[Permission]:
    """
    Active permissions granted to a role.
    Both the grant and the permission itself must be 'active'.
    """
    rid = (role_id or "").strip()
    if not rid:
        return []

    stmt = (
        select(Permission)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .where(
            RolePermission.role_id == rid,
            func.lower(func.trim(RolePermission.status)) == "active",
            func.lower(func.trim(Permission.status)) == "active",
        )
        .order_by(Permission.id.asc())
    )
    res = await db.execute(stmt)
    return list(res.scalars().unique().all())


async def get_permission_by_id(db: AsyncSession, permission_id: int) -> Optional[Permission]:
    res = await db.execute(select(Permission).where(Permission.id == permission_id))
    return res.scalar_one_or_none()
