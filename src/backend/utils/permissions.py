# src/backend/utils/permissions.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.backend.crud.permissions import get_role_permissions
from src.backend.models.user import User
from src.backend.utils.auth import get_current_user
from src.backend.utils.database import get_db

logger = logging.getLogger(__name__)

# permission codes guarding the menu admin API
MENU_PERMITS = {
    "view": "menus.view",
    "create": "menus.create",
    "edit": "menus.edit",
    "delete": "menus.delete",
}


@dataclass(frozen=True)
class CallerPermissions:
    ids: FrozenSet[Any] = field(default_factory=frozenset)
    codes: FrozenSet[str] = field(default_factory=frozenset)

    def has(self, code: str) -> bool:
        return code in self.codes


def _state_get(request: Optional[Request], key: str) -> Any:
    if request is None:
        return None
    return getattr(request.state, key, None)


def _state_set(request: Optional[Request], key: str, value: Any) -> None:
    if request is not None:
        setattr(request.state, key, value)


async def ensure_request_perms(
    db: AsyncSession,
    user: User,
    request: Optional[Request] = None,
) -> CallerPermissions:
    """
    Compute the caller's permissions ONCE per request and store them in
    request.state.perms; later calls in the same request reuse them.
    """
    cached = _state_get(request, "perms")
    if isinstance(cached, CallerPermissions):
        return cached

    role_id = (getattr(user, "role_id", "") or "").strip()
    perms = CallerPermissions()
    if role_id:
        rows = await get_role_permissions(db, role_id)
        perms = CallerPermissions(
            ids=frozenset(p.id for p in rows),
            codes=frozenset((p.code or "").strip() for p in rows if p.code),
        )
        logger.debug("PERMS COMPUTED (db hit) role=%s count=%s", role_id, len(rows))

    _state_set(request, "perms", perms)
    return perms


def require_perm(code: str) -> Callable:
    """FastAPI dependency enforcing a permission code for the current user."""
    if not code:
        raise ValueError("Permission code required")

    async def _dep(
        request: Request,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> None:
        perms = await ensure_request_perms(db, current_user, request)
        if not perms.has(code):
            logger.warning(
                "403(permit denied): user=%s role=%s permit=%s path=%s",
                getattr(current_user, "login_id", None),
                getattr(current_user, "role_id", None),
                code,
                request.url.path,
            )
            raise HTTPException(status_code=403, detail="Forbidden")

    return _dep


# nice shorthands
require_view = require_perm(MENU_PERMITS["view"])
require_create = require_perm(MENU_PERMITS["create"])
require_edit = require_perm(MENU_PERMITS["edit"])
require_delete = require_perm(MENU_PERMITS["delete"])
