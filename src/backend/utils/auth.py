# src/backend/utils/auth.py
from __future__ import annotations

from typing import Optional

from fastapi import Request, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.backend.models.user import User
from src.backend.utils.database import get_db
from src.backend.utils.security import decode_access_token

ACCESS_COOKIE_NAME = "access_token"


def _get_header(request: Request, name: str) -> Optional[str]:
    val = request.headers.get(name)
    return val if isinstance(val, str) else None

def _get_cookie(request: Request, name: str) -> Optional[str]:
    val = request.cookies.get(name)
    return val if isinstance(val, str) else None

def _extract_bearer(request: Request) -> Optional[str]:
    auth_header = _get_header(request, "Authorization")
    if auth_header:
        parts = auth_header.split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1].strip()

    cookie_tok = _get_cookie(request, ACCESS_COOKIE_NAME)
    if cookie_tok:
        return cookie_tok.strip()

    return None

# -------------------------------------------------------------------
# Protected dependency
# -------------------------------------------------------------------
async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    token = _extract_bearer(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_access_token(token)
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = await db.scalar(select(User).where(User.login_id == sub))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if (user.status or "A").strip().upper() != "A":
        raise HTTPException(status_code=403, detail="User is inactive")
    return user

def actor_name(user: Optional[User]) -> str:
    return (getattr(user, "login_id", None) or "System").strip() or "System"
