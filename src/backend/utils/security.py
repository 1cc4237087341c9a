# src/backend/utils/security.py
from __future__ import annotations

import time
from typing import Optional, Dict, Any

from jose import jwt, JWTError
from fastapi import HTTPException

from config.settings import settings

# ---- JWT settings ----
JWT_SECRET: str = settings.JWT_SECRET
JWT_ALG: str = settings.JWT_ALG
ACCESS_TOKEN_EXPIRE_MINUTES: int = settings.ACCESS_TOKEN_EXPIRE_MINUTES

# Clock skew tolerance (seconds)
CLOCK_SKEW_LEEWAY: int = settings.JWT_LEEWAY_SECONDS


# ---------------------------------------------------------------------
# Access tokens (issued by the auth service; created here for tools/tests)
# ---------------------------------------------------------------------
def create_access_token(data: Dict[str, Any], minutes: Optional[int] = None) -> str:
    """
    Create a short-lived JWT access token.
    Uses epoch seconds to avoid timezone/datetime issues.
    """
    now_ts = int(time.time())
    exp_ts = now_ts + int(60 * (minutes or ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {**data, "iat": now_ts, "exp": exp_ts}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALG)


def _check_exp_with_leeway(payload: Dict[str, Any]) -> None:
    exp = payload.get("exp")
    if exp is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    now = int(time.time())
    if now > int(exp) + CLOCK_SKEW_LEEWAY:
        raise HTTPException(status_code=401, detail="Token expired")


def _decode_ignoring_exp(token: str) -> Dict[str, Any]:
    """
    Decode but skip built-in exp verification; we enforce exp with our own leeway.
    python-jose doesn't accept the PyJWT 'leeway=' kwarg.
    """
    return jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALG],
        options={"verify_aud": False, "verify_exp": False},
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    """Return payload or raise HTTPException(401)."""
    try:
        payload = _decode_ignoring_exp(token)
        _check_exp_with_leeway(payload)
        return payload
    except HTTPException:
        raise
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
