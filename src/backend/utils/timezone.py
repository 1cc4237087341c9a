# src/backend/utils/timezone.py
from __future__ import annotations

import os
import logging
from datetime import datetime, date
from dotenv import load_dotenv

import pytz

# -----------------------------------------------------------------------------
# Load environment variables
# -----------------------------------------------------------------------------
load_dotenv()

# Company runs on Vietnam time unless TIMEZONE says otherwise
_TZ_ENV = os.getenv("TIMEZONE", "Asia/Ho_Chi_Minh")

# -----------------------------------------------------------------------------
# Configure local timezone with fallback
# -----------------------------------------------------------------------------
try:
    LOCAL_TZ = pytz.timezone(_TZ_ENV)
except pytz.UnknownTimeZoneError as exc:
    logging.getLogger(__name__).warning(
        "Invalid TIMEZONE '%s' in environment; falling back to Asia/Ho_Chi_Minh. Error: %s",
        _TZ_ENV,
        exc
    )
    LOCAL_TZ = pytz.timezone("Asia/Ho_Chi_Minh")

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------
def now_local() -> datetime:
    """
    Current time as a timezone-aware datetime in the configured local timezone.
    Used for audit columns and menu soft-delete stamps.
    """
    return datetime.now(LOCAL_TZ)


def today_local() -> date:
    return now_local().date()
