# src/backend/models/security/menu.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, text
from src.backend.utils.database import Base
from src.backend.utils.timezone import now_local

class Menu(Base):
    __tablename__ = "menus"

    id                     = Column(Integer, primary_key=True, autoincrement=True)
    code                   = Column(String(120), nullable=False, unique=True, index=True)
    name                   = Column(String(150), nullable=False)
    path                   = Column(String(255), nullable=True)                # client route
    api_path               = Column(String(255), nullable=True)                # informational only
    icon                   = Column(String(120), nullable=True)
    type                   = Column(String(20), nullable=False, server_default=text("'route'"))   # route | group | link
    status                 = Column(String(20), nullable=False, server_default=text("'active'"))  # active | inactive
    parent_id              = Column(Integer, ForeignKey("menus.id"), nullable=True, index=True)   # NULL = root
    sort_order             = Column(Integer, nullable=False, default=0)
    is_public              = Column(Boolean, nullable=False, default=False)
    show_in_menu           = Column(Boolean, nullable=False, default=True)
    required_permission_id = Column(Integer, ForeignKey("permissions.id"), nullable=True)
    deleted_at             = Column(DateTime(timezone=True), nullable=True)    # soft delete

    created_by = Column(String(50), nullable=True)
    created_dt = Column(DateTime(timezone=True), default=now_local, nullable=False)
    updated_by = Column(String(50), nullable=True)
    updated_dt = Column(DateTime(timezone=True), default=now_local, onupdate=now_local, nullable=False)
