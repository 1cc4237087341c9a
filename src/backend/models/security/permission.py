# src/backend/models/security/permission.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, PrimaryKeyConstraint, text
from src.backend.utils.database import Base
from src.backend.utils.timezone import now_local

class Permission(Base):
    __tablename__ = "permissions"

    id      = Column(Integer, primary_key=True, autoincrement=True)
    code    = Column(String(120), nullable=False, unique=True)   # e.g. "menus.edit"
    name    = Column(String(150), nullable=False)
    status  = Column(String(20), nullable=True, server_default=text("'active'"))

    created_by = Column(String(50), nullable=True)
    created_dt = Column(DateTime(timezone=True), default=now_local, nullable=False)


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (PrimaryKeyConstraint("role_id", "permission_id"),)

    role_id       = Column(String(2), ForeignKey("roles.role_id"), nullable=False)
    permission_id = Column(Integer, ForeignKey("permissions.id"), nullable=False)

    status        = Column(String(20), nullable=True, server_default=text("'active'"))
    created_by  = Column(String(50), nullable=True)
    created_dt = Column(DateTime(timezone=True), default=now_local, nullable=False)
    updated_by  = Column(String(50), nullable=True)
    updated_dt = Column(DateTime(timezone=True), default=now_local, onupdate=now_local, nullable=False)
