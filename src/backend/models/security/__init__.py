# src/backend/models/security/__init__.py
from .menu import Menu
from .permission import Permission, RolePermission
from .role import Role

__all__ = ["Menu", "Permission", "RolePermission", "Role"]
