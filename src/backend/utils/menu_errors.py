# src/backend/utils/menu_errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class MenuError(Exception):
    """Base for menu tree errors that are surfaced to the caller."""

    status_code: int = 400
    error_code: str = "MENU_ERROR"
    default_message: str = "Invalid menu operation."

    def __init__(self, message: Optional[str] = None, **detail: Any) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error_code": self.error_code}
        if self.detail:
            out["detail"] = self.detail
        return out


class StructuralViolation(MenuError):
    """The requested parent would break the tree (cycle, self, missing)."""

    status_code = 409
    error_code = "MENU_STRUCTURAL_VIOLATION"
    default_message = "Selected parent menu is not allowed."


class ImmutableFieldViolation(MenuError):
    """An edit tried to change id, code or type."""

    status_code = 422
    error_code = "MENU_IMMUTABLE_FIELD"
    default_message = "Menu id, code and type cannot be changed."


class MenuNotFound(MenuError):
    status_code = 404
    error_code = "MENU_NOT_FOUND"
    default_message = "Menu not found."


class OrphanReference(MenuError):
    """
    Non-fatal: a parent_id points at no usable parent.

    Never raised by the tree. Instances are handed to the reporter and the
    node is traversed as a root.
    """

    error_code = "MENU_ORPHAN_REFERENCE"
    default_message = "Menu parent reference is dangling."

    def __init__(self, node_id: Any, parent_id: Any, reason: str = "missing") -> None:
        self.node_id = node_id
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(
            f"Menu {node_id!r} has {reason} parent {parent_id!r}; treated as root.",
            node_id=node_id,
            parent_id=parent_id,
            reason=reason,
        )


class UnknownPermission(MenuError):
    """required_permission_id names no permission."""

    status_code = 422
    error_code = "MENU_UNKNOWN_PERMISSION"
    default_message = "Required permission does not exist."
