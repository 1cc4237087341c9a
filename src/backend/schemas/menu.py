# src/backend/schemas/menu.py
from datetime import datetime
from typing import Any, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MenuType = Literal["route", "group", "link"]
MenuStatus = Literal["active", "inactive"]


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def _root_to_none(v: Any) -> Any:
    # "", "0", 0 => root
    v = _blank_to_none(v)
    if v in (0, "0"):
        return None
    return v


class MenuBase(BaseModel):
    path: Optional[str] = Field(None, max_length=255)
    api_path: Optional[str] = Field(None, max_length=255)
    icon: Optional[str] = Field(None, max_length=120)
    status: MenuStatus = "active"
    parent_id: Optional[int] = None
    sort_order: int = Field(0, ge=0)
    is_public: bool = False
    show_in_menu: bool = True
    required_permission_id: Optional[int] = None

    @field_validator("path", "api_path", "icon", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    @field_validator("parent_id", "required_permission_id", mode="before")
    @classmethod
    def normalize_ref(cls, v):
        return _root_to_none(v)

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class MenuCreate(MenuBase):
    code: str = Field(..., min_length=3, max_length=120)
    name: str = Field(..., min_length=1, max_length=150)
    type: MenuType = "route"

    @field_validator("code", "name", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class MenuUpdate(BaseModel):
    """
    Partial update. Only fields actually sent are applied (exclude_unset).
    id/code/type are accepted here so the tree can reject changes to them
    with a precise error; repeating the current value is allowed.
    """
    id: Optional[int] = None
    code: Optional[str] = None
    type: Optional[str] = None

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    path: Optional[str] = Field(None, max_length=255)
    api_path: Optional[str] = Field(None, max_length=255)
    icon: Optional[str] = Field(None, max_length=120)
    status: Optional[MenuStatus] = None
    parent_id: Optional[int] = None
    sort_order: Optional[int] = Field(None, ge=0)
    is_public: Optional[bool] = None
    show_in_menu: Optional[bool] = None
    required_permission_id: Optional[int] = None

    @field_validator("path", "api_path", "icon", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    @field_validator("parent_id", "required_permission_id", mode="before")
    @classmethod
    def normalize_ref(cls, v):
        return _root_to_none(v)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("name", "status", "sort_order", "is_public", "show_in_menu")
    @classmethod
    def not_null(cls, v, info):
        # Runs only for fields the client actually sent
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class MenuOut(BaseModel):
    id: int
    code: str
    name: str
    path: Optional[str] = None
    api_path: Optional[str] = None
    icon: Optional[str] = None
    type: str
    status: str
    parent_id: Optional[int] = None
    sort_order: int = 0
    is_public: bool = False
    show_in_menu: bool = True
    required_permission_id: Optional[int] = None
    deleted_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    # Pydantic v2: enable ORM attribute loading (SQLAlchemy -> Pydantic)
    model_config = ConfigDict(from_attributes=True)


class ParentOptionOut(BaseModel):
    id: int
    display_label: str

    model_config = ConfigDict(from_attributes=True)
