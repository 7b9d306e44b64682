from pydantic import BaseModel, Field, validator
from typing import Optional, List
import uuid

from shared.models import Terminal
from app.utils.helpers import blank_to_none


class MenuCreate(BaseModel):
    terminal: Terminal
    menu_key: str = Field(..., min_length=1, max_length=100)
    menu_name: str = Field(..., min_length=1, max_length=100)
    menu_path: str = Field(..., min_length=1)
    parent_key: Optional[str] = None
    sort_order: int = 0
    icon: Optional[str] = None
    is_active: bool = True

    @validator("parent_key", "icon", pre=True)
    def empty_text_to_none(cls, v):
        return blank_to_none(v)


class MenuResponse(BaseModel):
    id: str
    terminal: Terminal
    menu_key: str
    menu_name: str
    menu_path: str
    parent_key: Optional[str] = None
    sort_order: Optional[int] = None
    icon: Optional[str] = None
    is_active: bool

    @validator("id", pre=True)
    def convert_uuid_to_str(cls, v):
        if isinstance(v, uuid.UUID):
            return str(v)
        return v

    class Config:
        from_attributes = True


class MenuListResponse(BaseModel):
    menus: List[MenuResponse]
