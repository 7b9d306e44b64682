from pydantic import BaseModel, Field, validator
from typing import Optional, List
import uuid

from app.schemas.menu import MenuResponse
from app.schemas.onboarding import ProfileResponse
from app.utils.helpers import blank_to_none


class RoleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    menu_permissions: List[uuid.UUID] = Field(default_factory=list)

    @validator("name", "code", pre=True)
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @validator("description", pre=True)
    def empty_description_to_none(cls, v):
        return blank_to_none(v)


class RoleCreate(RoleBase):
    pass


class RoleUpdate(RoleBase):
    """Full replacement of a role, including its menu set."""
    pass


class UserRolesAssignment(BaseModel):
    role_ids: List[uuid.UUID] = Field(default_factory=list)


class RoleResponse(BaseModel):
    id: str
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    menu_permissions: List[str] = Field(default_factory=list)

    @validator("id", pre=True)
    def convert_uuid_to_str(cls, v):
        if isinstance(v, uuid.UUID):
            return str(v)
        return v

    class Config:
        from_attributes = True


class RoleUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    profile: Optional[ProfileResponse] = None
    backend_roles: List[str] = Field(default_factory=list)


class RolesDataResponse(BaseModel):
    roles: List[RoleResponse]
    menus: List[MenuResponse]
    users: List[RoleUserResponse]
