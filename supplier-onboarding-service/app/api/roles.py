from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.api.deps import get_current_admin, get_current_staff
from app.core.database import get_db
from app.schemas.role import RoleCreate, RoleUpdate, RoleResponse, RolesDataResponse, UserRolesAssignment
from app.services.role_service import RoleService
from shared.models import Terminal

router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get("", response_model=RolesDataResponse)
async def get_roles_data(
    terminal: Terminal = Query(Terminal.DEPARTMENT, description="Terminal whose menus and users are listed"),
    current_user: dict = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db)
):
    return await RoleService().get_roles_data(db, terminal)


@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    role_data: RoleCreate,
    current_user: dict = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    role = await RoleService().create_role(db, role_data)
    return RoleResponse.model_validate(role).model_copy(
        update={"menu_permissions": [str(m) for m in dict.fromkeys(role_data.menu_permissions)]}
    )


@router.put("/users/{user_id}")
async def assign_user_roles(
    user_id: uuid.UUID,
    assignment: UserRolesAssignment,
    current_user: dict = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Replace the backend roles held by a user."""
    await RoleService().assign_user_roles(db, user_id, assignment.role_ids)
    return {"success": True}


@router.put("/{role_id}")
async def update_role(
    role_id: uuid.UUID,
    role_data: RoleUpdate,
    current_user: dict = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await RoleService().update_role(db, role_id, role_data)
    return {"success": True}


@router.delete("/{role_id}")
async def delete_role(
    role_id: uuid.UUID,
    current_user: dict = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await RoleService().delete_role(db, role_id)
    return {"success": True}
