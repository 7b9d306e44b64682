from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_current_admin
from app.core.database import get_db
from app.schemas.menu import MenuCreate, MenuResponse, MenuListResponse
from app.services.menu_service import MenuService
from shared.models import Terminal

router = APIRouter(prefix="/menus", tags=["Menus"])


@router.get("", response_model=MenuListResponse)
async def get_user_menus(
    terminal: Terminal = Query(Terminal.SUPPLIER, description="Terminal whose menus are listed"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    menus = await MenuService().get_user_menus(
        db, current_user["user_id"], current_user["roles"], terminal
    )
    return MenuListResponse(menus=[MenuResponse.model_validate(m) for m in menus])


@router.post("", response_model=MenuResponse, status_code=201)
async def create_menu(
    menu_data: MenuCreate,
    current_user: dict = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Add a menu entry. Existing default-role snapshots do not pick it up."""
    menu = await MenuService().create_menu(db, menu_data)
    return MenuResponse.model_validate(menu)
