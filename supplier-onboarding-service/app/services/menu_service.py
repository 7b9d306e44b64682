from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from typing import List, Set
import logging
import uuid

from app.models.permission import MenuPermission, BackendRole, RoleMenuPermission, UserBackendRole
from app.schemas.menu import MenuCreate
from shared.exceptions import ValidationException
from shared.models import AppRole, Terminal

logger = logging.getLogger(__name__)


class MenuService:
    async def get_user_menus(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        roles: Set[AppRole],
        terminal: Terminal
    ) -> List[MenuPermission]:
        """
        Menus of a terminal the user may open.

        Admins see every active menu. Everyone else sees the active menus
        attached to their active backend roles.
        """
        query = select(MenuPermission).where(
            MenuPermission.terminal == terminal,
            MenuPermission.is_active.is_(True)
        )

        if AppRole.ADMIN not in roles:
            reachable = (
                select(RoleMenuPermission.menu_id)
                .join(BackendRole, BackendRole.id == RoleMenuPermission.role_id)
                .join(UserBackendRole, UserBackendRole.role_id == BackendRole.id)
                .where(UserBackendRole.user_id == user_id, BackendRole.is_active.is_(True))
            )
            query = query.where(MenuPermission.id.in_(reachable))

        result = await db.execute(query.order_by(MenuPermission.sort_order, MenuPermission.menu_key))
        return list(result.scalars().all())

    async def create_menu(self, db: AsyncSession, menu_data: MenuCreate) -> MenuPermission:
        existing = await db.execute(
            select(MenuPermission.id).where(
                MenuPermission.terminal == menu_data.terminal,
                MenuPermission.menu_key == menu_data.menu_key
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ValidationException(f"Menu {menu_data.menu_key} already exists for {menu_data.terminal.value}")

        menu = MenuPermission(**menu_data.model_dump())
        db.add(menu)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ValidationException(f"Menu {menu_data.menu_key} already exists for {menu_data.terminal.value}")

        await db.refresh(menu)
        logger.info(f"📋 Added menu {menu.menu_key} to {menu.terminal.value} terminal")
        return menu
