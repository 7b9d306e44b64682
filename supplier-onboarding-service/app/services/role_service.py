from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, delete
from typing import Dict, List
import logging
import uuid

from app.models.permission import UserRole, MenuPermission, BackendRole, RoleMenuPermission, UserBackendRole
from app.models.supplier import Profile
from app.schemas.menu import MenuResponse
from app.schemas.onboarding import ProfileResponse
from app.schemas.role import RoleCreate, RoleUpdate, RoleResponse, RoleUserResponse, RolesDataResponse
from shared.exceptions import NotFoundException, ValidationException
from shared.models import AppRole, Terminal

logger = logging.getLogger(__name__)


class RoleService:
    """Backend role management for the admin and department consoles."""

    async def get_roles_data(self, db: AsyncSession, terminal: Terminal) -> RolesDataResponse:
        """
        Everything the role editor of a terminal needs in one response:
        all backend roles with their menu ids, the terminal's active menus,
        and the console users (admins for the admin terminal, department
        users otherwise) with the backend roles they hold.
        """
        roles = (await db.execute(select(BackendRole).order_by(BackendRole.name))).scalars().all()

        role_menus: Dict[uuid.UUID, List[str]] = {}
        links = await db.execute(select(RoleMenuPermission.role_id, RoleMenuPermission.menu_id))
        for role_id, menu_id in links.all():
            role_menus.setdefault(role_id, []).append(str(menu_id))

        menus = await db.execute(
            select(MenuPermission)
            .where(MenuPermission.terminal == terminal, MenuPermission.is_active.is_(True))
            .order_by(MenuPermission.sort_order, MenuPermission.menu_key)
        )

        return RolesDataResponse(
            roles=[
                RoleResponse.model_validate(role).model_copy(update={"menu_permissions": role_menus.get(role.id, [])})
                for role in roles
            ],
            menus=[MenuResponse.model_validate(m) for m in menus.scalars().all()],
            users=await self._get_console_users(db, terminal)
        )

    async def create_role(self, db: AsyncSession, role_data: RoleCreate) -> BackendRole:
        existing = await db.execute(select(BackendRole.id).where(BackendRole.code == role_data.code))
        if existing.scalar_one_or_none() is not None:
            raise ValidationException(f"Role {role_data.code} already exists")

        menu_ids = await self._validate_menu_ids(db, role_data.menu_permissions)
        role = BackendRole(
            id=uuid.uuid4(), code=role_data.code, name=role_data.name, description=role_data.description
        )
        db.add(role)
        db.add_all([RoleMenuPermission(role_id=role.id, menu_id=menu_id) for menu_id in menu_ids])

        await self._commit(db, f"Role {role_data.code} already exists")
        logger.info(f"🔐 Created backend role {role.code} with {len(menu_ids)} menus")
        return role

    async def update_role(self, db: AsyncSession, role_id: uuid.UUID, role_data: RoleUpdate) -> BackendRole:
        role = await self._get_role(db, role_id)

        clash = await db.execute(
            select(BackendRole.id).where(BackendRole.code == role_data.code, BackendRole.id != role_id)
        )
        if clash.scalar_one_or_none() is not None:
            raise ValidationException(f"Role {role_data.code} already exists")

        menu_ids = await self._validate_menu_ids(db, role_data.menu_permissions)
        role.name = role_data.name
        role.code = role_data.code
        role.description = role_data.description

        # The menu set is replaced, not merged
        await db.execute(delete(RoleMenuPermission).where(RoleMenuPermission.role_id == role_id))
        db.add_all([RoleMenuPermission(role_id=role_id, menu_id=menu_id) for menu_id in menu_ids])

        await self._commit(db, f"Role {role_data.code} already exists")
        logger.info(f"🔐 Updated backend role {role.code}, now {len(menu_ids)} menus")
        return role

    async def delete_role(self, db: AsyncSession, role_id: uuid.UUID) -> None:
        """Delete a role with its menu links and user assignments."""
        role = await self._get_role(db, role_id)
        code = role.code

        await db.execute(delete(RoleMenuPermission).where(RoleMenuPermission.role_id == role_id))
        await db.execute(delete(UserBackendRole).where(UserBackendRole.role_id == role_id))
        await db.delete(role)
        await db.commit()
        logger.info(f"🗑️ Deleted backend role {code}")

    async def assign_user_roles(self, db: AsyncSession, user_id: uuid.UUID, role_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        """Replace the backend roles a user holds with exactly `role_ids`."""
        role_ids = list(dict.fromkeys(role_ids))
        if role_ids:
            found = await db.execute(select(BackendRole.id).where(BackendRole.id.in_(role_ids)))
            missing = set(role_ids) - set(found.scalars().all())
            if missing:
                raise ValidationException(
                    "Unknown backend role", details={"role_ids": sorted(str(r) for r in missing)}
                )

        await db.execute(delete(UserBackendRole).where(UserBackendRole.user_id == user_id))
        db.add_all([UserBackendRole(user_id=user_id, role_id=role_id) for role_id in role_ids])
        await db.commit()
        logger.info(f"👥 User {user_id} now holds {len(role_ids)} backend roles")
        return role_ids

    async def _get_role(self, db: AsyncSession, role_id: uuid.UUID) -> BackendRole:
        result = await db.execute(select(BackendRole).where(BackendRole.id == role_id))
        role = result.scalar_one_or_none()
        if not role:
            raise NotFoundException("Role not found")
        return role

    async def _validate_menu_ids(self, db: AsyncSession, menu_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        menu_ids = list(dict.fromkeys(menu_ids))
        if not menu_ids:
            return []
        found = await db.execute(select(MenuPermission.id).where(MenuPermission.id.in_(menu_ids)))
        missing = set(menu_ids) - set(found.scalars().all())
        if missing:
            raise ValidationException("Unknown menu", details={"menu_ids": sorted(str(m) for m in missing)})
        return menu_ids

    async def _commit(self, db: AsyncSession, conflict_message: str):
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ValidationException(conflict_message)

    async def _get_console_users(self, db: AsyncSession, terminal: Terminal) -> List[RoleUserResponse]:
        target_role = AppRole.ADMIN if terminal == Terminal.ADMIN else AppRole.DEPARTMENT
        user_ids = (await db.execute(
            select(UserRole.user_id).where(UserRole.role == target_role)
        )).scalars().all()
        if not user_ids:
            return []

        profiles = {
            p.user_id: p
            for p in (await db.execute(select(Profile).where(Profile.user_id.in_(user_ids)))).scalars().all()
        }
        held: Dict[uuid.UUID, List[str]] = {}
        assignments = await db.execute(
            select(UserBackendRole.user_id, UserBackendRole.role_id).where(UserBackendRole.user_id.in_(user_ids))
        )
        for user_id, role_id in assignments.all():
            held.setdefault(user_id, []).append(str(role_id))

        users = []
        for user_id in user_ids:
            profile = profiles.get(user_id)
            users.append(RoleUserResponse(
                id=str(user_id),
                email=profile.email if profile else None,
                profile=ProfileResponse.model_validate(profile) if profile else None,
                backend_roles=held.get(user_id, [])
            ))
        return users
