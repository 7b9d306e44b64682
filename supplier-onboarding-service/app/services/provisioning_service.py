"""
Permission provisioning for approved accounts.

An approved account of a terminal holds the terminal's app role and is
assigned the terminal's default backend role. The default role is created
on first use and receives a snapshot of every menu that is active for the
terminal at that moment; menus added later are not propagated to it.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from dataclasses import dataclass
from typing import Set, Tuple
import logging
import uuid

from app.models.permission import UserRole, BackendRole, MenuPermission, RoleMenuPermission, UserBackendRole
from shared.exceptions import ProvisioningException
from shared.models import AppRole, Terminal

logger = logging.getLogger(__name__)

TERMINAL_APP_ROLES = {
    Terminal.SUPPLIER: AppRole.SUPPLIER,
    Terminal.DEPARTMENT: AppRole.DEPARTMENT,
    Terminal.ADMIN: AppRole.ADMIN,
}

DEFAULT_ROLE_DETAILS = {
    Terminal.SUPPLIER: ("Supplier default role", "Granted on supplier approval; access to every supplier terminal menu"),
    Terminal.DEPARTMENT: ("Department default role", "Access to every department terminal menu"),
    Terminal.ADMIN: ("Admin default role", "Access to every admin terminal menu"),
}


def default_role_code(terminal: Terminal) -> str:
    return f"{terminal.value}_default"


@dataclass
class ProvisioningResult:
    user_id: uuid.UUID
    terminal: Terminal
    role_id: uuid.UUID = None
    app_role_granted: bool = False
    default_role_created: bool = False
    menus_attached: int = 0
    assignment_created: bool = False


class ProvisioningService:
    # A concurrent approval may win a unique-constraint race once; the retry then sees its rows
    MAX_ATTEMPTS = 2

    async def get_app_roles(self, db: AsyncSession, user_id: uuid.UUID) -> Set[AppRole]:
        result = await db.execute(select(UserRole.role).where(UserRole.user_id == user_id))
        return set(result.scalars().all())

    async def has_app_role(self, db: AsyncSession, user_id: uuid.UUID, role: AppRole) -> bool:
        result = await db.execute(
            select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role)
        )
        return result.scalar_one_or_none() is not None

    async def provision_terminal_access(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        terminal: Terminal = Terminal.SUPPLIER
    ) -> ProvisioningResult:
        """
        Make sure the user can reach every menu of the terminal's default role.

        Runs in its own transaction, committed only when every step succeeded.
        Raises ProvisioningException when the steps cannot be completed.
        """
        last_error = None
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                result = await self._provision(db, user_id, terminal)
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                last_error = e
                logger.warning(
                    f"⚠️ Provisioning attempt {attempt} for user {user_id} hit a uniqueness conflict, retrying"
                )
                continue
            except Exception as e:
                await db.rollback()
                raise ProvisioningException(
                    f"Provisioning {terminal.value} access for user {user_id} failed: {e}",
                    details={"user_id": str(user_id), "terminal": terminal.value}
                ) from e

            logger.info(
                f"✅ Provisioned {terminal.value} access for user {user_id} "
                f"(role_granted={result.app_role_granted}, role_created={result.default_role_created}, "
                f"menus={result.menus_attached}, assignment_created={result.assignment_created})"
            )
            return result

        raise ProvisioningException(
            f"Provisioning {terminal.value} access for user {user_id} failed after {self.MAX_ATTEMPTS} attempts",
            details={"user_id": str(user_id), "terminal": terminal.value}
        ) from last_error

    async def _provision(self, db: AsyncSession, user_id: uuid.UUID, terminal: Terminal) -> ProvisioningResult:
        result = ProvisioningResult(user_id=user_id, terminal=terminal)
        result.app_role_granted = await self.grant_app_role(db, user_id, TERMINAL_APP_ROLES[terminal])

        role, created, menu_count = await self.ensure_default_role(db, terminal)
        result.role_id = role.id
        result.default_role_created = created
        result.menus_attached = menu_count

        result.assignment_created = await self.ensure_role_assignment(db, user_id, role.id)
        return result

    async def grant_app_role(self, db: AsyncSession, user_id: uuid.UUID, role: AppRole) -> bool:
        """Add the app role unless the user already holds it. Returns True when a row was added."""
        if await self.has_app_role(db, user_id, role):
            return False
        db.add(UserRole(user_id=user_id, role=role))
        await db.flush()
        return True

    async def ensure_default_role(self, db: AsyncSession, terminal: Terminal) -> Tuple[BackendRole, bool, int]:
        """
        Return the terminal's default role, creating it with a menu snapshot when missing.

        Returns (role, created, number of menus attached by this call).
        """
        code = default_role_code(terminal)
        existing = await db.execute(select(BackendRole).where(BackendRole.code == code))
        role = existing.scalar_one_or_none()
        if role:
            return role, False, 0

        name, description = DEFAULT_ROLE_DETAILS[terminal]
        role = BackendRole(code=code, name=name, description=description, is_active=True)
        db.add(role)
        await db.flush()

        menus = await db.execute(
            select(MenuPermission.id).where(
                MenuPermission.terminal == terminal,
                MenuPermission.is_active.is_(True)
            )
        )
        menu_ids = menus.scalars().all()
        db.add_all([RoleMenuPermission(role_id=role.id, menu_id=menu_id) for menu_id in menu_ids])
        await db.flush()

        logger.info(f"📋 Created default role {code} with {len(menu_ids)} menus")
        return role, True, len(menu_ids)

    async def ensure_role_assignment(self, db: AsyncSession, user_id: uuid.UUID, role_id: uuid.UUID) -> bool:
        existing = await db.execute(
            select(UserBackendRole.id).where(
                UserBackendRole.user_id == user_id,
                UserBackendRole.role_id == role_id
            )
        )
        if existing.scalar_one_or_none() is not None:
            return False
        db.add(UserBackendRole(user_id=user_id, role_id=role_id))
        await db.flush()
        return True
