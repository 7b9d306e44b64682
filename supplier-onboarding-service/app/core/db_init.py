"""
Supplier Onboarding Service Database Initialization
Creates the schema and seeds the menu catalogue of every terminal.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from app.core.config import get_settings
from app.core.database import init_db, AsyncSessionLocal
from app.models import supplier, permission, audit  # noqa: F401  registers the tables on Base
from app.models.permission import MenuPermission
from shared.models import Terminal

logger = logging.getLogger(__name__)

# (menu_key, menu_name, menu_path, icon)
DEFAULT_MENUS = {
    Terminal.SUPPLIER: [
        ("dashboard", "Dashboard", "/dashboard", "LayoutDashboard"),
        ("info", "Company Information", "/info", "Building2"),
        ("products", "Products", "/products", "Package"),
        ("qualifications", "Qualifications", "/qualifications", "FileCheck"),
        ("reports", "Reports", "/reports", "BarChart3"),
        ("complaints", "Complaints", "/complaints", "MessageSquareWarning"),
    ],
    Terminal.DEPARTMENT: [
        ("dashboard", "Dashboard", "/department", "LayoutDashboard"),
        ("suppliers", "Suppliers", "/department/suppliers", "Users"),
        ("products", "Products", "/department/products", "Package"),
    ],
    Terminal.ADMIN: [
        ("dashboard", "Dashboard", "/admin", "LayoutDashboard"),
        ("users", "Users", "/admin/users", "Users"),
        ("audit", "Audit", "/admin/audit", "ClipboardCheck"),
        ("suppliers", "Suppliers", "/admin/suppliers", "Building2"),
        ("products", "Products", "/admin/products", "Package"),
        ("reports", "Reports", "/admin/reports", "BarChart3"),
        ("announcements", "Announcements", "/admin/announcements", "Megaphone"),
        ("settings", "Settings", "/admin/settings", "Settings"),
    ],
}


async def seed_default_menus(session: AsyncSession) -> int:
    """Insert catalogue entries that are missing. Returns the number of rows added."""
    result = await session.execute(select(MenuPermission.terminal, MenuPermission.menu_key))
    existing = {(terminal, key) for terminal, key in result.all()}

    added = 0
    for terminal, menus in DEFAULT_MENUS.items():
        for sort_order, (menu_key, menu_name, menu_path, icon) in enumerate(menus, start=1):
            if (terminal, menu_key) in existing:
                continue
            session.add(MenuPermission(
                terminal=terminal,
                menu_key=menu_key,
                menu_name=menu_name,
                menu_path=menu_path,
                sort_order=sort_order,
                icon=icon,
                is_active=True
            ))
            added += 1

    await session.commit()
    return added


async def init_supplier_onboarding_database() -> bool:
    """
    Initialize the supplier onboarding service database.
    This is the main function called during service startup.

    Returns:
        bool: True if initialization successful, False otherwise
    """
    try:
        logger.info("🚀 Initializing supplier onboarding service database...")
        await init_db()

        if get_settings().SEED_DEFAULT_MENUS:
            async with AsyncSessionLocal() as session:
                added = await seed_default_menus(session)
            if added:
                logger.info(f"✅ Seeded {added} default menu entries")
            else:
                logger.info("ℹ️ Default menu catalogue already present")

        logger.info("✅ Supplier onboarding service database initialization completed successfully")
        return True

    except Exception as e:
        logger.error(f"❌ Supplier onboarding service database initialization error: {e}")
        return False
