import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import uuid
from datetime import timedelta
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from main import app
from app.core.database import get_db, Base
from app.models.supplier import Supplier, Profile
from app.models.permission import UserRole, MenuPermission
from app.utils.helpers import utcnow
from shared.models import AppRole, SupplierStatus, SupplierType, Terminal
from shared.security.auth import jwt_manager

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user_id) -> dict:
    token = jwt_manager.create_access_token(str(user_id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_user_id(db_session: AsyncSession) -> uuid.UUID:
    """An account holding the admin app role."""
    user_id = uuid.uuid4()
    db_session.add(UserRole(user_id=user_id, role=AppRole.ADMIN))
    await db_session.commit()
    return user_id


@pytest.fixture
def admin_headers(admin_user_id) -> dict:
    return auth_headers(admin_user_id)


@pytest.fixture
def supplier_user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def supplier_headers(supplier_user_id) -> dict:
    return auth_headers(supplier_user_id)


async def create_supplier(
    db: AsyncSession,
    user_id: uuid.UUID = None,
    supplier_type: SupplierType = SupplierType.ENTERPRISE,
    status: SupplierStatus = SupplierStatus.PENDING,
    created_offset_minutes: int = 0,
    with_profile: bool = True
) -> Supplier:
    user_id = user_id or uuid.uuid4()
    supplier = Supplier(
        user_id=user_id,
        supplier_type=supplier_type,
        status=status,
        company_name="Acme Medical Supplies Ltd",
        unified_social_credit_code="91310000MA1FL0000X",
        legal_representative="Li Wei",
        contact_name="Zhang San",
        contact_phone="13800000000",
        contact_email="contact@acme.example",
        created_at=utcnow() + timedelta(minutes=created_offset_minutes),
    )
    db.add(supplier)
    if with_profile:
        db.add(Profile(user_id=user_id, full_name="Zhang San", email="contact@acme.example", phone="13800000000"))
    await db.commit()
    return supplier


@pytest.fixture
async def pending_supplier(db_session: AsyncSession, supplier_user_id) -> Supplier:
    return await create_supplier(db_session, user_id=supplier_user_id)


async def create_menus(db: AsyncSession, terminal: Terminal, keys) -> list:
    menus = [
        MenuPermission(
            terminal=terminal,
            menu_key=key,
            menu_name=key.title(),
            menu_path=f"/{key}",
            sort_order=index,
            is_active=True
        )
        for index, key in enumerate(keys, start=1)
    ]
    db.add_all(menus)
    await db.commit()
    return menus


@pytest.fixture
async def supplier_menus(db_session: AsyncSession) -> list:
    """Five active supplier terminal menus."""
    return await create_menus(
        db_session, Terminal.SUPPLIER, ["dashboard", "info", "products", "qualifications", "reports"]
    )


@pytest.fixture
def enterprise_registration_data():
    """Sample enterprise registration as submitted by the registration form."""
    return {
        "supplier_type": "enterprise",
        "company_name": "Acme Medical Supplies Ltd",
        "unified_social_credit_code": "91310000MA1FL0000X",
        "legal_representative": "Li Wei",
        "registered_capital": "5000000",
        "establishment_date": "2015-06-01",
        "employee_count": "120",
        "annual_revenue": "",
        "business_scope": "Medical consumables",
        "contact_name": "Zhang San",
        "contact_phone": "13800000000",
        "contact_email": "contact@acme.example",
        "address": "88 Century Avenue",
        "province": "Shanghai",
        "city": "Shanghai",
        "main_products": "Syringes, gloves",
        "production_capacity": "",
        "bank_name": "Bank of Shanghai",
        "bank_account": "6222000000000000",
        "bank_account_name": "Acme Medical Supplies Ltd"
    }
