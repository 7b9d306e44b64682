from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
import logging
import uuid

from app.models.supplier import Supplier
from app.schemas.onboarding import SupplierRegistration
from shared.exceptions import NotFoundException, ValidationException
from shared.models import SupplierStatus, SupplierType

logger = logging.getLogger(__name__)


class OnboardingService:
    async def register(self, db: AsyncSession, user_id: uuid.UUID, registration: SupplierRegistration) -> Supplier:
        """Create the caller's supplier record in pending status."""
        existing = await db.execute(select(Supplier.id).where(Supplier.user_id == user_id))
        if existing.scalar_one_or_none() is not None:
            raise ValidationException("Supplier already registered for this account")

        supplier = Supplier(
            user_id=user_id,
            status=SupplierStatus.PENDING,
            **registration.model_dump(exclude={"supplier_type"}),
            supplier_type=SupplierType(registration.supplier_type)
        )
        db.add(supplier)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(f"⚠️ Concurrent registration for user {user_id} rejected")
            raise ValidationException("Supplier already registered for this account")

        await db.refresh(supplier)
        logger.info(f"📝 Registered {supplier.supplier_type.value} supplier {supplier.id} for user {user_id}")
        return supplier

    async def get_status(self, db: AsyncSession, user_id: uuid.UUID) -> Supplier:
        result = await db.execute(select(Supplier).where(Supplier.user_id == user_id))
        supplier = result.scalar_one_or_none()
        if not supplier:
            raise NotFoundException("Supplier not found")
        return supplier
