from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Annotated, Union

from app.api.deps import get_current_user
from app.core.database import get_db
from app.schemas.onboarding import REGISTRATION_VARIANTS, RegistrationResponse, SupplierResponse
from app.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/onboarding", tags=["Supplier Onboarding"])

RegistrationBody = Annotated[Union[REGISTRATION_VARIANTS], Body(discriminator="supplier_type")]


@router.post("/register", response_model=RegistrationResponse)
async def register_supplier(
    registration: RegistrationBody,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Submit the caller's supplier registration for review."""
    supplier = await OnboardingService().register(db, current_user["user_id"], registration)
    return RegistrationResponse(supplier_id=str(supplier.id), status=supplier.status)


@router.get("/status", response_model=SupplierResponse)
async def get_onboarding_status(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    supplier = await OnboardingService().get_status(db, current_user["user_id"])
    return SupplierResponse.model_validate(supplier)
