from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Annotated, Union

from app.api.deps import get_current_admin
from app.core.database import get_db
from app.schemas.audit import AUDIT_COMMANDS
from app.services.audit_service import AuditService

router = APIRouter(tags=["Admin Audit"])

AuditCommandBody = Annotated[Union[AUDIT_COMMANDS], Body(discriminator="action")]


@router.post("/admin-audit")
async def admin_audit(
    command: AuditCommandBody,
    current_user: dict = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Single entry point of the admin review console.

    The body names an action (list_pending, get_supplier_detail, approve,
    reject, suspend, restore, get_statistics, get_recent_audits) together
    with its parameters.
    """
    return await AuditService().dispatch(db, command, current_user["user_id"])
