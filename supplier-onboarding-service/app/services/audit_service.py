"""
Review workflow for supplier registrations.

    pending ──approve──▶ approved ──suspend──▶ suspended
       │                    ▲                      │
       └──reject──▶ rejected └──────restore────────┘

Approving commits the decision and its audit record first and provisions
terminal access afterwards, in a separate transaction. A provisioning failure
is logged and never undoes the decision; approving the same record again
completes whatever provisioning is missing.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Any, Callable, Dict, List, Optional
import logging
import uuid

from app.core.config import get_settings
from app.models.supplier import Supplier, Profile
from app.models.audit import AuditRecord
from app.schemas.audit import (
    ListPendingCommand, GetSupplierDetailCommand, ApproveCommand, RejectCommand,
    SuspendCommand, RestoreCommand, GetStatisticsCommand, GetRecentAuditsCommand,
    AuditCommand, ActionResult, SupplierListResponse, SupplierDetailResponse, SupplierStatistics,
    AuditRecordResponse, RecentAuditsResponse
)
from app.schemas.onboarding import SupplierResponse, ProfileResponse
from app.services.provisioning_service import ProvisioningService
from app.utils.helpers import utcnow
from shared.exceptions import NotFoundException, ValidationException, ProvisioningException
from shared.models import SupplierStatus, SupplierType, AuditType, AuditStatus, Terminal

logger = logging.getLogger(__name__)

settings = get_settings()

ALLOWED_TRANSITIONS = {
    SupplierStatus.PENDING: {SupplierStatus.APPROVED, SupplierStatus.REJECTED},
    SupplierStatus.APPROVED: {SupplierStatus.SUSPENDED},
    SupplierStatus.SUSPENDED: {SupplierStatus.APPROVED},
    SupplierStatus.REJECTED: set(),
}


def can_transition(current: SupplierStatus, target: SupplierStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class AuditService:
    def __init__(self, provisioning_service: ProvisioningService = None):
        self.settings = settings
        self.provisioning_service = provisioning_service or ProvisioningService()
        self._handlers: Dict[type, Callable] = {
            ListPendingCommand: self._handle_list_pending,
            GetSupplierDetailCommand: self._handle_get_supplier_detail,
            ApproveCommand: self._handle_approve,
            RejectCommand: self._handle_reject,
            SuspendCommand: self._handle_suspend,
            RestoreCommand: self._handle_restore,
            GetStatisticsCommand: self._handle_get_statistics,
            GetRecentAuditsCommand: self._handle_get_recent_audits,
        }

    @property
    def handled_commands(self) -> set:
        return set(self._handlers)

    async def dispatch(self, db: AsyncSession, command: AuditCommand, reviewer_id: uuid.UUID) -> Dict[str, Any]:
        """Run one admin audit command and return its JSON-ready result."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise ValidationException(f"Unknown action: {getattr(command, 'action', None)}")
        logger.info(f"Audit action: {command.action} by {reviewer_id}")
        result = await handler(db, command, reviewer_id)
        return result.model_dump(mode="json", by_alias=True)

    # Queries

    async def list_suppliers(self, db: AsyncSession, status: str = "pending") -> List[SupplierResponse]:
        query = select(Supplier).order_by(Supplier.created_at.desc())
        if status != "all":
            query = query.where(Supplier.status == SupplierStatus(status))
        result = await db.execute(query)
        suppliers = result.scalars().all()

        profiles = await self._get_profiles(db, [s.user_id for s in suppliers])
        return [self._to_response(s, profiles.get(s.user_id)) for s in suppliers]

    async def get_supplier_detail(self, db: AsyncSession, supplier_id: uuid.UUID) -> SupplierResponse:
        supplier = await self._get_supplier(db, supplier_id)
        profiles = await self._get_profiles(db, [supplier.user_id])
        return self._to_response(supplier, profiles.get(supplier.user_id))

    async def get_statistics(self, db: AsyncSession) -> SupplierStatistics:
        stats = SupplierStatistics(by_type={t.value: 0 for t in SupplierType})

        by_status = await db.execute(
            select(Supplier.status, func.count(Supplier.id)).group_by(Supplier.status)
        )
        for status, count in by_status.all():
            setattr(stats, SupplierStatus(status).value, count)
            stats.total += count

        by_type = await db.execute(
            select(Supplier.supplier_type, func.count(Supplier.id)).group_by(Supplier.supplier_type)
        )
        for supplier_type, count in by_type.all():
            stats.by_type[SupplierType(supplier_type).value] = count

        return stats

    async def get_recent_audits(self, db: AsyncSession, limit: Optional[int] = None) -> List[AuditRecord]:
        result = await db.execute(
            select(AuditRecord)
            .order_by(AuditRecord.created_at.desc())
            .limit(limit or self.settings.RECENT_AUDITS_LIMIT)
        )
        return list(result.scalars().all())

    # Decisions

    async def approve(self, db: AsyncSession, supplier_id: uuid.UUID, reviewer_id: uuid.UUID) -> Supplier:
        supplier = await self._get_supplier(db, supplier_id)
        user_id = supplier.user_id

        if supplier.status == SupplierStatus.APPROVED:
            # Already decided: only the provisioning is retried
            logger.info(f"ℹ️ Supplier {supplier_id} already approved, re-running provisioning")
        else:
            self._ensure_transition(supplier, SupplierStatus.APPROVED, allowed_from={SupplierStatus.PENDING})
            supplier.status = SupplierStatus.APPROVED
            supplier.approved_at = utcnow()
            supplier.approved_by = reviewer_id
            supplier.rejection_reason = None
            supplier.suspension_note = None
            self._add_audit_record(db, supplier, AuditStatus.APPROVED, reviewer_id)
            await db.commit()
            logger.info(f"✅ Supplier {supplier_id} approved by {reviewer_id}")

        try:
            await self.provisioning_service.provision_terminal_access(db, user_id, Terminal.SUPPLIER)
        except ProvisioningException as e:
            logger.error(f"❌ Supplier {supplier_id} approved but permissions are incomplete: {e.message}")

        return supplier

    async def reject(self, db: AsyncSession, supplier_id: uuid.UUID, reason: str, reviewer_id: uuid.UUID) -> Supplier:
        if not reason or not reason.strip():
            raise ValidationException("Rejection reason is required")

        supplier = await self._get_supplier(db, supplier_id)
        self._ensure_transition(supplier, SupplierStatus.REJECTED, allowed_from={SupplierStatus.PENDING})

        supplier.status = SupplierStatus.REJECTED
        supplier.rejection_reason = reason.strip()
        self._add_audit_record(db, supplier, AuditStatus.REJECTED, reviewer_id, comment=supplier.rejection_reason)
        await db.commit()
        logger.info(f"🚫 Supplier {supplier_id} rejected by {reviewer_id}")
        return supplier

    async def suspend(
        self,
        db: AsyncSession,
        supplier_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        reason: Optional[str] = None
    ) -> Supplier:
        supplier = await self._get_supplier(db, supplier_id)
        self._ensure_transition(supplier, SupplierStatus.SUSPENDED, allowed_from={SupplierStatus.APPROVED})

        supplier.status = SupplierStatus.SUSPENDED
        supplier.suspension_note = reason or self.settings.DEFAULT_SUSPENSION_NOTE
        await db.commit()
        logger.info(f"⏸️ Supplier {supplier_id} suspended by {reviewer_id}")
        return supplier

    async def restore(self, db: AsyncSession, supplier_id: uuid.UUID, reviewer_id: uuid.UUID) -> Supplier:
        supplier = await self._get_supplier(db, supplier_id)
        self._ensure_transition(supplier, SupplierStatus.APPROVED, allowed_from={SupplierStatus.SUSPENDED})

        # Role assignments were never revoked, so nothing is re-provisioned
        supplier.status = SupplierStatus.APPROVED
        supplier.suspension_note = None
        await db.commit()
        logger.info(f"▶️ Supplier {supplier_id} restored by {reviewer_id}")
        return supplier

    # Command handlers

    async def _handle_list_pending(self, db, command: ListPendingCommand, reviewer_id):
        return SupplierListResponse(suppliers=await self.list_suppliers(db, command.status))

    async def _handle_get_supplier_detail(self, db, command: GetSupplierDetailCommand, reviewer_id):
        return SupplierDetailResponse(supplier=await self.get_supplier_detail(db, command.supplier_id))

    async def _handle_approve(self, db, command: ApproveCommand, reviewer_id):
        await self.approve(db, command.supplier_id, reviewer_id)
        return ActionResult()

    async def _handle_reject(self, db, command: RejectCommand, reviewer_id):
        await self.reject(db, command.supplier_id, command.reason, reviewer_id)
        return ActionResult()

    async def _handle_suspend(self, db, command: SuspendCommand, reviewer_id):
        await self.suspend(db, command.supplier_id, reviewer_id, command.reason)
        return ActionResult()

    async def _handle_restore(self, db, command: RestoreCommand, reviewer_id):
        await self.restore(db, command.supplier_id, reviewer_id)
        return ActionResult()

    async def _handle_get_statistics(self, db, command: GetStatisticsCommand, reviewer_id):
        return await self.get_statistics(db)

    async def _handle_get_recent_audits(self, db, command: GetRecentAuditsCommand, reviewer_id):
        records = await self.get_recent_audits(db, command.limit)
        return RecentAuditsResponse(audits=[AuditRecordResponse.model_validate(r) for r in records])

    # Helpers

    async def _get_supplier(self, db: AsyncSession, supplier_id: uuid.UUID) -> Supplier:
        result = await db.execute(select(Supplier).where(Supplier.id == supplier_id))
        supplier = result.scalar_one_or_none()
        if not supplier:
            raise NotFoundException("Supplier not found")
        return supplier

    async def _get_profiles(self, db: AsyncSession, user_ids: List[uuid.UUID]) -> Dict[uuid.UUID, Profile]:
        if not user_ids:
            return {}
        result = await db.execute(select(Profile).where(Profile.user_id.in_(user_ids)))
        return {p.user_id: p for p in result.scalars().all()}

    def _ensure_transition(self, supplier: Supplier, target: SupplierStatus, allowed_from: set):
        current = SupplierStatus(supplier.status)
        if current not in allowed_from or not can_transition(current, target):
            raise ValidationException(
                f"Cannot move supplier from {current.value} to {target.value}",
                details={"current_status": current.value, "target_status": target.value}
            )

    def _add_audit_record(
        self,
        db: AsyncSession,
        supplier: Supplier,
        status: AuditStatus,
        reviewer_id: uuid.UUID,
        comment: Optional[str] = None
    ):
        db.add(AuditRecord(
            audit_type=AuditType.REGISTRATION,
            target_id=supplier.id,
            target_table=Supplier.__tablename__,
            status=status,
            submitted_by=supplier.user_id,
            reviewed_by=reviewer_id,
            review_comment=comment,
            reviewed_at=utcnow()
        ))

    def _to_response(self, supplier: Supplier, profile: Optional[Profile] = None) -> SupplierResponse:
        response = SupplierResponse.model_validate(supplier)
        if profile is not None:
            response.profile = ProfileResponse.model_validate(profile)
        return response
