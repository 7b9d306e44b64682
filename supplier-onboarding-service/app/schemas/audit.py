from pydantic import BaseModel, Field, validator
from typing import Optional, Union, Literal, Annotated, Dict, List
from datetime import datetime
import uuid

from shared.models import AuditType, AuditStatus
from app.schemas.onboarding import SupplierResponse
from app.utils.helpers import blank_to_none


# Commands accepted by the admin audit endpoint, tagged by "action"
class ListPendingCommand(BaseModel):
    action: Literal["list_pending"]
    status: Literal["pending", "approved", "rejected", "suspended", "all"] = "pending"


class SupplierCommand(BaseModel):
    supplier_id: uuid.UUID = Field(..., alias="supplierId")

    class Config:
        populate_by_name = True


class GetSupplierDetailCommand(SupplierCommand):
    action: Literal["get_supplier_detail"]


class ApproveCommand(SupplierCommand):
    action: Literal["approve"]


class RejectCommand(SupplierCommand):
    action: Literal["reject"]
    reason: str

    @validator("reason", pre=True)
    def reason_required(cls, v):
        v = blank_to_none(v)
        if v is None:
            raise ValueError("Rejection reason is required")
        return v


class SuspendCommand(SupplierCommand):
    action: Literal["suspend"]
    reason: Optional[str] = None

    @validator("reason", pre=True)
    def empty_reason_to_none(cls, v):
        return blank_to_none(v)


class RestoreCommand(SupplierCommand):
    action: Literal["restore"]


class GetStatisticsCommand(BaseModel):
    action: Literal["get_statistics"]


class GetRecentAuditsCommand(BaseModel):
    action: Literal["get_recent_audits"]
    limit: Optional[int] = Field(None, ge=1, le=100)


AUDIT_COMMANDS = (
    ListPendingCommand,
    GetSupplierDetailCommand,
    ApproveCommand,
    RejectCommand,
    SuspendCommand,
    RestoreCommand,
    GetStatisticsCommand,
    GetRecentAuditsCommand,
)

AuditCommand = Annotated[Union[AUDIT_COMMANDS], Field(discriminator="action")]


# Response schemas
class ActionResult(BaseModel):
    success: bool = True


class SupplierListResponse(BaseModel):
    suppliers: List[SupplierResponse]


class SupplierDetailResponse(BaseModel):
    supplier: SupplierResponse


class SupplierStatistics(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    suspended: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict, alias="byType")

    class Config:
        populate_by_name = True


class AuditRecordResponse(BaseModel):
    id: str
    audit_type: AuditType
    target_id: str
    target_table: str
    status: AuditStatus
    submitted_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    review_comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @validator("id", "target_id", "submitted_by", "reviewed_by", pre=True)
    def convert_uuid_to_str(cls, v):
        if isinstance(v, uuid.UUID):
            return str(v)
        return v

    class Config:
        from_attributes = True


class RecentAuditsResponse(BaseModel):
    audits: List[AuditRecordResponse]
