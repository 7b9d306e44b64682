from sqlalchemy import Column, String, DateTime, Enum, Text
from sqlalchemy.dialects.postgresql import UUID
import uuid
from app.core.database import Base
from app.utils.helpers import utcnow
from shared.models import AuditType, AuditStatus


class AuditRecord(Base):
    """Append-only log of review decisions. Rows are never updated or deleted."""
    __tablename__ = "audit_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    audit_type = Column(Enum(AuditType), nullable=False, index=True)
    target_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    target_table = Column(String, nullable=False)
    status = Column(Enum(AuditStatus), nullable=False, default=AuditStatus.PENDING)
    submitted_by = Column(UUID(as_uuid=True), nullable=True)
    reviewed_by = Column(UUID(as_uuid=True), nullable=True)
    review_comment = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
