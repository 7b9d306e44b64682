from sqlalchemy import Column, String, DateTime, Enum, Text, Float, Integer
from sqlalchemy.dialects.postgresql import UUID
import uuid
from app.core.database import Base
from app.utils.helpers import utcnow
from shared.models import SupplierStatus, SupplierType


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    # One record per account; enforced here rather than by the registration form
    user_id = Column(UUID(as_uuid=True), nullable=False, unique=True, index=True)
    supplier_type = Column(Enum(SupplierType), nullable=False)
    status = Column(Enum(SupplierStatus), nullable=False, default=SupplierStatus.PENDING, index=True)

    # Enterprise / overseas
    company_name = Column(String, nullable=True)
    unified_social_credit_code = Column(String, nullable=True)
    legal_representative = Column(String, nullable=True)
    registered_capital = Column(Float, nullable=True)
    establishment_date = Column(String, nullable=True)
    employee_count = Column(Integer, nullable=True)
    annual_revenue = Column(Float, nullable=True)
    business_scope = Column(Text, nullable=True)
    country = Column(String, nullable=True)
    registration_number = Column(String, nullable=True)

    # Individual
    id_card_number = Column(String, nullable=True)

    # Contact
    contact_name = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    province = Column(String, nullable=True)
    city = Column(String, nullable=True)
    main_products = Column(Text, nullable=True)
    production_capacity = Column(String, nullable=True)

    # Banking
    bank_name = Column(String, nullable=True)
    bank_account = Column(String, nullable=True)
    bank_account_name = Column(String, nullable=True)

    # Audit metadata
    rejection_reason = Column(Text, nullable=True)
    suspension_note = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(UUID(as_uuid=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    @property
    def standing(self) -> dict:
        """Tagged view of the status together with the note that belongs to it."""
        if self.status == SupplierStatus.REJECTED:
            return {"kind": "rejected", "reason": self.rejection_reason or ""}
        if self.status == SupplierStatus.SUSPENDED:
            return {"kind": "suspended", "note": self.suspension_note or ""}
        if self.status == SupplierStatus.APPROVED:
            return {"kind": "active"}
        return {"kind": "pending"}


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
