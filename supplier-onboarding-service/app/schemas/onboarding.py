from pydantic import BaseModel, Field, validator
from typing import Optional, Union, Literal, Annotated
from datetime import datetime
import uuid

from shared.models import SupplierStatus, SupplierType
from app.utils.helpers import blank_to_none, lenient_float, lenient_int

OPTIONAL_TEXT_FIELDS = (
    "company_name", "unified_social_credit_code", "legal_representative",
    "establishment_date", "business_scope", "country", "registration_number",
    "id_card_number", "contact_name", "contact_phone", "contact_email",
    "address", "province", "city", "main_products", "production_capacity",
    "bank_name", "bank_account", "bank_account_name",
)


def _required(value):
    value = blank_to_none(value)
    if value is None:
        raise ValueError("is required")
    return value


# Request schemas
class RegistrationBase(BaseModel):
    """Fields every registration variant may carry. All of them are optional free text."""

    company_name: Optional[str] = None
    unified_social_credit_code: Optional[str] = None
    legal_representative: Optional[str] = None
    registered_capital: Optional[float] = None
    establishment_date: Optional[str] = None
    employee_count: Optional[int] = None
    annual_revenue: Optional[float] = None
    business_scope: Optional[str] = None
    country: Optional[str] = None
    registration_number: Optional[str] = None
    id_card_number: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    address: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    main_products: Optional[str] = None
    production_capacity: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    bank_account_name: Optional[str] = None

    @validator(*OPTIONAL_TEXT_FIELDS, pre=True)
    def empty_text_to_none(cls, v):
        return blank_to_none(v)

    @validator("registered_capital", "annual_revenue", pre=True)
    def parse_amount(cls, v):
        return lenient_float(v)

    @validator("employee_count", pre=True)
    def parse_count(cls, v):
        return lenient_int(v)


class EnterpriseRegistration(RegistrationBase):
    supplier_type: Literal["enterprise"]
    company_name: str
    unified_social_credit_code: str
    legal_representative: str

    @validator("company_name", "unified_social_credit_code", "legal_representative", pre=True)
    def require_text(cls, v):
        return _required(v)


class OverseasRegistration(RegistrationBase):
    supplier_type: Literal["overseas"]
    company_name: str
    registration_number: str
    country: str

    @validator("company_name", "registration_number", "country", pre=True)
    def require_text(cls, v):
        return _required(v)


class IndividualRegistration(RegistrationBase):
    supplier_type: Literal["individual"]
    contact_name: str
    id_card_number: str

    @validator("contact_name", "id_card_number", pre=True)
    def require_text(cls, v):
        return _required(v)


REGISTRATION_VARIANTS = (EnterpriseRegistration, OverseasRegistration, IndividualRegistration)

SupplierRegistration = Annotated[Union[REGISTRATION_VARIANTS], Field(discriminator="supplier_type")]


# Response schemas
class ActiveStanding(BaseModel):
    kind: Literal["active"] = "active"


class PendingStanding(BaseModel):
    kind: Literal["pending"] = "pending"


class RejectedStanding(BaseModel):
    kind: Literal["rejected"] = "rejected"
    reason: str


class SuspendedStanding(BaseModel):
    kind: Literal["suspended"] = "suspended"
    note: str


SupplierStanding = Annotated[
    Union[PendingStanding, ActiveStanding, RejectedStanding, SuspendedStanding],
    Field(discriminator="kind"),
]


class ProfileResponse(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class SupplierResponse(RegistrationBase):
    id: str
    user_id: str
    supplier_type: SupplierType
    status: SupplierStatus
    standing: SupplierStanding
    rejection_reason: Optional[str] = None
    suspension_note: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    profile: Optional[ProfileResponse] = None

    @validator("id", "user_id", "approved_by", pre=True)
    def convert_uuid_to_str(cls, v):
        if isinstance(v, uuid.UUID):
            return str(v)
        return v

    class Config:
        from_attributes = True


class RegistrationResponse(BaseModel):
    success: bool = True
    supplier_id: str
    status: SupplierStatus
    redirect: str = "/dashboard"
