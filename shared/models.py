from enum import Enum
from pydantic import BaseModel


class AppRole(str, Enum):
    SUPPLIER = "supplier"
    DEPARTMENT = "department"
    ADMIN = "admin"


class Terminal(str, Enum):
    ADMIN = "admin"
    DEPARTMENT = "department"
    SUPPLIER = "supplier"


class SupplierType(str, Enum):
    ENTERPRISE = "enterprise"
    OVERSEAS = "overseas"
    INDIVIDUAL = "individual"


class SupplierStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class AuditType(str, Enum):
    REGISTRATION = "registration"
    QUALIFICATION = "qualification"
    PRODUCT = "product"
    INFO_CHANGE = "info_change"


class AuditStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Response Models
class ErrorResponse(BaseModel):
    error: str
