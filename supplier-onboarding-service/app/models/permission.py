from sqlalchemy import Column, String, Boolean, DateTime, Enum, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid
from app.core.database import Base
from app.utils.helpers import utcnow
from shared.models import AppRole, Terminal


class UserRole(Base):
    """Application role grant (supplier / department / admin) for an account."""
    __tablename__ = "user_roles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    role = Column(Enum(AppRole), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )


class MenuPermission(Base):
    """A navigable menu entry of one terminal."""
    __tablename__ = "menu_permissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    terminal = Column(Enum(Terminal), nullable=False, index=True)
    menu_key = Column(String, nullable=False)
    menu_name = Column(String, nullable=False)
    menu_path = Column(String, nullable=False)
    parent_key = Column(String, nullable=True)
    sort_order = Column(Integer, default=0)
    icon = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("terminal", "menu_key", name="uq_menu_permissions_terminal_key"),
    )


class BackendRole(Base):
    """Permission grouping; the per-terminal default roles are created lazily on first approval."""
    __tablename__ = "backend_roles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    code = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)


class RoleMenuPermission(Base):
    __tablename__ = "role_menu_permissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    role_id = Column(UUID(as_uuid=True), ForeignKey("backend_roles.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_id = Column(UUID(as_uuid=True), ForeignKey("menu_permissions.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("role_id", "menu_id", name="uq_role_menu_permissions_role_menu"),
    )


class UserBackendRole(Base):
    __tablename__ = "user_backend_roles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    role_id = Column(UUID(as_uuid=True), ForeignKey("backend_roles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_backend_roles_user_role"),
    )
