from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.services.provisioning_service import ProvisioningService
from app.utils.helpers import parse_uuid
from shared.exceptions import AuthException, AuthorizationException, TokenException, ValidationException
from shared.models import AppRole
from shared.security.auth import jwt_manager

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Resolve the bearer token to the caller's id and the app roles granted to it."""
    if credentials is None or not credentials.credentials:
        raise AuthException("Missing authorization")

    payload = jwt_manager.verify_token(credentials.credentials)
    try:
        user_id = parse_uuid(payload["sub"], "user id")
    except ValidationException:
        raise TokenException("Token subject is not a user id")

    roles = await ProvisioningService().get_app_roles(db, user_id)
    return {"user_id": user_id, "roles": roles}


async def get_current_admin(current_user: dict = Depends(get_current_user)) -> dict:
    if AppRole.ADMIN not in current_user["roles"]:
        raise AuthorizationException("Admin role required")
    return current_user


async def get_current_staff(current_user: dict = Depends(get_current_user)) -> dict:
    """Admins and department users may read role data."""
    if not current_user["roles"] & {AppRole.ADMIN, AppRole.DEPARTMENT}:
        raise AuthorizationException("Admin or department role required")
    return current_user
