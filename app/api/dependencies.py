from typing import List, Optional
from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import decode_token
from app.core.exceptions import (
    InvalidTokenException,
    InactiveUserException,
    InsufficientPermissionsException,
)
from app.models.user import User, UserRole
from app.services.user_service import user_service

# HTTP Bearer token scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, db: AsyncSession) -> User:
    payload = decode_token(token)
    if not payload:
        raise InvalidTokenException()

    if payload.get("type") != "access":
        raise InvalidTokenException("Invalid token type")

    user_id_str: Optional[str] = payload.get("sub")
    if not user_id_str:
        raise InvalidTokenException()

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise InvalidTokenException("Invalid user ID in token")

    user = await user_service.get_by_id(db, user_id)
    if not user:
        raise InvalidTokenException("User no longer exists")

    if not user.is_active:
        raise InactiveUserException()

    return user


async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token

    Args:
        credentials: HTTP Bearer credentials
        db: Database session

    Returns:
        Current user object

    Raises:
        InvalidTokenException: If the token is missing, invalid or its user is gone
        InactiveUserException: If the user is deactivated
    """
    if credentials is None:
        raise InvalidTokenException("Not authenticated")
    return await _user_from_token(credentials.credentials, db)


async def get_current_user_optional(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Current user when a bearer token is sent, None for anonymous callers"""
    if credentials is None:
        return None
    return await _user_from_token(credentials.credentials, db)


class RoleChecker:
    """Dependency class to check user roles"""

    def __init__(self, allowed_roles: List[UserRole]):
        self.allowed_roles = allowed_roles

    async def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in self.allowed_roles:
            raise InsufficientPermissionsException(
                " or ".join(role.value for role in self.allowed_roles)
            )
        return current_user


# Pre-configured role checkers
require_admin = RoleChecker([UserRole.ADMIN])
require_agent = RoleChecker([UserRole.AGENT, UserRole.ADMIN])
