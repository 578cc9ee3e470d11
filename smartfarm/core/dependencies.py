from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
from smartfarm.core.database import get_db
from smartfarm.core.exceptions import AuthenticationError, AuthorizationError
from smartfarm.core.persistence import Persistence
from smartfarm.core.security import decode_token
from smartfarm.modules.users.models import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user from JWT token"""
    if credentials is None:
        raise AuthenticationError("Access token required")

    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    token_type = payload.get("type")

    if user_id is None or token_type != "access":
        raise AuthenticationError("Could not validate credentials")

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise AuthenticationError("Could not validate credentials")

    # Get user from database
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationError("Could not validate credentials")

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """Ensure user account is active"""
    if not current_user.is_active:
        raise AuthorizationError("Account is disabled. Please contact support.")
    return current_user


async def require_admin(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """Ensure the caller holds the administrator role"""
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user


async def get_persistence(db: AsyncSession = Depends(get_db)) -> Persistence:
    """Per-request persistence collaborator bound to the request session"""
    return Persistence(db)
