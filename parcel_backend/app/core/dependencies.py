"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with ID tokens.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from parcel_backend.app.core.config import settings
from parcel_backend.app.core.exceptions import AuthenticationError, InsufficientPermissionsError
from parcel_backend.app.core.identity import Identity, CurrentUser, verify_identity_token
from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User
from parcel_backend.app.services.role_cache import get_cached_role, cache_role

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Identity:
    """
    FastAPI dependency verifying the bearer ID token.

    Raises:
        AuthenticationError: 401 if the token is invalid
        InsufficientPermissionsError: 403 if the email must be verified and is not
    """
    identity = verify_identity_token(credentials.credentials)
    if identity is None:
        raise AuthenticationError("Could not validate credentials")

    if settings.require_verified_email and not identity.verified:
        raise InsufficientPermissionsError("Email address is not verified")

    return identity


async def resolve_role(db: AsyncSession, email: str) -> Optional[UserRole]:
    """
    Resolve the role for `email`, consulting the Redis cache first.

    Returns None when no user is registered with that email.
    """
    cached = await get_cached_role(email)
    if cached in {role.value for role in UserRole}:
        return UserRole(cached)

    result = await db.execute(select(User.role).where(User.email == email))
    role = result.scalar_one_or_none()
    if role is not None:
        await cache_role(email, role.value)
    return role


async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
) -> CurrentUser:
    """
    FastAPI dependency returning the caller and their role.

    Unregistered callers get the least privileged role.
    """
    role = await resolve_role(db, identity.email)
    return CurrentUser(email=identity.email, role=role or UserRole.USER)
