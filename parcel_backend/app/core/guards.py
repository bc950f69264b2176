"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List, Optional
from fastapi import Depends, HTTPException, status
from parcel_backend.app.core.exceptions import InsufficientPermissionsError
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/riders/pending")
        async def pending(current_user: CurrentUser = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


require_admin = require_role([UserRole.ADMIN])

require_rider_or_admin = require_role([UserRole.RIDER, UserRole.ADMIN])


def ensure_rider_access(actor: Optional[CurrentUser], rider_email: Optional[str], resource_name: str = "parcel") -> None:
    """
    Riders may only act on their own parcels; admins may act on any.

    `actor=None` means a trusted internal caller and is always allowed.

    Raises:
        InsufficientPermissionsError if the actor is neither admin nor the rider
    """
    if actor is None or actor.is_admin:
        return
    if actor.role == UserRole.RIDER and rider_email and actor.email == rider_email.lower():
        return
    raise InsufficientPermissionsError(
        message=f"Access denied. You do not have permission to access this {resource_name}."
    )
