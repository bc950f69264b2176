"""
User API endpoints.

Registration on first login, search, and role lookups/changes.
"""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.user import User
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.schemas.user import (
    UserCreate, UserResponse, UserCreateResponse, UserSearchResult,
    RoleResponse, RoleChange, RoleChangeResponse
)
from parcel_backend.app.core.dependencies import resolve_role
from parcel_backend.app.core.guards import require_admin
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.domain.lifecycle.service import ParcelLifecycleService
from parcel_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserCreateResponse)
async def create_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a user on first login.

    Idempotent: an already registered email returns inserted=False and
    leaves the record untouched.
    """
    email = user_data.email.lower()

    result = await db.execute(select(User).where(User.email == email))
    existing_user = result.scalar_one_or_none()
    if existing_user:
        return UserCreateResponse(
            inserted=False,
            message="User already exists",
            user=UserResponse.model_validate(existing_user)
        )

    new_user = User(
        email=email,
        display_name=user_data.display_name,
        photo_url=user_data.photo_url,
        role=UserRole.USER,
        last_login_at=datetime.now(timezone.utc)
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        # Concurrent registration of the same email
        await db.rollback()
        result = await db.execute(select(User).where(User.email == email))
        return UserCreateResponse(
            inserted=False,
            message="User already exists",
            user=UserResponse.model_validate(result.scalar_one())
        )
    await db.refresh(new_user)

    await log_event(
        db=db,
        action=AuditAction.USER_CREATED,
        actor_email=new_user.email,
        target=f"user:{new_user.id}"
    )

    return UserCreateResponse(
        inserted=True,
        message="User created",
        user=UserResponse.model_validate(new_user)
    )


@router.get("/search", response_model=list[UserSearchResult])
async def search_users(
    email: str = Query(..., min_length=1, description="Partial, case-insensitive email"),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    """Search users by partial email."""
    pattern = "%" + email.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
    result = await db.execute(
        select(User)
        .where(User.email.ilike(pattern, escape="\\"))
        .order_by(User.email)
        .limit(limit)
    )
    users = result.scalars().all()

    if not users:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No users found"
        )

    return [UserSearchResult.model_validate(u) for u in users]


@router.get("/{email}/role", response_model=RoleResponse)
async def get_user_role(
    email: str = Path(..., description="User email"),
    db: AsyncSession = Depends(get_db)
):
    """Look up a user's role by email."""
    email = email.strip().lower()
    role = await resolve_role(db, email)

    if role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return RoleResponse(email=email, role=role)


@router.patch("/{user_id}/role", response_model=RoleChangeResponse)
async def change_user_role(
    user_id: int = Path(..., description="User ID"),
    change: RoleChange = ...,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Change a user's role (Admin only)."""
    user, previous_role = await ParcelLifecycleService.change_role(
        db=db,
        user_id=user_id,
        role=change.role,
        actor=current_user
    )

    return RoleChangeResponse(
        user_id=user.id,
        previous_role=previous_role,
        role=user.role,
        message=f"User role updated from {previous_role.value} to {user.role.value}"
    )
