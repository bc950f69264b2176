"""
Rider API endpoints.

Self-registration, listings, and the admin approval workflow.
"""

from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.models.enums import RiderApprovalStatus, RiderWorkStatus
from parcel_backend.app.schemas.rider import (
    RiderApply, RiderResponse, RiderDecision, RiderDecisionResponse, RiderReconcileResponse
)
from parcel_backend.app.core.guards import require_admin
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.domain.lifecycle.assignment_resolver import RiderAssignmentResolver
from parcel_backend.app.domain.lifecycle.service import ParcelLifecycleService
from parcel_backend.app.services.audit import log_event, AuditAction
from parcel_backend.app.services.queries import RiderQuery

router = APIRouter(prefix="/riders", tags=["Riders"])


async def _list_riders(db: AsyncSession, query: RiderQuery) -> List[RiderResponse]:
    result = await db.execute(query.to_statement())
    return [RiderResponse.model_validate(r) for r in result.scalars().all()]


@router.post("", response_model=RiderResponse, status_code=status.HTTP_201_CREATED)
async def apply_as_rider(
    application: RiderApply,
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a rider application.

    New riders start PENDING and AVAILABLE. An email with a pending or
    accepted application cannot apply again.
    """
    email = application.email.lower()

    result = await db.execute(
        select(Rider).where(
            Rider.email == email,
            Rider.status.in_([RiderApprovalStatus.PENDING, RiderApprovalStatus.ACCEPTED])
        )
    )
    if result.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A rider application for this email already exists"
        )

    rider = Rider(
        name=application.name.strip(),
        email=email,
        phone=application.phone,
        region=application.region,
        district=application.district.strip(),
        status=RiderApprovalStatus.PENDING,
        rider_status=RiderWorkStatus.AVAILABLE
    )
    db.add(rider)
    await db.commit()
    await db.refresh(rider)

    await log_event(
        db=db,
        action=AuditAction.RIDER_APPLIED,
        actor_email=email,
        target=f"rider:{rider.id}"
    )

    return RiderResponse.model_validate(rider)


@router.get("", response_model=List[RiderResponse])
async def list_riders_by_district(
    district: Optional[str] = Query(None, description="Case-insensitive district match"),
    db: AsyncSession = Depends(get_db)
):
    """List riders, optionally filtered by district."""
    return await _list_riders(db, RiderQuery(district=district))


@router.get("/query", response_model=List[RiderResponse])
async def query_riders(
    status_filter: Optional[RiderApprovalStatus] = Query(None, alias="status"),
    rider_status: Optional[RiderWorkStatus] = Query(None),
    district: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Filter riders by approval status and/or work status, e.g. accepted + available."""
    return await _list_riders(
        db, RiderQuery(status=status_filter, rider_status=rider_status, district=district)
    )


@router.get("/pending", response_model=List[RiderResponse])
async def list_pending_riders(
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Applications awaiting a decision (Admin only)."""
    return await _list_riders(db, RiderQuery(status=RiderApprovalStatus.PENDING))


@router.get("/approved", response_model=List[RiderResponse])
async def list_approved_riders(
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Accepted riders (Admin only)."""
    return await _list_riders(db, RiderQuery(status=RiderApprovalStatus.ACCEPTED))


@router.get("/rejected", response_model=List[RiderResponse])
async def list_rejected_riders(
    db: AsyncSession = Depends(get_db)
):
    """Rejected applications."""
    return await _list_riders(db, RiderQuery(status=RiderApprovalStatus.REJECTED))


@router.get("/{rider_id}", response_model=RiderResponse)
async def get_rider(
    rider_id: int = Path(..., description="Rider ID"),
    db: AsyncSession = Depends(get_db)
):
    rider = await db.get(Rider, rider_id)
    if not rider:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Rider not found"
        )
    return RiderResponse.model_validate(rider)


@router.patch("/{rider_id}", response_model=RiderDecisionResponse)
async def decide_rider(
    rider_id: int = Path(..., description="Rider ID"),
    decision: RiderDecision = ...,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Accept or reject a rider application (Admin only).

    Accepting promotes the matching user account to the rider role.
    """
    result = await ParcelLifecycleService.decide_rider_application(
        db=db,
        rider_id=rider_id,
        status=decision.status,
        actor=current_user
    )

    return RiderDecisionResponse(
        rider=RiderResponse.model_validate(result.rider),
        role_updated=result.role_updated,
        message=f"Rider {result.rider.status.value} successfully"
    )


@router.post("/{rider_id}/reconcile", response_model=RiderReconcileResponse)
async def reconcile_rider(
    rider_id: int = Path(..., description="Rider ID"),
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Recompute the rider's work status from their parcels (Admin only)."""
    rider_status = await RiderAssignmentResolver.reconcile_rider_status(db, rider_id)

    await log_event(
        db=db,
        action=AuditAction.RIDER_STATUS_RECONCILED,
        actor_email=current_user.email,
        target=f"rider:{rider_id}",
        metadata={"rider_status": rider_status.value}
    )

    return RiderReconcileResponse(rider_id=rider_id, rider_status=rider_status)
