"""
Parcel lifecycle API endpoints.

Rider assignment, delivery status toggling and per-parcel cashout. All
state changes go through ParcelLifecycleService.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Body
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.db.session import get_db
from parcel_backend.app.core.guards import require_admin, require_rider_or_admin
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.domain.lifecycle.service import ParcelLifecycleService
from parcel_backend.app.domain.lifecycle.snapshot import RiderRef
from parcel_backend.app.schemas.parcel import ParcelResponse
from parcel_backend.app.schemas.lifecycle import (
    RiderAssignment, RiderAssignmentResponse,
    DeliveryToggle, DeliveryToggleResponse,
    CashoutResponse
)

router = APIRouter(prefix="/parcels", tags=["Parcel Lifecycle"])


@router.patch("/{parcel_id}/assign-rider", response_model=RiderAssignmentResponse)
async def assign_rider(
    parcel_id: int = Path(..., description="Parcel ID"),
    assignment: RiderAssignment = ...,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Assign (or reassign) a rider to a parcel (Admin only).

    The parcel is updated first; the rider's work status follows on a best
    effort basis and `rider_synced` reports whether it landed.
    """
    result = await ParcelLifecycleService.assign_rider(
        db=db,
        parcel_id=parcel_id,
        rider_ref=RiderRef(
            rider_id=assignment.rider_id,
            rider_name=assignment.rider_name,
            rider_email=assignment.rider_email
        ),
        actor=current_user
    )

    return RiderAssignmentResponse(
        message="Rider assigned successfully",
        parcel=ParcelResponse.model_validate(result.parcel),
        rider_synced=result.rider_synced,
        previous_rider_id=result.previous_rider_id
    )


@router.patch("/{parcel_id}/toggle-delivery", response_model=DeliveryToggleResponse)
async def toggle_delivery(
    parcel_id: int = Path(..., description="Parcel ID"),
    toggle: Optional[DeliveryToggle] = Body(None),
    current_user: CurrentUser = Depends(require_rider_or_admin),
    db: AsyncSession = Depends(get_db)
):
    """Move the parcel to its next delivery status, or to an explicit target."""
    result = await ParcelLifecycleService.toggle_delivery(
        db=db,
        parcel_id=parcel_id,
        actor=current_user,
        target=toggle.target if toggle else None
    )

    parcel = result.parcel
    if result.changed:
        message = f"Delivery status updated to {parcel.delivery_status.value}"
    else:
        message = f"Parcel is already {parcel.delivery_status.value}"

    return DeliveryToggleResponse(
        message=message,
        previous_status=result.previous_status,
        new_status=parcel.delivery_status,
        changed=result.changed,
        parcel=ParcelResponse.model_validate(parcel)
    )


@router.patch("/{parcel_id}/cashout", response_model=CashoutResponse)
async def cashout_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: CurrentUser = Depends(require_rider_or_admin),
    db: AsyncSession = Depends(get_db)
):
    parcel = await ParcelLifecycleService.cashout(
        db=db,
        parcel_id=parcel_id,
        actor=current_user
    )

    return CashoutResponse(
        message="Parcel cashed out",
        parcel=ParcelResponse.model_validate(parcel)
    )
