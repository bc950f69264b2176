"""
Parcel API endpoints.

Booking, listing/search, lookup and deletion. Status changes live in
parcel_lifecycle.py.
"""

import uuid
from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from sqlalchemy.exc import IntegrityError
from typing import Optional

from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import (
    DeliveryStatus, PaymentStatus, CashoutStatus, ParcelRiderStatus
)
from parcel_backend.app.schemas.parcel import ParcelCreate, ParcelResponse, ParcelListResponse
from parcel_backend.app.core.dependencies import get_current_user
from parcel_backend.app.core.guards import require_rider_or_admin, ensure_rider_access
from parcel_backend.app.core.exceptions import InsufficientPermissionsError
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.domain.lifecycle.assignment_resolver import RiderAssignmentResolver
from parcel_backend.app.services.audit import log_event, AuditAction
from parcel_backend.app.services.queries import ParcelQuery

router = APIRouter(prefix="/parcels", tags=["Parcels"])


def generate_tracking_id() -> str:
    return f"TRK-{uuid.uuid4().hex[:12].upper()}"


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Book a parcel.

    New parcels start created, unpaid, unassigned and not cashed out.
    """
    parcel = Parcel(
        tracking_id=parcel_data.tracking_id or generate_tracking_id(),
        title=parcel_data.title,
        parcel_type=parcel_data.parcel_type,
        weight_kg=parcel_data.weight_kg,
        created_by=parcel_data.created_by.lower(),
        sender_name=parcel_data.sender_name,
        sender_region=parcel_data.sender_region.strip(),
        sender_district=parcel_data.sender_district,
        receiver_name=parcel_data.receiver_name,
        receiver_region=parcel_data.receiver_region.strip(),
        receiver_district=parcel_data.receiver_district,
        cost=parcel_data.cost,
        delivery_status=DeliveryStatus.CREATED,
        payment_status=PaymentStatus.UNPAID,
        cashout_status=CashoutStatus.NOT_CASHED,
        assigned_rider=False,
        rider_status=ParcelRiderStatus.UNASSIGNED
    )
    db.add(parcel)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Tracking ID already exists"
        )
    await db.refresh(parcel)

    await log_event(
        db=db,
        action=AuditAction.PARCEL_CREATED,
        actor_email=parcel.created_by,
        target=f"parcel:{parcel.id}",
        metadata={"tracking_id": parcel.tracking_id}
    )

    return ParcelResponse.model_validate(parcel)


@router.get("", response_model=ParcelListResponse)
async def list_parcels(
    email: Optional[str] = Query(None, description="Filter by booking user email"),
    payment_status: Optional[PaymentStatus] = Query(None),
    delivery_status: Optional[DeliveryStatus] = Query(None),
    search: Optional[str] = Query(None, description="Matches title, sender/receiver name, tracking id"),
    db: AsyncSession = Depends(get_db)
):
    """List parcels, latest first."""
    query = ParcelQuery(
        created_by=email,
        payment_status=payment_status,
        delivery_status=delivery_status,
        search=search
    )
    result = await db.execute(query.to_statement())
    parcels = result.scalars().all()

    return ParcelListResponse(
        parcels=[ParcelResponse.model_validate(p) for p in parcels],
        total=len(parcels)
    )


@router.get("/rider", response_model=ParcelListResponse)
async def list_rider_parcels(
    rider_email: str = Query(...),
    current_user: CurrentUser = Depends(require_rider_or_admin),
    db: AsyncSession = Depends(get_db)
):
    """All parcels assigned to a rider, whatever their status."""
    ensure_rider_access(current_user, rider_email, resource_name="rider's parcels")

    result = await db.execute(
        select(Parcel)
        .where(Parcel.assigned_rider.is_(True), Parcel.rider_email == rider_email.strip().lower())
        .order_by(desc(Parcel.assigned_at), desc(Parcel.id))
    )
    parcels = result.scalars().all()

    return ParcelListResponse(
        parcels=[ParcelResponse.model_validate(p) for p in parcels],
        total=len(parcels)
    )


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    db: AsyncSession = Depends(get_db)
):
    parcel = await db.get(Parcel, parcel_id)
    if not parcel:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Parcel not found"
        )
    return ParcelResponse.model_validate(parcel)


@router.delete("/{parcel_id}")
async def delete_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a parcel (booking user or Admin).

    If a rider was assigned, their cached work status is reconciled.
    """
    parcel = await db.get(Parcel, parcel_id)
    if not parcel:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Parcel not found"
        )

    if not current_user.is_admin and parcel.created_by != current_user.email:
        raise InsufficientPermissionsError(message="Only the booking user or an admin can delete this parcel")

    rider_id = parcel.rider_id
    tracking_id = parcel.tracking_id
    await db.delete(parcel)
    await db.commit()

    await RiderAssignmentResolver.reconcile_quietly(db, rider_id)

    await log_event(
        db=db,
        action=AuditAction.PARCEL_DELETED,
        actor_email=current_user.email,
        target=f"parcel:{parcel_id}",
        metadata={"tracking_id": tracking_id}
    )

    return {"deleted": True, "parcel_id": parcel_id}
