"""
Rider account endpoints: completed work, earnings and bulk cashout.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.db.session import get_db
from parcel_backend.app.core.guards import require_rider_or_admin, ensure_rider_access
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.domain.lifecycle.earning import compute_rider_earning, summarize_earnings
from parcel_backend.app.domain.lifecycle.service import ParcelLifecycleService
from parcel_backend.app.schemas.parcel import ParcelResponse, RiderParcelResponse, EarningsSummary
from parcel_backend.app.schemas.lifecycle import CashoutAllResponse
from parcel_backend.app.services.queries import RiderParcelQuery

router = APIRouter(prefix="/rider", tags=["Rider Account"])


def to_rider_parcel(parcel) -> RiderParcelResponse:
    """Parcel view with the rider's earning derived from cost and regions."""
    data = ParcelResponse.model_validate(parcel).model_dump()
    return RiderParcelResponse(
        **data,
        rider_earning=compute_rider_earning(parcel.cost, parcel.sender_region, parcel.receiver_region)
    )


@router.patch("/{email}/cashout-all", response_model=CashoutAllResponse)
async def cashout_all(
    email: str = Path(..., description="Rider email"),
    current_user: CurrentUser = Depends(require_rider_or_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Cash out every delivered parcel of the rider not yet cashed out.

    Safe to repeat; a second call reports modified_count=0.
    """
    modified = await ParcelLifecycleService.cashout_all(
        db=db,
        rider_email=email,
        actor=current_user
    )

    return CashoutAllResponse(
        message=f"{modified} parcel(s) cashed out",
        rider_email=email.strip().lower(),
        modified_count=modified
    )


@router.get("/completed-parcels", response_model=list[RiderParcelResponse])
async def completed_parcels(
    email: str = Query(..., description="Rider email"),
    delivered_only: bool = Query(False),
    current_user: CurrentUser = Depends(require_rider_or_admin),
    db: AsyncSession = Depends(get_db)
):
    """In-transit and delivered parcels of a rider, each with its earning."""
    ensure_rider_access(current_user, email, resource_name="rider's parcels")

    result = await db.execute(
        RiderParcelQuery(rider_email=email, delivered_only=delivered_only).to_statement()
    )
    return [to_rider_parcel(p) for p in result.scalars().all()]


@router.get("/earnings", response_model=EarningsSummary)
async def rider_earnings(
    email: str = Query(..., description="Rider email"),
    current_user: CurrentUser = Depends(require_rider_or_admin),
    db: AsyncSession = Depends(get_db)
):
    """Total, cashed out and pending earnings over delivered parcels."""
    ensure_rider_access(current_user, email, resource_name="rider's earnings")

    result = await db.execute(
        RiderParcelQuery(rider_email=email, delivered_only=True).to_statement()
    )
    summary = summarize_earnings(result.scalars().all())

    return EarningsSummary(rider_email=email.strip().lower(), **summary)
