"""
Tracking API endpoints.
"""

from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.db.session import get_db
from parcel_backend.app.schemas.tracking import (
    TrackingEventCreate, TrackingEventResponse, TrackingHistoryResponse
)
from parcel_backend.app.services.tracking import record_tracking_event, list_tracking_events

router = APIRouter(prefix="/tracking", tags=["Tracking"])


@router.post("", response_model=TrackingEventResponse, status_code=status.HTTP_201_CREATED)
async def add_tracking_event(
    event_data: TrackingEventCreate,
    db: AsyncSession = Depends(get_db)
):
    """Append a tracking event; the parcel's delivery status is not touched."""
    event = await record_tracking_event(
        db=db,
        tracking_id=event_data.tracking_id,
        status=event_data.status,
        location=event_data.location,
        updated_by=event_data.updated_by
    )
    return TrackingEventResponse.model_validate(event)


@router.get("/{tracking_id}", response_model=TrackingHistoryResponse)
async def get_tracking_history(
    tracking_id: str = Path(..., description="Parcel tracking id"),
    db: AsyncSession = Depends(get_db)
):
    events = await list_tracking_events(db, tracking_id)
    return TrackingHistoryResponse(
        tracking_id=tracking_id,
        events=[TrackingEventResponse.model_validate(e) for e in events]
    )
