"""
Tracking event service.

Appends tracking events and keeps the parcel's latest tracking status
denormalized on the parcel row.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.exceptions import NotFoundError
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.tracking_event import TrackingEvent


async def record_tracking_event(
    db: AsyncSession,
    tracking_id: str,
    status: str,
    location: Optional[str] = None,
    updated_by: Optional[str] = None
) -> TrackingEvent:
    """
    Append a tracking event for the parcel with `tracking_id`.

    The event never changes delivery_status; lifecycle status only moves
    through the lifecycle service.

    Raises:
        NotFoundError: No parcel has this tracking id
    """
    parcel_id = await db.scalar(select(Parcel.id).where(Parcel.tracking_id == tracking_id))
    if parcel_id is None:
        raise NotFoundError("Parcel", tracking_id)

    event = TrackingEvent(
        tracking_id=tracking_id,
        status=status,
        location=location or "Unknown",
        updated_by=updated_by or "System",
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    await db.execute(
        update(Parcel)
        .where(Parcel.id == parcel_id)
        .values(last_tracking_status=status, last_tracking_at=event.timestamp)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return event


async def list_tracking_events(db: AsyncSession, tracking_id: str) -> list[TrackingEvent]:
    """Events for one parcel, oldest first."""
    result = await db.execute(
        select(TrackingEvent)
        .where(TrackingEvent.tracking_id == tracking_id)
        .order_by(TrackingEvent.timestamp, TrackingEvent.id)
    )
    return list(result.scalars().all())
