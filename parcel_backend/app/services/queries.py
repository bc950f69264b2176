"""
Per-request query objects.

Each listing endpoint builds one of these from validated query parameters.
They are frozen and carry no state between requests.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, or_, desc, func, Select

from parcel_backend.app.models.enums import RiderApprovalStatus, RiderWorkStatus
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus
from parcel_backend.app.models.payment import Payment
from parcel_backend.app.models.rider import Rider


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class ParcelQuery:
    """Parcel listing filters; search matches title, names and tracking id."""
    created_by: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    delivery_status: Optional[DeliveryStatus] = None
    search: Optional[str] = None

    def to_statement(self) -> Select:
        query = select(Parcel)

        if self.created_by:
            query = query.where(Parcel.created_by == self.created_by.lower())

        if self.payment_status:
            query = query.where(Parcel.payment_status == self.payment_status)

        if self.delivery_status:
            query = query.where(Parcel.delivery_status == self.delivery_status)

        if self.search and self.search.strip():
            pattern = _like(self.search.strip())
            query = query.where(or_(
                Parcel.title.ilike(pattern, escape="\\"),
                Parcel.sender_name.ilike(pattern, escape="\\"),
                Parcel.receiver_name.ilike(pattern, escape="\\"),
                Parcel.tracking_id.ilike(pattern, escape="\\"),
            ))

        # Latest first
        return query.order_by(desc(Parcel.created_at), desc(Parcel.id))


@dataclass(frozen=True)
class RiderParcelQuery:
    """Parcels currently or previously assigned to one rider."""
    rider_email: str
    delivered_only: bool = False

    def to_statement(self) -> Select:
        statuses = [DeliveryStatus.DELIVERED]
        if not self.delivered_only:
            statuses.append(DeliveryStatus.IN_TRANSIT)
        return (
            select(Parcel)
            .where(
                Parcel.rider_email == self.rider_email.strip().lower(),
                Parcel.assigned_rider.is_(True),
                Parcel.delivery_status.in_(statuses),
            )
            .order_by(desc(Parcel.created_at), desc(Parcel.id))
        )


@dataclass(frozen=True)
class RiderQuery:
    status: Optional[RiderApprovalStatus] = None
    rider_status: Optional[RiderWorkStatus] = None
    district: Optional[str] = None

    def to_statement(self) -> Select:
        query = select(Rider)
        if self.status:
            query = query.where(Rider.status == self.status)
        if self.rider_status:
            query = query.where(Rider.rider_status == self.rider_status)
        if self.district:
            # Case-insensitive exact match
            query = query.where(func.lower(Rider.district) == self.district.strip().lower())
        return query.order_by(Rider.id)


@dataclass(frozen=True)
class PaymentQuery:
    """Payment history, optionally for one payer, newest first."""
    user_email: Optional[str] = None

    def to_statement(self) -> Select:
        query = select(Payment)
        if self.user_email:
            query = query.where(Payment.user_email == self.user_email.lower())
        return query.order_by(desc(Payment.created_at), desc(Payment.id))
