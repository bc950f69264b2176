"""
Immutable views of persisted records consumed by the lifecycle engine.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from parcel_backend.app.models.parcel_enums import DeliveryStatus, CashoutStatus


@dataclass(frozen=True)
class ParcelSnapshot:
    id: int
    delivery_status: DeliveryStatus
    cashout_status: Optional[CashoutStatus] = CashoutStatus.NOT_CASHED
    assigned_rider: bool = False
    rider_id: Optional[int] = None
    rider_name: Optional[str] = None
    rider_email: Optional[str] = None
    cost: Optional[Decimal] = None
    sender_region: Optional[str] = None
    receiver_region: Optional[str] = None
    delivered_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, parcel) -> "ParcelSnapshot":
        return cls(
            id=parcel.id,
            delivery_status=parcel.delivery_status,
            cashout_status=parcel.cashout_status,
            assigned_rider=bool(parcel.assigned_rider),
            rider_id=parcel.rider_id,
            rider_name=parcel.rider_name,
            rider_email=parcel.rider_email,
            cost=parcel.cost,
            sender_region=parcel.sender_region,
            receiver_region=parcel.receiver_region,
            delivered_at=parcel.delivered_at,
        )

    @property
    def has_rider(self) -> bool:
        return self.assigned_rider and bool(self.rider_id and self.rider_name and self.rider_email)

    @property
    def is_cashed_out(self) -> bool:
        return self.cashout_status == CashoutStatus.CASHED_OUT


@dataclass(frozen=True)
class RiderRef:
    """Rider reference fields as supplied by an assignment request."""
    rider_id: Optional[int]
    rider_name: Optional[str]
    rider_email: Optional[str]

    @property
    def is_complete(self) -> bool:
        return bool(self.rider_id) and bool((self.rider_name or "").strip()) and bool((self.rider_email or "").strip())
