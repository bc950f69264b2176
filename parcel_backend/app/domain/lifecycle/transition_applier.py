"""
Transition Applier.

Turns an allowed transition into the complete set of field writes plus the
precondition the write must be filtered on. The caller issues a single
conditional UPDATE; a zero rowcount means the precondition no longer held.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from parcel_backend.app.domain.lifecycle.snapshot import ParcelSnapshot, RiderRef
from parcel_backend.app.domain.lifecycle.status_guard import ASSIGNABLE_STATUSES
from parcel_backend.app.models.parcel_enums import (
    DeliveryStatus, CashoutStatus, ParcelRiderStatus
)

# NULL cashout_status is a legacy "absent" value and counts as not cashed
CASHOUT_ELIGIBLE = (None, CashoutStatus.NOT_CASHED)


@dataclass(frozen=True)
class TransitionPlan:
    """
    Field writes for one transition.

    `expected` maps column name to the tuple of values the row must still
    hold at write time. None inside a tuple matches SQL NULL.
    """
    name: str
    values: Dict[str, Any]
    expected: Dict[str, Tuple[Any, ...]] = field(default_factory=dict)


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def plan_assign_rider(parcel: ParcelSnapshot, rider: RiderRef, now: Optional[datetime] = None) -> TransitionPlan:
    """Assignment always writes every rider field together, never a subset."""
    return TransitionPlan(
        name="assign_rider",
        values={
            "rider_id": rider.rider_id,
            "rider_name": rider.rider_name.strip(),
            "rider_email": rider.rider_email.strip().lower(),
            "rider_status": ParcelRiderStatus.RIDER_ASSIGNED,
            "delivery_status": DeliveryStatus.IN_TRANSIT,
            "assigned_rider": True,
            "assigned_at": _now(now),
        },
        expected={"delivery_status": ASSIGNABLE_STATUSES},
    )


def plan_toggle_delivery(parcel: ParcelSnapshot, target: DeliveryStatus, now: Optional[datetime] = None) -> TransitionPlan:
    """
    Move the parcel to `target`, stamping picked_at or delivered_at.

    Leaving delivered also clears delivered_at, since delivered_at is only
    meaningful while the parcel is delivered.
    """
    values: Dict[str, Any] = {"delivery_status": target}
    if target == DeliveryStatus.IN_TRANSIT:
        values["picked_at"] = _now(now)
        if parcel.delivery_status == DeliveryStatus.DELIVERED:
            values["delivered_at"] = None
    elif target == DeliveryStatus.DELIVERED:
        values["delivered_at"] = _now(now)

    expected: Dict[str, Tuple[Any, ...]] = {
        "delivery_status": (parcel.delivery_status,),
        "assigned_rider": (True,),
    }
    if parcel.delivery_status == DeliveryStatus.DELIVERED:
        expected["cashout_status"] = CASHOUT_ELIGIBLE

    return TransitionPlan(name="toggle_delivery", values=values, expected=expected)


def plan_cashout(now: Optional[datetime] = None) -> TransitionPlan:
    """cashout_status and cashout_at are written together in one update."""
    return TransitionPlan(
        name="cashout",
        values={
            "cashout_status": CashoutStatus.CASHED_OUT,
            "cashout_at": _now(now),
        },
        expected={
            "delivery_status": (DeliveryStatus.DELIVERED,),
            "cashout_status": CASHOUT_ELIGIBLE,
        },
    )


def plan_cashout_all(rider_email: str, now: Optional[datetime] = None) -> TransitionPlan:
    """Bulk cashout is a filter: every delivered, uncashed parcel of the rider."""
    plan = plan_cashout(now)
    return TransitionPlan(
        name="cashout_all",
        values=plan.values,
        expected={"rider_email": (rider_email.strip().lower(),), **plan.expected},
    )
