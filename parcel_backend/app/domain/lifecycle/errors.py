"""
Mapping of guard decisions and missed conditional updates to typed errors.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.exceptions import (
    InvalidInputError, InvalidStateError, ConflictError, NotFoundError
)
from parcel_backend.app.domain.lifecycle.status_guard import GuardDecision, Rejection
from parcel_backend.app.domain.lifecycle.transition_applier import TransitionPlan
from parcel_backend.app.models.parcel import Parcel

MESSAGES = {
    Rejection.MISSING_RIDER_DATA: "Missing rider data: riderId, riderName and riderEmail are required",
    Rejection.PARCEL_ALREADY_DELIVERED: "Parcel already delivered",
    Rejection.RIDER_NOT_ASSIGNED: "No rider assigned to this parcel",
    Rejection.REDELIVERY_NOT_ALLOWED: "Delivered parcels cannot be moved back to in-transit",
    Rejection.INVALID_TARGET: "Requested delivery status is not reachable from the current status",
    Rejection.NOT_DELIVERED: "Parcel not delivered yet",
    Rejection.ALREADY_CASHED_OUT: "Parcel already cashed out",
    Rejection.INVALID_ROLE: "Invalid role",
    Rejection.INVALID_STATUS: "Invalid status",
    Rejection.RIDER_MISMATCH: "Rider email does not match the rider record",
    Rejection.RIDER_NOT_APPROVED: "Rider application has not been accepted",
}


def enforce(decision: GuardDecision) -> None:
    """Raise the typed error for a rejected decision; no-op when allowed."""
    if decision.allowed:
        return
    message = MESSAGES.get(decision.reason, decision.reason)
    if decision.is_input_error:
        raise InvalidInputError(message, reason=decision.reason)
    raise InvalidStateError(decision.reason, message=message)


async def raise_for_missed_update(db: AsyncSession, parcel_id: int, plan: TransitionPlan) -> None:
    """
    A conditional update matched nothing: the parcel is gone (NotFound) or
    no longer satisfies the plan's precondition (Conflict).
    """
    exists = await db.scalar(select(Parcel.id).where(Parcel.id == parcel_id))
    if exists is None:
        raise NotFoundError("Parcel", parcel_id)
    raise ConflictError(
        message=f"Parcel {parcel_id} changed concurrently; {plan.name} precondition no longer holds",
        details={"parcel_id": parcel_id, "transition": plan.name}
    )
