"""
Status Guard.

Decides whether a requested transition is legal for the current persisted
snapshot. Decisions are pure: no I/O happens here, the caller loads the
snapshot and acts on the returned GuardDecision.
"""

from dataclasses import dataclass
from typing import Optional

from parcel_backend.app.domain.lifecycle.snapshot import ParcelSnapshot, RiderRef
from parcel_backend.app.models.enums import UserRole, RiderApprovalStatus
from parcel_backend.app.models.parcel_enums import DeliveryStatus


class Rejection:
    """Rejection reasons returned by the guard."""
    MISSING_RIDER_DATA = "MissingRiderData"
    PARCEL_ALREADY_DELIVERED = "ParcelAlreadyDelivered"
    RIDER_NOT_ASSIGNED = "RiderNotAssigned"
    REDELIVERY_NOT_ALLOWED = "RedeliveryNotAllowed"
    INVALID_TARGET = "InvalidTarget"
    NOT_DELIVERED = "NotDelivered"
    ALREADY_CASHED_OUT = "AlreadyCashedOut"
    INVALID_ROLE = "InvalidRole"
    INVALID_STATUS = "InvalidStatus"
    RIDER_MISMATCH = "RiderMismatch"
    RIDER_NOT_APPROVED = "RiderNotApproved"

    # Reasons caused by bad request data rather than by record state
    INPUT_REASONS = frozenset({MISSING_RIDER_DATA, INVALID_TARGET, RIDER_MISMATCH})


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    reason: Optional[str] = None

    @property
    def is_input_error(self) -> bool:
        return not self.allowed and self.reason in Rejection.INPUT_REASONS


ALLOWED = GuardDecision(allowed=True)


def rejected(reason: str) -> GuardDecision:
    return GuardDecision(allowed=False, reason=reason)


ASSIGNABLE_STATUSES = (DeliveryStatus.CREATED, DeliveryStatus.IN_TRANSIT)

ALLOWED_ROLES = tuple(role.value for role in UserRole)

DECISION_STATUSES = (RiderApprovalStatus.ACCEPTED.value, RiderApprovalStatus.REJECTED.value)


def can_assign_rider(parcel: ParcelSnapshot, rider: RiderRef) -> GuardDecision:
    """Rider id, name and email are all required, and the parcel must not be delivered."""
    if not rider.is_complete:
        return rejected(Rejection.MISSING_RIDER_DATA)
    if parcel.delivery_status not in ASSIGNABLE_STATUSES:
        return rejected(Rejection.PARCEL_ALREADY_DELIVERED)
    return ALLOWED


def can_take_parcel(
    rider: RiderRef,
    stored_email: str,
    approval_status: RiderApprovalStatus
) -> GuardDecision:
    """
    The requested rider reference must describe the stored rider, and only
    accepted riders take parcels.
    """
    if (rider.rider_email or "").strip().lower() != (stored_email or "").lower():
        return rejected(Rejection.RIDER_MISMATCH)
    if approval_status != RiderApprovalStatus.ACCEPTED:
        return rejected(Rejection.RIDER_NOT_APPROVED)
    return ALLOWED


def next_delivery_status(current: DeliveryStatus) -> DeliveryStatus:
    """created → in-transit → delivered; delivered toggles back to in-transit."""
    if current == DeliveryStatus.CREATED:
        return DeliveryStatus.IN_TRANSIT
    if current == DeliveryStatus.IN_TRANSIT:
        return DeliveryStatus.DELIVERED
    return DeliveryStatus.IN_TRANSIT


def can_toggle_delivery(
    parcel: ParcelSnapshot,
    target: DeliveryStatus,
    allow_redelivery: bool = True
) -> GuardDecision:
    """
    Validate a delivery status change from the parcel's current status to `target`.

    Only the moves produced by next_delivery_status are legal. Moving to
    in-transit or delivered requires an assigned rider. The delivered →
    in-transit correction is gated by `allow_redelivery` and is never allowed
    once the parcel has been cashed out.
    """
    current = parcel.delivery_status
    if target == DeliveryStatus.CREATED or target != next_delivery_status(current):
        return rejected(Rejection.INVALID_TARGET)

    if current == DeliveryStatus.DELIVERED:
        if not allow_redelivery:
            return rejected(Rejection.REDELIVERY_NOT_ALLOWED)
        if parcel.is_cashed_out:
            return rejected(Rejection.ALREADY_CASHED_OUT)

    if not parcel.has_rider:
        return rejected(Rejection.RIDER_NOT_ASSIGNED)

    return ALLOWED


def can_cashout(parcel: ParcelSnapshot) -> GuardDecision:
    """A parcel can be cashed out once, and only after delivery."""
    if parcel.delivery_status != DeliveryStatus.DELIVERED:
        return rejected(Rejection.NOT_DELIVERED)
    if parcel.is_cashed_out:
        return rejected(Rejection.ALREADY_CASHED_OUT)
    return ALLOWED


def can_change_role(role: str) -> GuardDecision:
    if role not in ALLOWED_ROLES:
        return rejected(Rejection.INVALID_ROLE)
    return ALLOWED


def can_decide_rider(status: str) -> GuardDecision:
    if status not in DECISION_STATUSES:
        return rejected(Rejection.INVALID_STATUS)
    return ALLOWED
