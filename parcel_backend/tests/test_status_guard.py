"""
Unit tests for the status guard and transition plans.

No database: snapshots are built directly.
"""

import pytest
from datetime import datetime, timezone

from parcel_backend.app.core.exceptions import InvalidInputError, InvalidStateError
from parcel_backend.app.domain.lifecycle.errors import enforce
from parcel_backend.app.domain.lifecycle.snapshot import ParcelSnapshot, RiderRef
from parcel_backend.app.domain.lifecycle.status_guard import (
    Rejection, can_assign_rider, can_take_parcel, can_toggle_delivery, can_cashout,
    can_change_role, can_decide_rider, next_delivery_status
)
from parcel_backend.app.domain.lifecycle.transition_applier import (
    CASHOUT_ELIGIBLE, plan_assign_rider, plan_toggle_delivery, plan_cashout, plan_cashout_all
)
from parcel_backend.app.models.enums import RiderApprovalStatus
from parcel_backend.app.models.parcel_enums import (
    DeliveryStatus, CashoutStatus, ParcelRiderStatus
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
RIDER = RiderRef(rider_id=7, rider_name="Rahim", rider_email="Rider@Mail.com ")


def snapshot(status=DeliveryStatus.CREATED, with_rider=False, cashout=CashoutStatus.NOT_CASHED):
    rider_fields = {}
    if with_rider:
        rider_fields = dict(assigned_rider=True, rider_id=7, rider_name="Rahim", rider_email="rider@mail.com")
    return ParcelSnapshot(id=1, delivery_status=status, cashout_status=cashout, **rider_fields)


# Assignment

@pytest.mark.parametrize("rider", [
    RiderRef(rider_id=None, rider_name="Rahim", rider_email="r@mail.com"),
    RiderRef(rider_id=7, rider_name="  ", rider_email="r@mail.com"),
    RiderRef(rider_id=7, rider_name="Rahim", rider_email=None),
])
def test_assign_requires_complete_rider_data(rider):
    decision = can_assign_rider(snapshot(), rider)
    assert not decision.allowed
    assert decision.reason == Rejection.MISSING_RIDER_DATA
    assert decision.is_input_error


def test_assign_rejects_delivered_parcel():
    decision = can_assign_rider(snapshot(DeliveryStatus.DELIVERED, with_rider=True), RIDER)
    assert decision.reason == Rejection.PARCEL_ALREADY_DELIVERED


def test_reassign_in_transit_parcel_is_allowed():
    assert can_assign_rider(snapshot(DeliveryStatus.IN_TRANSIT, with_rider=True), RIDER).allowed


def test_assign_plan_writes_every_rider_field():
    plan = plan_assign_rider(snapshot(), RIDER, now=NOW)

    assert plan.values == {
        "rider_id": 7,
        "rider_name": "Rahim",
        "rider_email": "rider@mail.com",
        "rider_status": ParcelRiderStatus.RIDER_ASSIGNED,
        "delivery_status": DeliveryStatus.IN_TRANSIT,
        "assigned_rider": True,
        "assigned_at": NOW,
    }
    assert plan.expected == {"delivery_status": (DeliveryStatus.CREATED, DeliveryStatus.IN_TRANSIT)}


# Delivery toggle

def test_next_status_cycle():
    assert next_delivery_status(DeliveryStatus.CREATED) == DeliveryStatus.IN_TRANSIT
    assert next_delivery_status(DeliveryStatus.IN_TRANSIT) == DeliveryStatus.DELIVERED
    assert next_delivery_status(DeliveryStatus.DELIVERED) == DeliveryStatus.IN_TRANSIT


def test_toggle_requires_rider():
    decision = can_toggle_delivery(snapshot(DeliveryStatus.IN_TRANSIT), DeliveryStatus.DELIVERED)
    assert decision.reason == Rejection.RIDER_NOT_ASSIGNED
    assert not decision.is_input_error


def test_toggle_rejects_partial_rider_reference():
    parcel = ParcelSnapshot(
        id=1, delivery_status=DeliveryStatus.IN_TRANSIT,
        assigned_rider=True, rider_id=7, rider_name=None, rider_email="rider@mail.com"
    )
    assert can_toggle_delivery(parcel, DeliveryStatus.DELIVERED).reason == Rejection.RIDER_NOT_ASSIGNED


@pytest.mark.parametrize("current, target", [
    (DeliveryStatus.IN_TRANSIT, DeliveryStatus.CREATED),
    (DeliveryStatus.CREATED, DeliveryStatus.DELIVERED),
    (DeliveryStatus.DELIVERED, DeliveryStatus.CREATED),
])
def test_toggle_rejects_unreachable_target(current, target):
    decision = can_toggle_delivery(snapshot(current, with_rider=True), target)
    assert decision.reason == Rejection.INVALID_TARGET
    assert decision.is_input_error


def test_redelivery_can_be_disabled():
    parcel = snapshot(DeliveryStatus.DELIVERED, with_rider=True)
    assert can_toggle_delivery(parcel, DeliveryStatus.IN_TRANSIT, allow_redelivery=True).allowed

    decision = can_toggle_delivery(parcel, DeliveryStatus.IN_TRANSIT, allow_redelivery=False)
    assert decision.reason == Rejection.REDELIVERY_NOT_ALLOWED


def test_cashed_out_parcel_cannot_leave_delivered():
    parcel = snapshot(DeliveryStatus.DELIVERED, with_rider=True, cashout=CashoutStatus.CASHED_OUT)
    decision = can_toggle_delivery(parcel, DeliveryStatus.IN_TRANSIT)
    assert decision.reason == Rejection.ALREADY_CASHED_OUT


def test_deliver_plan_stamps_delivered_at():
    plan = plan_toggle_delivery(snapshot(DeliveryStatus.IN_TRANSIT, with_rider=True), DeliveryStatus.DELIVERED, now=NOW)

    assert plan.values == {"delivery_status": DeliveryStatus.DELIVERED, "delivered_at": NOW}
    assert plan.expected == {
        "delivery_status": (DeliveryStatus.IN_TRANSIT,),
        "assigned_rider": (True,),
    }


def test_redelivery_plan_clears_delivered_at():
    plan = plan_toggle_delivery(snapshot(DeliveryStatus.DELIVERED, with_rider=True), DeliveryStatus.IN_TRANSIT, now=NOW)

    assert plan.values["delivered_at"] is None
    assert plan.values["picked_at"] == NOW
    assert plan.expected["cashout_status"] == CASHOUT_ELIGIBLE


# Cashout

def test_cashout_requires_delivery():
    decision = can_cashout(snapshot(DeliveryStatus.IN_TRANSIT, with_rider=True))
    assert decision.reason == Rejection.NOT_DELIVERED


def test_cashout_only_once():
    parcel = snapshot(DeliveryStatus.DELIVERED, with_rider=True, cashout=CashoutStatus.CASHED_OUT)
    assert can_cashout(parcel).reason == Rejection.ALREADY_CASHED_OUT


def test_missing_cashout_status_counts_as_not_cashed():
    assert can_cashout(snapshot(DeliveryStatus.DELIVERED, with_rider=True, cashout=None)).allowed


def test_cashout_plan_writes_status_and_timestamp_together():
    plan = plan_cashout(now=NOW)
    assert plan.values == {"cashout_status": CashoutStatus.CASHED_OUT, "cashout_at": NOW}
    assert None in plan.expected["cashout_status"]


def test_cashout_all_plan_filters_by_normalized_email():
    plan = plan_cashout_all(" Rider@Mail.com", now=NOW)
    assert plan.expected["rider_email"] == ("rider@mail.com",)
    assert plan.expected["delivery_status"] == (DeliveryStatus.DELIVERED,)


# Roles and rider decisions

@pytest.mark.parametrize("role", ["user", "admin", "rider"])
def test_known_roles_allowed(role):
    assert can_change_role(role).allowed


def test_unknown_role_rejected():
    assert can_change_role("superuser").reason == Rejection.INVALID_ROLE


def test_rider_decision_statuses():
    assert can_decide_rider("accepted").allowed
    assert can_decide_rider("rejected").allowed
    assert can_decide_rider("pending").reason == Rejection.INVALID_STATUS


def test_rider_must_match_stored_record_and_be_accepted():
    assert can_take_parcel(RIDER, "rider@mail.com", RiderApprovalStatus.ACCEPTED).allowed
    assert can_take_parcel(RIDER, "other@mail.com", RiderApprovalStatus.ACCEPTED).reason == Rejection.RIDER_MISMATCH
    assert can_take_parcel(RIDER, "rider@mail.com", RiderApprovalStatus.PENDING).reason == Rejection.RIDER_NOT_APPROVED
    assert can_take_parcel(RIDER, "rider@mail.com", RiderApprovalStatus.REJECTED).reason == Rejection.RIDER_NOT_APPROVED


# Error mapping

def test_enforce_maps_input_reasons_to_invalid_input():
    with pytest.raises(InvalidInputError) as exc_info:
        enforce(can_assign_rider(snapshot(), RiderRef(None, None, None)))
    assert exc_info.value.reason == Rejection.MISSING_RIDER_DATA


def test_enforce_maps_state_reasons_to_invalid_state():
    with pytest.raises(InvalidStateError) as exc_info:
        enforce(can_cashout(snapshot(DeliveryStatus.CREATED)))
    assert exc_info.value.reason == Rejection.NOT_DELIVERED
    assert exc_info.value.details["reason"] == "NotDelivered"
