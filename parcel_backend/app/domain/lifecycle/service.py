"""
Parcel Lifecycle Service (Domain Logic).

Single entry point for every lifecycle mutation: delivery toggles, cashouts,
role changes and rider approval decisions. Each operation loads the current
snapshot, asks the Status Guard, builds a plan with the Transition Applier
and persists it with a conditional update. No retries happen here.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.config import settings
from parcel_backend.app.core.exceptions import NotFoundError
from parcel_backend.app.core.guards import ensure_rider_access
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.domain.lifecycle.assignment_resolver import (
    RiderAssignmentResolver, AssignmentResult
)
from parcel_backend.app.domain.lifecycle.conditional_update import apply_plan
from parcel_backend.app.domain.lifecycle.errors import enforce, raise_for_missed_update
from parcel_backend.app.domain.lifecycle.snapshot import ParcelSnapshot, RiderRef
from parcel_backend.app.domain.lifecycle.status_guard import (
    can_toggle_delivery, can_cashout, can_change_role, can_decide_rider, next_delivery_status
)
from parcel_backend.app.domain.lifecycle.transition_applier import (
    plan_toggle_delivery, plan_cashout, plan_cashout_all
)
from parcel_backend.app.models.enums import UserRole, RiderApprovalStatus
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import DeliveryStatus
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.models.user import User
from parcel_backend.app.services.audit import log_event, AuditAction
from parcel_backend.app.services.role_cache import invalidate_role

logger = logging.getLogger("parcel_backend.lifecycle")


@dataclass
class ToggleResult:
    parcel: Parcel
    previous_status: DeliveryStatus
    changed: bool


@dataclass
class RiderDecisionResult:
    rider: Rider
    role_updated: bool


async def _load_parcel(db: AsyncSession, parcel_id: int) -> Parcel:
    parcel = await db.get(Parcel, parcel_id, populate_existing=True)
    if not parcel:
        raise NotFoundError("Parcel", parcel_id)
    return parcel


class ParcelLifecycleService:

    @staticmethod
    async def assign_rider(
        db: AsyncSession,
        parcel_id: int,
        rider_ref: RiderRef,
        actor: Optional[CurrentUser] = None
    ) -> AssignmentResult:
        return await RiderAssignmentResolver.assign(db, parcel_id, rider_ref, actor)

    @staticmethod
    async def toggle_delivery(
        db: AsyncSession,
        parcel_id: int,
        actor: Optional[CurrentUser] = None,
        target: Optional[DeliveryStatus] = None,
        allow_redelivery: Optional[bool] = None
    ) -> ToggleResult:
        """
        Advance a parcel's delivery status.

        Without `target` the parcel moves to its next status
        (created → in-transit → delivered → in-transit). With `target`
        equal to the current status the call is a no-op, so repeating an
        explicit "mark delivered" never re-stamps delivered_at.

        Raises:
            NotFoundError, InsufficientPermissionsError,
            InvalidStateError (RiderNotAssigned, RedeliveryNotAllowed, AlreadyCashedOut),
            InvalidInputError (InvalidTarget), ConflictError
        """
        if allow_redelivery is None:
            allow_redelivery = settings.allow_redelivery

        parcel = await _load_parcel(db, parcel_id)
        ensure_rider_access(actor, parcel.rider_email)
        snapshot = ParcelSnapshot.from_model(parcel)

        if target is not None and target == snapshot.delivery_status:
            return ToggleResult(parcel=parcel, previous_status=snapshot.delivery_status, changed=False)

        target = target or next_delivery_status(snapshot.delivery_status)
        enforce(can_toggle_delivery(snapshot, target, allow_redelivery))

        plan = plan_toggle_delivery(snapshot, target)
        matched = await apply_plan(db, plan, parcel_id=parcel_id)
        if matched == 0:
            await db.rollback()
            await raise_for_missed_update(db, parcel_id, plan)
        await db.commit()
        await db.refresh(parcel)

        if await RiderAssignmentResolver.reconcile_quietly(db, parcel.rider_id) is None:
            await db.refresh(parcel)

        await log_event(
            db=db,
            action=AuditAction.DELIVERY_TOGGLED,
            actor_email=actor.email if actor else None,
            target=f"parcel:{parcel.id}",
            metadata={"from": snapshot.delivery_status.value, "to": target.value}
        )

        return ToggleResult(parcel=parcel, previous_status=snapshot.delivery_status, changed=True)

    @staticmethod
    async def cashout(
        db: AsyncSession,
        parcel_id: int,
        actor: Optional[CurrentUser] = None
    ) -> Parcel:
        """
        Cash out a single delivered parcel.

        Raises:
            NotFoundError, InsufficientPermissionsError,
            InvalidStateError (NotDelivered, AlreadyCashedOut),
            ConflictError if another cashout won the race
        """
        parcel = await _load_parcel(db, parcel_id)
        ensure_rider_access(actor, parcel.rider_email)
        enforce(can_cashout(ParcelSnapshot.from_model(parcel)))

        plan = plan_cashout()
        matched = await apply_plan(db, plan, parcel_id=parcel_id)
        if matched == 0:
            await db.rollback()
            await raise_for_missed_update(db, parcel_id, plan)
        await db.commit()
        await db.refresh(parcel)

        await log_event(
            db=db,
            action=AuditAction.PARCEL_CASHED_OUT,
            actor_email=actor.email if actor else None,
            target=f"parcel:{parcel.id}",
            metadata={"rider_email": parcel.rider_email}
        )

        return parcel

    @staticmethod
    async def cashout_all(
        db: AsyncSession,
        rider_email: str,
        actor: Optional[CurrentUser] = None
    ) -> int:
        """
        Cash out every delivered, not yet cashed parcel of a rider.

        Returns:
            Number of parcels actually modified (0 is a valid result)
        """
        ensure_rider_access(actor, rider_email, resource_name="rider account")

        plan = plan_cashout_all(rider_email)
        modified = await apply_plan(db, plan)
        await db.commit()

        await log_event(
            db=db,
            action=AuditAction.RIDER_CASHED_OUT_ALL,
            actor_email=actor.email if actor else None,
            target=f"rider:{rider_email.strip().lower()}",
            metadata={"modified_count": modified}
        )

        return modified

    @staticmethod
    async def change_role(
        db: AsyncSession,
        user_id: int,
        role: str,
        actor: Optional[CurrentUser] = None
    ) -> Tuple[User, UserRole]:
        """
        Change a user's role.

        Returns:
            (updated user, previous role)

        Raises:
            InvalidStateError (InvalidRole), NotFoundError
        """
        enforce(can_change_role(role))

        user = await db.get(User, user_id, populate_existing=True)
        if not user:
            raise NotFoundError("User", user_id)

        previous_role = user.role
        user.role = UserRole(role)
        await db.commit()
        await db.refresh(user)
        await invalidate_role(user.email)

        await log_event(
            db=db,
            action=AuditAction.ROLE_CHANGED,
            actor_email=actor.email if actor else None,
            target=f"user:{user.id}",
            metadata={"from": previous_role.value, "to": user.role.value}
        )

        return user, previous_role

    @staticmethod
    async def decide_rider_application(
        db: AsyncSession,
        rider_id: int,
        status: str,
        actor: Optional[CurrentUser] = None
    ) -> RiderDecisionResult:
        """
        Accept or reject a rider application.

        Accepting also promotes the user with the rider's email to the
        rider role. A missing user account does not fail the decision.

        Raises:
            InvalidStateError (InvalidStatus), NotFoundError
        """
        enforce(can_decide_rider(status))

        rider = await db.get(Rider, rider_id, populate_existing=True)
        if not rider:
            raise NotFoundError("Rider", rider_id)

        rider.status = RiderApprovalStatus(status)

        role_updated = False
        if rider.status == RiderApprovalStatus.ACCEPTED:
            result = await db.execute(
                update(User)
                .where(User.email == rider.email)
                .values(role=UserRole.RIDER)
                .execution_options(synchronize_session=False)
            )
            role_updated = result.rowcount > 0
            if not role_updated:
                logger.warning("Rider %s accepted but no user account for %s", rider.id, rider.email)

        await db.commit()
        await db.refresh(rider)
        if role_updated:
            await invalidate_role(rider.email)

        await log_event(
            db=db,
            action=AuditAction.RIDER_ACCEPTED if rider.status == RiderApprovalStatus.ACCEPTED else AuditAction.RIDER_REJECTED,
            actor_email=actor.email if actor else None,
            target=f"rider:{rider.id}",
            metadata={"email": rider.email, "role_updated": role_updated}
        )

        return RiderDecisionResult(rider=rider, role_updated=role_updated)
