"""
Rider Assignment Resolver.

Assigning a rider touches two records: the parcel (authoritative) and the
rider's `rider_status` (a cache of "has an in-transit parcel"). There is no
cross-record transaction. The parcel write commits first; the rider write is
best-effort and its failure is logged and reported without rolling back the
parcel. `reconcile_rider_status` rebuilds the cache from parcels.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.exceptions import NotFoundError
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.domain.lifecycle.conditional_update import apply_plan
from parcel_backend.app.domain.lifecycle.errors import enforce, raise_for_missed_update
from parcel_backend.app.domain.lifecycle.snapshot import ParcelSnapshot, RiderRef
from parcel_backend.app.domain.lifecycle.status_guard import can_assign_rider, can_take_parcel
from parcel_backend.app.domain.lifecycle.transition_applier import plan_assign_rider
from parcel_backend.app.models.enums import RiderWorkStatus
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import DeliveryStatus
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger("parcel_backend.lifecycle.assignment")


@dataclass
class AssignmentResult:
    parcel: Parcel
    rider_synced: bool
    previous_rider_id: Optional[int] = None


class RiderAssignmentResolver:

    @staticmethod
    async def assign(
        db: AsyncSession,
        parcel_id: int,
        rider_ref: RiderRef,
        actor: Optional[CurrentUser] = None
    ) -> AssignmentResult:
        """
        Assign (or reassign) a rider to a parcel.

        Flow:
        1. Load parcel, run the guard (missing rider data, already delivered)
        2. Verify the rider exists, is accepted and matches the request
        3. Conditional parcel update, committed (source of truth)
        4. Best-effort rider cache update for the new rider
        5. Best-effort reconcile of the previous rider on reassignment

        Raises:
            NotFoundError: Parcel or rider absent
            InvalidInputError: Rider id/name/email missing, or email not the rider's
            InvalidStateError: Parcel already delivered or rider not accepted
            ConflictError: Parcel changed between read and write
        """
        parcel = await db.get(Parcel, parcel_id, populate_existing=True)
        if not parcel:
            raise NotFoundError("Parcel", parcel_id)

        snapshot = ParcelSnapshot.from_model(parcel)
        enforce(can_assign_rider(snapshot, rider_ref))

        rider = await db.get(Rider, rider_ref.rider_id)
        if not rider:
            raise NotFoundError("Rider", rider_ref.rider_id)
        enforce(can_take_parcel(rider_ref, rider.email, rider.status))
        # name and email are written as stored on the rider
        rider_ref = RiderRef(rider_id=rider.id, rider_name=rider.name, rider_email=rider.email)

        previous_rider_id = snapshot.rider_id if snapshot.rider_id not in (None, rider.id) else None

        plan = plan_assign_rider(snapshot, rider_ref)
        matched = await apply_plan(db, plan, parcel_id=parcel_id)
        if matched == 0:
            await db.rollback()
            await raise_for_missed_update(db, parcel_id, plan)
        await db.commit()
        await db.refresh(parcel)

        rider_id = rider.id
        rider_synced = await RiderAssignmentResolver._mark_rider_assigned(db, rider_id)
        if previous_rider_id is not None:
            await RiderAssignmentResolver.reconcile_quietly(db, previous_rider_id)
        if not rider_synced:
            # the rollback expired the parcel
            await db.refresh(parcel)

        await log_event(
            db=db,
            action=AuditAction.RIDER_ASSIGNED,
            actor_email=actor.email if actor else None,
            target=f"parcel:{parcel.id}",
            metadata={
                "rider_id": rider_id,
                "rider_email": parcel.rider_email,
                "previous_rider_id": previous_rider_id,
                "rider_synced": rider_synced,
            }
        )

        return AssignmentResult(parcel=parcel, rider_synced=rider_synced, previous_rider_id=previous_rider_id)

    @staticmethod
    async def _mark_rider_assigned(db: AsyncSession, rider_id: int) -> bool:
        try:
            await db.execute(
                update(Rider)
                .where(Rider.id == rider_id)
                .values(rider_status=RiderWorkStatus.RIDER_ASSIGNED)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(
                "Parcel assigned but rider %s status not updated (%s); reconcile later",
                rider_id, e.__class__.__name__
            )
            return False
        return True

    @staticmethod
    async def reconcile_rider_status(db: AsyncSession, rider_id: int) -> RiderWorkStatus:
        """
        Recompute a rider's cached work state from parcels.

        A rider is RIDER_ASSIGNED iff at least one in-transit parcel
        references them.

        Raises:
            NotFoundError: Rider absent
        """
        rider = await db.get(Rider, rider_id, populate_existing=True)
        if not rider:
            raise NotFoundError("Rider", rider_id)

        in_transit = await db.scalar(
            select(func.count(Parcel.id)).where(
                Parcel.rider_id == rider_id,
                Parcel.delivery_status == DeliveryStatus.IN_TRANSIT
            )
        )
        desired = RiderWorkStatus.RIDER_ASSIGNED if in_transit else RiderWorkStatus.AVAILABLE

        if rider.rider_status != desired:
            logger.info("Rider %s status %s -> %s", rider_id, rider.rider_status.value, desired.value)
            rider.rider_status = desired
            await db.commit()

        return desired

    @staticmethod
    async def reconcile_quietly(db: AsyncSession, rider_id: Optional[int]) -> Optional[RiderWorkStatus]:
        """Best-effort reconcile used after parcel-side writes; never raises store errors."""
        if rider_id is None:
            return None
        try:
            return await RiderAssignmentResolver.reconcile_rider_status(db, rider_id)
        except NotFoundError:
            logger.warning("Parcel references unknown rider %s", rider_id)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning("Rider %s status reconcile failed: %s", rider_id, e.__class__.__name__)
        return None
