"""
Payment recording service.

A confirmed payment produces one immutable Payment row and flips the owning
parcel to paid. Both writes go out in one commit.
"""

from sqlalchemy import update, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.exceptions import NotFoundError, ConflictError, InvalidAmountError
from parcel_backend.app.domain.lifecycle.earning import parse_amount
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import PaymentStatus
from parcel_backend.app.models.payment import Payment
from parcel_backend.app.services.audit import log_event, AuditAction


class PaymentService:

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        parcel_id: int,
        payment_intent_id: str,
        user_email: str,
        amount,
        currency: str = "usd"
    ) -> Payment:
        """
        Record a completed payment.

        Raises:
            InvalidAmountError: amount is not a valid positive amount
            NotFoundError: parcel absent
            ConflictError: the payment intent was already recorded, or the
                parcel is already paid
        """
        amount = parse_amount(amount)
        if amount == 0:
            raise InvalidAmountError(amount)

        existing = await db.scalar(
            select(Payment.id).where(Payment.payment_intent_id == payment_intent_id)
        )
        if existing is not None:
            raise ConflictError(
                message="Payment intent already recorded",
                details={"payment_intent_id": payment_intent_id}
            )

        result = await db.execute(
            update(Parcel)
            .where(Parcel.id == parcel_id, Parcel.payment_status != PaymentStatus.PAID)
            .values(payment_status=PaymentStatus.PAID)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            if await db.scalar(select(Parcel.id).where(Parcel.id == parcel_id)) is None:
                raise NotFoundError("Parcel", parcel_id)
            raise ConflictError(
                message="Parcel is already paid",
                details={"parcel_id": parcel_id}
            )

        payment = Payment(
            parcel_id=parcel_id,
            payment_intent_id=payment_intent_id,
            user_email=user_email.lower(),
            amount=amount,
            currency=currency.lower(),
            status="success",
        )
        db.add(payment)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with another recording of the same intent
            await db.rollback()
            raise ConflictError(
                message="Payment intent already recorded",
                details={"payment_intent_id": payment_intent_id}
            )
        await db.refresh(payment)

        await log_event(
            db=db,
            action=AuditAction.PAYMENT_RECORDED,
            actor_email=payment.user_email,
            target=f"parcel:{parcel_id}",
            metadata={"payment_intent_id": payment_intent_id, "amount": str(amount)}
        )

        return payment
