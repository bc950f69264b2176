"""
Payment API endpoints.

Intent creation against the payment gateway, and recording of completed
payments.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.db.session import get_db
from parcel_backend.app.core.dependencies import get_current_user
from parcel_backend.app.core.exceptions import InsufficientPermissionsError
from parcel_backend.app.core.identity import CurrentUser
from parcel_backend.app.schemas.payment import (
    PaymentIntentCreate, PaymentIntentResponse,
    PaymentRecord, PaymentResponse, PaymentRecordResponse, PaymentListResponse
)
from parcel_backend.app.services.payment_gateway import PaymentGateway, get_payment_gateway
from parcel_backend.app.services.payments import PaymentService
from parcel_backend.app.services.queries import PaymentQuery

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/create-intent", response_model=PaymentIntentResponse, response_model_by_alias=True)
async def create_payment_intent(
    intent: PaymentIntentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway)
):
    """Create a payment intent and hand its client secret to the browser."""
    client_secret = await gateway.create_intent(intent.amount_in_cents, intent.currency)
    return PaymentIntentResponse(client_secret=client_secret)


@router.post("", response_model=PaymentRecordResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    record: PaymentRecord,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a completed payment and mark the parcel paid.

    Users record their own payments; admins may record any.
    """
    if not current_user.is_admin and record.user_email.lower() != current_user.email:
        raise InsufficientPermissionsError(message="You can only record your own payments")

    payment = await PaymentService.record_payment(
        db=db,
        parcel_id=record.parcel_id,
        payment_intent_id=record.payment_intent_id,
        user_email=record.user_email,
        amount=record.amount,
        currency=record.currency
    )

    return PaymentRecordResponse(
        message="Payment recorded",
        payment=PaymentResponse.model_validate(payment)
    )


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    email: Optional[str] = Query(None, description="Filter by payer email"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Payment history, latest first.

    Non-admins only ever see their own payments.
    """
    if not current_user.is_admin:
        if email and email.lower() != current_user.email:
            raise InsufficientPermissionsError(message="You can only view your own payments")
        email = current_user.email

    result = await db.execute(PaymentQuery(user_email=email).to_statement())
    payments = result.scalars().all()

    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        total=len(payments)
    )
