"""
Payment Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, List


class PaymentIntentCreate(BaseModel):
    amount_in_cents: int = Field(..., gt=0, alias="amountInCent")
    currency: Optional[str] = Field(None, min_length=3, max_length=10)

    class Config:
        populate_by_name = True


class PaymentIntentResponse(BaseModel):
    client_secret: str = Field(..., serialization_alias="clientSecret")


class PaymentRecord(BaseModel):
    """
    Confirmation of a completed payment.

    `amount` is parsed strictly by the service so malformed amounts are
    rejected as InvalidAmount.
    """
    parcel_id: int = Field(..., alias="parcelId")
    payment_intent_id: str = Field(..., min_length=1, alias="paymentIntentId")
    user_email: EmailStr = Field(..., alias="userEmail")
    amount: Any = Field(...)
    currency: str = Field("usd", min_length=3, max_length=10)

    class Config:
        populate_by_name = True


class PaymentResponse(BaseModel):
    id: int
    parcel_id: Optional[int]
    payment_intent_id: str
    user_email: str
    amount: Decimal
    currency: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentRecordResponse(BaseModel):
    message: str
    payment: PaymentResponse


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]
    total: int
