"""
Parcel Pydantic schemas.

Defines request and response models for parcel management.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from parcel_backend.app.models.parcel_enums import (
    DeliveryStatus, PaymentStatus, CashoutStatus, ParcelRiderStatus
)


class ParcelCreate(BaseModel):
    """Schema for booking a new parcel."""
    tracking_id: Optional[str] = Field(None, min_length=4, max_length=64, description="Generated when omitted")
    title: str = Field(..., min_length=1, max_length=255)
    parcel_type: Optional[str] = Field(None, max_length=50, description="e.g. document, non-document")
    weight_kg: Optional[Decimal] = Field(None, ge=0)
    created_by: EmailStr = Field(..., description="Email of the booking user")
    sender_name: str = Field(..., min_length=1, max_length=255)
    sender_region: str = Field(..., min_length=1, max_length=100)
    sender_district: Optional[str] = Field(None, max_length=100)
    receiver_name: str = Field(..., min_length=1, max_length=255)
    receiver_region: str = Field(..., min_length=1, max_length=100)
    receiver_district: Optional[str] = Field(None, max_length=100)
    cost: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Delivery cost")


class ParcelResponse(BaseModel):
    """Schema for parcel response."""
    id: int
    tracking_id: str
    title: str
    parcel_type: Optional[str]
    weight_kg: Optional[Decimal]
    created_by: str
    sender_name: str
    sender_region: str
    sender_district: Optional[str]
    receiver_name: str
    receiver_region: str
    receiver_district: Optional[str]
    cost: Decimal
    delivery_status: DeliveryStatus
    payment_status: PaymentStatus
    cashout_status: Optional[CashoutStatus]
    assigned_rider: bool
    rider_id: Optional[int]
    rider_name: Optional[str]
    rider_email: Optional[str]
    rider_status: ParcelRiderStatus
    last_tracking_status: Optional[str]
    last_tracking_at: Optional[datetime]
    created_at: datetime
    assigned_at: Optional[datetime]
    picked_at: Optional[datetime]
    delivered_at: Optional[datetime]
    cashout_at: Optional[datetime]

    class Config:
        from_attributes = True


class RiderParcelResponse(ParcelResponse):
    """Parcel as seen by its rider, with the earning computed at read time."""
    rider_earning: Decimal


class ParcelListResponse(BaseModel):
    parcels: List[ParcelResponse]
    total: int


class EarningsSummary(BaseModel):
    rider_email: str
    parcel_count: int
    total_earning: Decimal
    cashed_out: Decimal
    pending: Decimal
