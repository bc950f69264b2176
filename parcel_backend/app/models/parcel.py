"""
Parcel database model.

The parcel row is the source of truth for delivery, rider assignment and
cashout state.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, Boolean
from sqlalchemy.sql import func
from parcel_backend.app.db.session import Base
from parcel_backend.app.models.parcel_enums import (
    DeliveryStatus, PaymentStatus, CashoutStatus, ParcelRiderStatus
)


class Parcel(Base):
    """
    Parcel model for the delivery platform.

    Riders are referenced by id/name/email copies rather than a foreign key,
    so a parcel keeps its rider reference even if the rider record changes.
    """
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    tracking_id = Column(String(64), unique=True, nullable=False, index=True)

    # Booking details
    title = Column(String(255), nullable=False)
    parcel_type = Column(String(50), nullable=True)
    weight_kg = Column(Numeric(10, 2), nullable=True)
    created_by = Column(String(255), nullable=False, index=True)

    sender_name = Column(String(255), nullable=False)
    sender_region = Column(String(100), nullable=False)
    sender_district = Column(String(100), nullable=True)
    receiver_name = Column(String(255), nullable=False)
    receiver_region = Column(String(100), nullable=False)
    receiver_district = Column(String(100), nullable=True)

    cost = Column(Numeric(12, 2), nullable=False)

    # Lifecycle
    delivery_status = Column(Enum(DeliveryStatus), default=DeliveryStatus.CREATED, nullable=False, index=True)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.UNPAID, nullable=False, index=True)
    cashout_status = Column(Enum(CashoutStatus), default=CashoutStatus.NOT_CASHED, nullable=True, index=True)

    # Rider reference
    assigned_rider = Column(Boolean, default=False, nullable=False)
    rider_id = Column(Integer, nullable=True, index=True)
    rider_name = Column(String(255), nullable=True)
    rider_email = Column(String(255), nullable=True, index=True)
    rider_status = Column(Enum(ParcelRiderStatus), default=ParcelRiderStatus.UNASSIGNED, nullable=False)

    # Denormalized tracking
    last_tracking_status = Column(String(100), nullable=True)
    last_tracking_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    picked_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cashout_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Parcel(id={self.id}, tracking_id='{self.tracking_id}', status='{self.delivery_status.value}')>"
