"""
Rider database model.

A rider has an approval workflow (status) separate from the live work
state (rider_status). The latter is a best-effort cache of parcel state.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from parcel_backend.app.db.session import Base
from parcel_backend.app.models.enums import RiderApprovalStatus, RiderWorkStatus


class Rider(Base):
    __tablename__ = "riders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    region = Column(String(100), nullable=True)
    district = Column(String(100), nullable=False, index=True)

    status = Column(Enum(RiderApprovalStatus), default=RiderApprovalStatus.PENDING, nullable=False, index=True)
    rider_status = Column(Enum(RiderWorkStatus), default=RiderWorkStatus.AVAILABLE, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Rider(id={self.id}, email='{self.email}', status='{self.status.value}')>"
