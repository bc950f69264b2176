"""
Audit Log Database Model.

Tracks admin decisions and money-moving transitions.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from parcel_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log entry.

    Events logged:
    - ROLE_CHANGED
    - RIDER_ACCEPTED / RIDER_REJECTED
    - RIDER_ASSIGNED / DELIVERY_TOGGLED
    - PARCEL_CASHED_OUT / RIDER_CASHED_OUT_ALL
    - PAYMENT_RECORDED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_email = Column(String(255), index=True, nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # What it was performed on, e.g. "parcel:12" or "user:4"
    target = Column(String(255), index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, target={self.target})>"
