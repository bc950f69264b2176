"""
Tracking event database model.

Append-only log of parcel status/location updates, keyed by tracking id.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from parcel_backend.app.db.session import Base


class TrackingEvent(Base):
    __tablename__ = "tracking_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    tracking_id = Column(String(64), nullable=False, index=True)
    status = Column(String(100), nullable=False)
    location = Column(String(255), nullable=False, default="Unknown")
    updated_by = Column(String(255), nullable=False, default="System")
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<TrackingEvent(id={self.id}, tracking_id='{self.tracking_id}', status='{self.status}')>"
