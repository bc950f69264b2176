"""
Tracking event schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class TrackingEventCreate(BaseModel):
    tracking_id: str = Field(..., min_length=1, alias="parcelId", description="Parcel tracking id")
    status: str = Field(..., min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    updated_by: Optional[str] = Field(None, max_length=255, alias="updatedBy")

    class Config:
        populate_by_name = True


class TrackingEventResponse(BaseModel):
    id: int
    tracking_id: str
    status: str
    location: str
    updated_by: str
    timestamp: datetime

    class Config:
        from_attributes = True


class TrackingHistoryResponse(BaseModel):
    tracking_id: str
    events: List[TrackingEventResponse]
