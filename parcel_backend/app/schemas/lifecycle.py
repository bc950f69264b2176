"""
Lifecycle transition schemas (assignment, delivery toggle, cashout).
"""

from pydantic import BaseModel, Field
from typing import Optional
from parcel_backend.app.models.parcel_enums import DeliveryStatus
from parcel_backend.app.schemas.parcel import ParcelResponse


class RiderAssignment(BaseModel):
    """
    Rider reference for an assignment.

    Fields are optional at the schema level so that missing data is reported
    as a MissingRiderData rejection. camelCase aliases are accepted.
    """
    rider_id: Optional[int] = Field(None, alias="riderId")
    rider_name: Optional[str] = Field(None, alias="riderName")
    rider_email: Optional[str] = Field(None, alias="riderEmail")

    class Config:
        populate_by_name = True


class RiderAssignmentResponse(BaseModel):
    success: bool = True
    message: str
    parcel: ParcelResponse
    rider_synced: bool
    previous_rider_id: Optional[int] = None


class DeliveryToggle(BaseModel):
    """Optional explicit target; omitted means advance to the next status."""
    target: Optional[DeliveryStatus] = None


class DeliveryToggleResponse(BaseModel):
    success: bool = True
    message: str
    previous_status: DeliveryStatus
    new_status: DeliveryStatus
    changed: bool
    parcel: ParcelResponse


class CashoutResponse(BaseModel):
    message: str
    parcel: ParcelResponse


class CashoutAllResponse(BaseModel):
    message: str
    rider_email: str
    modified_count: int
