"""
Rider Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from parcel_backend.app.models.enums import RiderApprovalStatus, RiderWorkStatus


class RiderApply(BaseModel):
    """Schema for a rider self-registration."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    region: Optional[str] = Field(None, max_length=100)
    district: str = Field(..., min_length=1, max_length=100)


class RiderResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]
    region: Optional[str]
    district: str
    status: RiderApprovalStatus
    rider_status: RiderWorkStatus
    created_at: datetime

    class Config:
        from_attributes = True


class RiderDecision(BaseModel):
    """Admin decision on an application; validated by the status guard."""
    status: str = Field(..., description="accepted or rejected")


class RiderDecisionResponse(BaseModel):
    rider: RiderResponse
    role_updated: bool
    message: str


class RiderReconcileResponse(BaseModel):
    rider_id: int
    rider_status: RiderWorkStatus
