"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from parcel_backend.app.api.v1.endpoints import (
    users, riders, parcels, parcel_lifecycle, rider_account,
    tracking, payments
)

router = APIRouter()

# Accounts
router.include_router(users.router)
router.include_router(riders.router)

# Parcels; the static /parcels/rider route is registered before /parcels/{parcel_id}
router.include_router(parcels.router)
router.include_router(parcel_lifecycle.router)
router.include_router(rider_account.router)

router.include_router(tracking.router)
router.include_router(payments.router)
