"""
Parcel lifecycle enumerations.
"""

import enum


class DeliveryStatus(str, enum.Enum):
    """
    Parcel delivery status.

    Status flow:
        CREATED → IN_TRANSIT → DELIVERED
        DELIVERED → IN_TRANSIT only as an explicit correction
    """
    CREATED = "created"
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class CashoutStatus(str, enum.Enum):
    """
    Rider payout status for a parcel.

    CASHED_OUT is terminal. Legacy rows may hold NULL, treated as NOT_CASHED.
    """
    NOT_CASHED = "not_cashed"
    CASHED_OUT = "cashed_out"


class ParcelRiderStatus(str, enum.Enum):
    UNASSIGNED = "unassigned"
    RIDER_ASSIGNED = "rider_assigned"
