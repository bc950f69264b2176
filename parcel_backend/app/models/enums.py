"""
User and rider enumerations.

Defines the role types and the rider workflow states.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        USER: Default role, books and pays for parcels
        ADMIN: Manages users, riders and assignments
        RIDER: Approved courier who transports parcels
    """
    USER = "user"
    ADMIN = "admin"
    RIDER = "rider"


class RiderApprovalStatus(str, enum.Enum):
    """
    Rider application status.

    Flow:
        PENDING → ACCEPTED | REJECTED
    """
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RiderWorkStatus(str, enum.Enum):
    """Live work state cached on the rider record."""
    AVAILABLE = "available"
    RIDER_ASSIGNED = "rider_assigned"
