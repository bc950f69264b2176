"""
Audit logging service for admin decisions and money-moving transitions.

Provides centralized logging for compliance and payout disputes.
"""

import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from parcel_backend.app.models.audit_log import AuditLog

logger = logging.getLogger("parcel_backend.audit")


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    USER_CREATED = "USER_CREATED"
    ROLE_CHANGED = "ROLE_CHANGED"

    RIDER_APPLIED = "RIDER_APPLIED"
    RIDER_ACCEPTED = "RIDER_ACCEPTED"
    RIDER_REJECTED = "RIDER_REJECTED"
    RIDER_STATUS_RECONCILED = "RIDER_STATUS_RECONCILED"

    PARCEL_CREATED = "PARCEL_CREATED"
    PARCEL_DELETED = "PARCEL_DELETED"
    RIDER_ASSIGNED = "RIDER_ASSIGNED"
    DELIVERY_TOGGLED = "DELIVERY_TOGGLED"
    PARCEL_CASHED_OUT = "PARCEL_CASHED_OUT"
    RIDER_CASHED_OUT_ALL = "RIDER_CASHED_OUT_ALL"

    PAYMENT_RECORDED = "PAYMENT_RECORDED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_email: Optional[str] = None,
    target: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    commit: bool = True
) -> AuditLog:
    """
    Log an event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_email: Email of the user performing the action
        target: Reference of the record acted upon, e.g. "parcel:12"
        metadata: Additional context as JSON
        commit: Commit immediately; pass False to join the caller's transaction

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_email=actor_email,
        action=action,
        target=target,
        meta_data=metadata
    )

    db.add(audit_log)
    if commit:
        await db.commit()
        await db.refresh(audit_log)
    logger.info("%s by %s on %s", action, actor_email or "system", target)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    target: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, newest first.
    """
    query = select(AuditLog)

    if target:
        query = query.where(AuditLog.target == target)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
