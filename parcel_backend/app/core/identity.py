"""
Identity token utilities.

ID tokens are issued by the upstream identity provider; this module verifies
them and extracts the verified email. `create_identity_token` mints tokens
with the same signing settings for local development and tests.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from parcel_backend.app.core.config import settings
from parcel_backend.app.models.enums import UserRole


@dataclass(frozen=True)
class Identity:
    """Verified identity extracted from an ID token."""
    email: str
    verified: bool
    subject: Optional[str] = None


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller with the role resolved from the users table."""
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def create_identity_token(
    email: str,
    verified: bool = True,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None
) -> str:
    """
    Create a signed ID token.

    Example payload:
        {
            "sub": "uid-123",
            "email": "rider@mail.com",
            "email_verified": true,
            "exp": 1234567890
        }
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.identity_token_expire_minutes)
    )
    to_encode: Dict[str, Any] = {
        "sub": email,
        "email": email,
        "email_verified": verified,
        "exp": expire,
    }
    if settings.identity_audience:
        to_encode["aud"] = settings.identity_audience
    if settings.identity_issuer:
        to_encode["iss"] = settings.identity_issuer
    to_encode.update(extra_claims or {})

    return jwt.encode(to_encode, settings.identity_secret_key, algorithm=settings.identity_algorithm)


def verify_identity_token(token: str) -> Optional[Identity]:
    """
    Decode and validate an ID token.

    Args:
        token: Bearer token string

    Returns:
        Identity with the token's email if valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.identity_secret_key,
            algorithms=[settings.identity_algorithm],
            audience=settings.identity_audience,
            issuer=settings.identity_issuer,
            options={"verify_aud": settings.identity_audience is not None},
        )
    except JWTError:
        return None

    email = payload.get("email")
    if not email:
        return None

    return Identity(
        email=email.strip().lower(),
        verified=bool(payload.get("email_verified", False)),
        subject=payload.get("sub"),
    )
