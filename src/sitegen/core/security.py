"""Bearer token handling.

Tokens are issued by the external identity provider. We verify the
signature and expiry and read an opaque (user, tenant, role) identity.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from src.sitegen.core.config import get_settings


@dataclass(frozen=True)
class Identity:
    """Caller identity carried by an access token."""

    user_id: UUID
    tenant_id: UUID
    role: str = "member"


def create_access_token(
    subject: str | UUID,
    tenant_id: str | UUID,
    role: str = "member",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token (used by tests and local tooling)."""
    settings = get_settings()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(subject),
        "tenant_id": str(tenant_id),
        "role": role,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and verify a JWT. Returns None on any verification failure."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    return payload  # type: ignore[no-any-return]


def identity_from_payload(payload: dict[str, Any]) -> Identity | None:
    """Build an Identity from decoded claims. Returns None if claims are malformed."""
    if payload.get("type") != "access":
        return None
    try:
        user_id = UUID(str(payload.get("sub", "")))
        tenant_id = UUID(str(payload.get("tenant_id", "")))
    except ValueError:
        return None
    return Identity(user_id=user_id, tenant_id=tenant_id, role=str(payload.get("role", "member")))
