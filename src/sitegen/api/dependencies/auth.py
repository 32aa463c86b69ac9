"""Authentication and tenant dependencies."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.sitegen.api.dependencies.db import DBEngine
from src.sitegen.core.db import get_session
from src.sitegen.core.logging import bind_user_context
from src.sitegen.core.security import Identity, decode_token, identity_from_payload
from src.sitegen.models import Tenant
from src.sitegen.repositories import TenantRepository


async def get_current_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """Validate the bearer token and return the caller identity."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
        )

    payload = decode_token(authorization[7:])
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    identity = identity_from_payload(payload)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    bind_user_context(identity.user_id, identity.tenant_id, identity.role)
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


async def get_validated_tenant(identity: CurrentIdentity, engine: DBEngine) -> Tenant:
    """Resolve the token's tenant and make sure it is active."""
    async with get_session(engine=engine) as session:
        tenant = await TenantRepository(session).get_by_id(identity.tenant_id)

    if tenant is None or not tenant.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant not found or inactive",
        )
    return tenant


ValidatedTenant = Annotated[Tenant, Depends(get_validated_tenant)]
