"""Actor authentication helper.

The identity provider sits in front of this API and forwards the
authenticated user as headers:

- X-Actor-Id: user identifier (required)
- X-Actor-Role: SUPER_ADMIN, OWNER or STAFF (required)

Permissions are resolved from the role by the access gate; this module
only turns the headers into an Actor and records request origin for the
audit log.
"""

from typing import Annotated

import structlog
from fastapi import Header, HTTPException, Request, status

from src.domain.models.actor import Actor, Role

logger = structlog.get_logger(__name__)

KNOWN_ROLES = {role.value for role in Role}


def get_actor(
    request: Request,
    x_actor_id: Annotated[
        str | None,
        Header(description="Authenticated user id forwarded by the identity provider."),
    ] = None,
    x_actor_role: Annotated[
        str | None,
        Header(description="Console role: SUPER_ADMIN, OWNER or STAFF."),
    ] = None,
    user_agent: Annotated[str | None, Header()] = None,
) -> Actor:
    """Extract the acting user from headers.

    Raises:
        HTTPException 401: If the id or role header is missing.
        HTTPException 403: If the role is not a console role.
    """
    log = logger.bind(component="actor_auth")
    request_ip = request.client.host if request.client else None

    if not x_actor_id or not x_actor_id.strip():
        log.warning("auth_failed", reason="missing_actor_id", request_ip=request_ip)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id header is required",
        )

    if not x_actor_role:
        log.warning(
            "auth_failed",
            reason="missing_role",
            actor_id=x_actor_id,
            request_ip=request_ip,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Role header is required",
        )

    role_name = x_actor_role.strip().upper()
    if role_name not in KNOWN_ROLES:
        log.warning(
            "authz_failed",
            reason="unknown_role",
            actor_id=x_actor_id,
            provided_role=x_actor_role,
            request_ip=request_ip,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role: {x_actor_role}. "
            f"Allowed roles: {', '.join(sorted(KNOWN_ROLES))}",
        )

    return Actor(
        id=x_actor_id.strip(),
        role=Role(role_name),
        ip_address=request_ip,
        user_agent=user_agent,
    )
