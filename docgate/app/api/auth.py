"""Cookie-carried session authentication.

Two tiers built on ``TokenAuthority``: ``require_authenticated`` (any valid
session) and ``require_admin`` (valid session with the admin role). Every
request is evaluated on its own; there is no server-side session state.
"""

from typing import Annotated

from fastapi import Depends, Request

from docgate.app.auth.tokens import ExpiredToken, TokenError
from docgate.app.errors import Forbidden, Unauthenticated
from docgate.app.models.auth import Principal
from docgate.app.services import GatewayServices, get_services


def principal_from_request(request: Request, services: GatewayServices) -> Principal:
    """Validate the session cookie and attach the principal to the request.

    Raises:
        Unauthenticated: No cookie, or the token is malformed or expired
    """
    token = request.cookies.get(services.settings.session_cookie_name)
    if not token:
        raise Unauthenticated("Not authenticated")

    try:
        principal = services.tokens.validate(token)
    except ExpiredToken as e:
        raise Unauthenticated("Session expired") from e
    except TokenError as e:
        raise Unauthenticated("Invalid session") from e

    request.state.principal = principal
    return principal


async def get_optional_principal(
    request: Request,
    services: Annotated[GatewayServices, Depends(get_services)],
) -> Principal | None:
    """Principal for the request, or None when there is no valid session."""
    try:
        return principal_from_request(request, services)
    except Unauthenticated:
        return None


async def require_authenticated(
    request: Request,
    services: Annotated[GatewayServices, Depends(get_services)],
) -> Principal:
    """Require any valid session.

    Raises:
        Unauthenticated: 401 when the session is missing or invalid
    """
    return principal_from_request(request, services)


async def require_admin(
    principal: Annotated[Principal, Depends(require_authenticated)],
) -> Principal:
    """Require a valid session with the admin role.

    Raises:
        Unauthenticated: 401 when the session is missing or invalid
        Forbidden: 403 when the principal is not an admin
    """
    if not principal.is_admin:
        raise Forbidden("Administrator access required")
    return principal
