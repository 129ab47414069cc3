"""Session endpoints - POST /api/login, POST /api/logout, GET /api/me."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from docgate.app.api.auth import get_optional_principal
from docgate.app.errors import Unauthenticated
from docgate.app.models.auth import Principal, Role
from docgate.app.models.common import ApiModel
from docgate.app.services import GatewayServices, get_services
from docgate.app.utils.metrics import record_login

router = APIRouter(prefix="/api", tags=["auth"])
logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    """Request body for POST /api/login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserOut(ApiModel):
    """Public view of a principal."""

    username: str
    role: Role


class LoginResponse(ApiModel):
    """Response for POST /api/login."""

    success: bool = True
    user: UserOut


class LogoutResponse(ApiModel):
    """Response for POST /api/logout."""

    success: bool = True
    message: str


class MeResponse(ApiModel):
    """Response for GET /api/me."""

    success: bool = True
    authenticated: bool
    user: UserOut | None = None


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    services: Annotated[GatewayServices, Depends(get_services)],
) -> LoginResponse:
    """Check credentials and set the session cookie.

    Raises:
        Unauthenticated: 401 on unknown user or wrong password (no cookie set)
    """
    principal = await run_in_threadpool(
        services.credentials.authenticate, request.username, request.password
    )
    if principal is None:
        record_login("rejected")
        logger.info(f"Rejected login for {request.username!r}")
        raise Unauthenticated("Invalid credentials")

    settings = services.settings
    response.set_cookie(
        settings.session_cookie_name,
        services.tokens.issue(principal),
        max_age=settings.session_max_age_ms // 1000,
        httponly=True,
        samesite="strict",
        secure=settings.cookie_secure,
    )
    record_login("success")
    logger.info(f"User {principal.username!r} logged in")
    return LoginResponse(user=UserOut(username=principal.username, role=principal.role))


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    services: Annotated[GatewayServices, Depends(get_services)],
) -> LogoutResponse:
    """Clear the session cookie.

    Tokens are self-contained, so this cannot revoke a copy the client kept.
    """
    settings = services.settings
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        samesite="strict",
        secure=settings.cookie_secure,
    )
    return LogoutResponse(message="Logged out")


@router.get("/me", response_model=MeResponse)
async def me(
    principal: Annotated[Principal | None, Depends(get_optional_principal)],
) -> MeResponse:
    """Report the current session without ever failing."""
    if principal is None:
        return MeResponse(authenticated=False, user=None)
    return MeResponse(
        authenticated=True, user=UserOut(username=principal.username, role=principal.role)
    )
