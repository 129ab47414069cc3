"""Self-contained, time-bounded session tokens.

A token is the signed encoding of ``{username, role, iat}`` where ``iat`` is the
issue time in epoch milliseconds. Nothing is stored server-side: validity is a
function of the token and the current time only, so logout cannot revoke a
token, it can only ask the client to drop it.
"""

import time
from collections.abc import Callable
from typing import Any

from itsdangerous import BadData, URLSafeSerializer
from pydantic import ValidationError as PydanticValidationError

from docgate.app.models.auth import Principal

SESSION_SALT = "docgate-session"
DEFAULT_MAX_AGE_MS = 7 * 24 * 60 * 60 * 1000


class TokenError(Exception):
    """Token could not be accepted."""

    pass


class MalformedToken(TokenError):
    """Token signature, encoding or payload is invalid."""

    pass


class ExpiredToken(TokenError):
    """Token is older than the session lifetime."""

    pass


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class TokenAuthority:
    """Issues and validates signed session tokens."""

    def __init__(
        self,
        secret: str,
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize token authority.

        Args:
            secret: HMAC signing secret
            max_age_ms: Token lifetime; a token aged exactly this much is expired
            clock: Injectable epoch-milliseconds clock (default: wall clock)
        """
        if not secret:
            raise ValueError("session secret must not be empty")
        self._serializer = URLSafeSerializer(secret, salt=SESSION_SALT)
        self.max_age_ms = max_age_ms
        self._clock = clock or now_ms

    def issue(self, principal: Principal) -> str:
        """Encode the principal and the current time into a signed token."""
        payload = {
            "username": principal.username,
            "role": principal.role.value,
            "iat": self._clock(),
        }
        token: str = self._serializer.dumps(payload)
        return token

    def validate(self, token: str) -> Principal:
        """Decode a token and return the embedded principal.

        Raises:
            MalformedToken: Signature, encoding or payload is invalid
            ExpiredToken: ``now - iat >= max_age_ms``
        """
        try:
            payload: Any = self._serializer.loads(token)
        except BadData as e:
            raise MalformedToken("invalid session token") from e

        if not isinstance(payload, dict):
            raise MalformedToken("invalid session token payload")

        issued_at = payload.get("iat")
        if not isinstance(issued_at, int) or isinstance(issued_at, bool):
            raise MalformedToken("session token has no issue time")

        try:
            principal = Principal(username=payload.get("username"), role=payload.get("role"))
        except PydanticValidationError as e:
            raise MalformedToken("session token has an invalid principal") from e

        if self._clock() - issued_at >= self.max_age_ms:
            raise ExpiredToken("session expired")

        return principal
