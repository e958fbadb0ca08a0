"""JWT authentication for FastAPI.

Validates Bearer tokens from the Authorization header and extracts the user
and tenant claims. Token issuance lives in the identity service, not here.
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from stockflow.config import settings
from stockflow.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """The user extracted from a JWT token. ``tenant_id`` is None for tokens
    issued before the user picked a tenant."""

    id: uuid.UUID
    email: str
    tenant_id: uuid.UUID | None
    role: str = "EMPLOYEE"


def _decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


def user_from_claims(payload: dict) -> AuthenticatedUser:
    try:
        tenant_claim = payload.get("tenant_id")
        return AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            email=payload.get("email", ""),
            tenant_id=uuid.UUID(tenant_claim) if tenant_claim else None,
            role=payload.get("role", "EMPLOYEE"),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing required claims") from exc


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser | None:
    """Return the token's user, None without a token, 401 for a bad token."""
    if credentials is None:
        return None

    user = user_from_claims(_decode_token(credentials.credentials))
    request.state.user = user
    return user
