"""
Request authentication.

Users authenticate with a Supabase JWT; its `sub` claim is the subject id
every entitlement is keyed by. The payment gateway authenticates its
webhook calls with a shared secret instead.
"""

import hmac
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from shared.config import get_settings
from shared.exceptions import AuthenticationError
from shared.models import AuthenticatedUser
from ..models.token import TokenPayload

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


class AuthError(AuthenticationError):
    """A request carried no usable credentials."""

    def __init__(self, message: str, code: str):
        super().__init__(message, code=code)


def decode_token(token: str) -> TokenPayload:
    """
    Decode and validate a Supabase JWT token.

    Args:
        token: The JWT token string

    Returns:
        TokenPayload with decoded claims

    Raises:
        AuthError: If the token is invalid, expired, or cannot be checked
    """
    settings = get_settings()

    if not settings.supabase_jwt_secret:
        raise AuthError("Server authentication not configured", code="AUTH_NOT_CONFIGURED")

    try:
        claims = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience="authenticated",
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired", code="TOKEN_EXPIRED")
    except JWTError as e:
        raise AuthError(f"Invalid token: {e}", code="TOKEN_INVALID")

    if not claims.get("sub"):
        raise AuthError("Invalid token: no subject", code="TOKEN_INVALID")
    return TokenPayload(**claims)


def get_user_from_payload(payload: TokenPayload) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=payload.sub,
        email=payload.email,
        email_verified=payload.email_confirmed_at is not None,
        last_sign_in=datetime.fromtimestamp(payload.iat, tz=timezone.utc),
        role=payload.role if payload.role != "authenticated" else "user",
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """
    Dependency that requires a signed-in user.

    Usage:
        @router.get("/status")
        async def status(user: AuthenticatedUser = Depends(get_current_user)):
            return service.get_status(user.id)
    """
    if credentials is None:
        raise AuthError("Missing authorization header", code="TOKEN_MISSING")

    return get_user_from_payload(decode_token(credentials.credentials))


def verify_webhook_secret(x_webhook_secret: Optional[str] = Header(default=None)) -> None:
    """Dependency that rejects webhook calls without the shared secret."""
    expected = get_settings().payment_webhook_secret
    if not expected or not x_webhook_secret or not hmac.compare_digest(expected, x_webhook_secret):
        raise AuthenticationError("Invalid webhook signature", code="INVALID_WEBHOOK_SECRET")


# Type alias for cleaner route definitions
RequireAuth = Depends(get_current_user)
