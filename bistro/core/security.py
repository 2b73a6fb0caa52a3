"""
Access Tokens and Route Guards

Issues HS256 access tokens and provides the FastAPI dependencies that
protect routes:

    verify_token  - requires a valid bearer token (401 otherwise)
    verify_admin  - additionally requires the caller to be an admin (403)
    ensure_same_user - path email must belong to the caller (403)
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from bistro.core.config import Settings, get_settings
from bistro.core.exceptions import ForbiddenError, UnauthorizedError
from bistro.database import get_db
from bistro.models import Collection, UserRole
from bistro.schemas import TokenClaims

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(
    payload: dict[str, Any],
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign an access token for the given identity payload.

    Args:
        payload: Identity claims, at least an email
        settings: Provides the secret, algorithm and default lifetime
        expires_delta: Override of the configured lifetime

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {**payload, "iat": now, "exp": now + expires_delta}
    return jwt.encode(
        to_encode,
        settings.access_token_secret,
        algorithm=settings.access_token_algorithm,
    )


def decode_access_token(token: str, settings: Settings) -> TokenClaims:
    """
    Verify signature and expiry of a token and return its claims.

    Raises:
        UnauthorizedError: If the token is malformed, expired or has no email
    """
    try:
        data = jwt.decode(
            token,
            settings.access_token_secret,
            algorithms=[settings.access_token_algorithm],
        )
        return TokenClaims.model_validate(data)
    except (JWTError, ValidationError) as e:
        logger.warning(f"Rejected access token: {e}")
        raise UnauthorizedError()


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> TokenClaims:
    """Require a valid bearer token and expose its claims."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    return decode_access_token(credentials.credentials, settings)


async def verify_admin(
    claims: TokenClaims = Depends(verify_token),
    db=Depends(get_db),
) -> TokenClaims:
    """Require the token owner to be an admin user."""
    user = await db[Collection.USERS.value].find_one({"email": claims.email})
    if not user or user.get("role") != UserRole.ADMIN.value:
        logger.warning(f"Admin access denied for {claims.email}")
        raise ForbiddenError()
    return claims


def ensure_same_user(claims: TokenClaims, email: str) -> None:
    """Reject requests about another user's records."""
    if claims.email != email:
        logger.warning(f"{claims.email} tried to access records of {email}")
        raise ForbiddenError()
