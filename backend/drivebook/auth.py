# backend/drivebook/auth.py
"""
Access token handling.

Tokens are issued by the external identity provider and signed with the
shared secret; this service only verifies them. ``create_access_token``
exists for local development and the test suite.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.exceptions import UnauthorizedException
from .principal import Identity

logger = logging.getLogger(__name__)


def _secret_value() -> str:
    return settings.jwt_secret.get_secret_value()


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode a JWT access token, verifying the audience only when one is configured."""
    if settings.jwt_audience:
        payload_raw = jwt.decode(
            token,
            _secret_value(),
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    else:
        payload_raw = jwt.decode(
            token,
            _secret_value(),
            algorithms=[settings.jwt_algorithm],
            options={"verify_aud": False},
        )
    return cast(Dict[str, Any], payload_raw)


def identity_from_token(token: str) -> Identity:
    """
    Verify ``token`` and return the identity it carries.

    Raises:
        UnauthorizedException: If the token is invalid, expired or has no subject
    """
    try:
        payload = decode_access_token(token)
    except PyJWTError as exc:
        logger.info("Rejected access token: %s", exc)
        raise UnauthorizedException("Invalid or expired access token", code="INVALID_TOKEN")

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise UnauthorizedException("Access token has no subject", code="INVALID_TOKEN")
    email = payload.get("email")
    return Identity(id=subject, email=email if isinstance(email, str) else None)


def create_access_token(
    subject: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token for ``subject``.

    Args:
        subject: Profile id placed in the ``sub`` claim
        email: Optional email claim
        expires_delta: Optional expiration time delta
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode: Dict[str, Any] = {"sub": subject, "exp": expire}
    if email:
        to_encode["email"] = email
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience

    return cast(
        str,
        jwt.encode(to_encode, _secret_value(), algorithm=settings.jwt_algorithm),
    )
