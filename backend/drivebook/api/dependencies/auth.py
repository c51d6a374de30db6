# backend/drivebook/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The bearer token proves identity only. The caller's role is re-read from
their profile on every request, so a role can never be smuggled in through
token claims or request bodies.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ...auth import identity_from_token
from ...core.enums import RoleName
from ...core.exceptions import DomainException, ForbiddenException
from ...principal import CallerContext, Identity
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message, "code": "UNAUTHENTICATED", "details": {}},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """Verified identity from the ``Authorization: Bearer`` header."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    try:
        return identity_from_token(credentials.credentials)
    except DomainException as exc:
        raise _unauthorized(exc.message)


def get_current_caller(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> CallerContext:
    """Identity plus the role stored on the caller's profile."""
    profile = RepositoryFactory.create_profile_repository(db).get_by_id(
        identity.id, load_relationships=False
    )
    if profile is None:
        raise ForbiddenException(
            "Complete your profile registration first", code="PROFILE_NOT_REGISTERED"
        ).to_http_exception()
    return CallerContext(id=profile.id, role=RoleName(profile.role), email=profile.email)


def require_role(*roles: RoleName) -> Callable[..., CallerContext]:
    """
    Create a dependency that requires one of ``roles``.

    Usage:
        @router.get("/admin/...", dependencies=[Depends(require_role(RoleName.ADMIN))])
    """

    def role_checker(caller: CallerContext = Depends(get_current_caller)) -> CallerContext:
        if caller.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": "You do not have the role required for this action",
                    "code": "ROLE_REQUIRED",
                    "details": {"required_roles": [role.value for role in roles]},
                },
            )
        return caller

    return role_checker
