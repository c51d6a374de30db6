"""Small helpers shared by the test modules."""

from datetime import datetime, timezone

import ulid

from drivebook.core.enums import RoleName
from drivebook.models.profile import Profile
from drivebook.principal import CallerContext


def new_id() -> str:
    return str(ulid.ULID())


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def caller_for(profile: Profile) -> CallerContext:
    return CallerContext(id=profile.id, role=RoleName(profile.role), email=profile.email)
