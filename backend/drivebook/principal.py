"""Caller abstractions for authenticated requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.enums import RoleName


@dataclass(frozen=True)
class Identity:
    """
    Verified identity taken from a bearer token.

    Carries no role: a token proves who the caller is, the profile says what
    they may do.
    """

    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller with the role read from their profile."""

    id: str
    role: RoleName
    email: str
