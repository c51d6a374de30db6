# backend/drivebook/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import admin_instructors, appointments, instructors, profiles, slots, uploads

__all__ = [
    "admin_instructors",
    "appointments",
    "instructors",
    "profiles",
    "slots",
    "uploads",
]
