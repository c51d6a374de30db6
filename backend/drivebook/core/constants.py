"""Application-wide constants for the DriveBook platform."""

from __future__ import annotations

BRAND_NAME = "DriveBook"

API_TITLE = f"{BRAND_NAME} API"
API_VERSION = "1.0.0"
API_DESCRIPTION = (
    "Marketplace connecting driving-lesson students with independent instructors. "
    "Instructors publish slots, students book them, admins verify instructor documents."
)
API_PREFIX = "/api/v1"

# Text constraints
MAX_NOTES_LENGTH = 1000
MAX_BIO_LENGTH = 1000
MAX_NAME_LENGTH = 120
MAX_ADDRESS_LENGTH = 255

# Timeline condensing (instructor "today" view)
TIMELINE_MAX_ITEMS = 10
TIMELINE_RECENT_COMPLETED = 3
TIMELINE_UPCOMING = 6
TIMELINE_RECENT_CANCELLED = 1
STUDENT_TIMELINE_LIMIT = 10

# Document uploads
ALLOWED_IMAGE_FORMATS = {"JPEG": "jpg", "PNG": "png", "WEBP": "webp"}
IMAGE_CONTENT_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"
