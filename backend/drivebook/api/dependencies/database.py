# backend/drivebook/api/dependencies/database.py
"""Request-scoped database session."""

from typing import Generator

from sqlalchemy.orm import Session

from ...database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Open a session for one request and close it afterwards.

    Services commit their own work inside ``BaseService.transaction()``;
    closing discards anything a failed request left pending.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
