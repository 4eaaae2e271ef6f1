"""
FastAPI dependencies.
"""

from datetime import date
from typing import Generator
from sqlalchemy.orm import Session
from app.database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped session; services commit their own unit of work.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_today() -> date:
    """Reference date for auto-realize and default windows. Overridden in tests."""
    return date.today()
