"""Database models and session management.

This package contains the SQLAlchemy ORM models of the local response store
and database utilities.
"""

from survey_insights.models.database import Base, engine, SessionLocal, get_db, init_db
from survey_insights.models.stored_response import StoredResponse

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "StoredResponse",
]
