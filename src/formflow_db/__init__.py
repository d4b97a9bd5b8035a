"""formflow_db: PostgreSQL persistence layer for form applications.

This package provides the ORM model, async engine factory, repository and
a database-backed ``PersistenceAdapter`` for storing application answers.
It is consumed by the FastAPI server and by hosts that run the SDK next
to the database.
"""

from formflow_db.models.application import Application
from formflow_db.models.enums import ApplicationStatus
from formflow_db.engine import dispose_engine, get_engine, get_session_factory
from formflow_db.repository import ApplicationRepository

__all__ = [
    "Application",
    "ApplicationStatus",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "ApplicationRepository",
]
