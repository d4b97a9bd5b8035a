"""ORM models for formflow_db."""

from formflow_db.models.application import Application
from formflow_db.models.base import Base
from formflow_db.models.enums import ApplicationStatus

__all__ = ["Application", "ApplicationStatus", "Base"]
