"""
Adapters layer - External integrations (database storage, email).
"""

from .email_notifier import LoggingNotifier, SmtpNotifier, build_notifier
from .memory_repository import InMemoryBookingRepository
from .sql_repository import SqlBookingRepository, build_engine

__all__ = [
    "InMemoryBookingRepository",
    "LoggingNotifier",
    "SmtpNotifier",
    "SqlBookingRepository",
    "build_engine",
    "build_notifier",
]
