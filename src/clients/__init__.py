"""Client modules for external service integrations."""

from src.clients.database_client import (
    AlarmRepository,
    DatabaseClient,
    DatabaseManager
)

__all__ = [
    "AlarmRepository",
    "DatabaseClient",
    "DatabaseManager"
]
