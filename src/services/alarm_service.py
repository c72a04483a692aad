"""
Alarm service for per-credential alarm scheduling.

This module provides the business rules on top of the alarm repository:
- Credential validation before every operation when scoping is enabled
- Isolation of alarms by owning credential
- Merge-over-current semantics for partial updates
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.clients.database_client import DatabaseManager
from src.models.db_models import Alarm
from src.models.internal_models import AlarmUpdate
from src.observability import record_alarm_operation, trace_function
from src.services.key_validator import KeyValidator

logger = logging.getLogger(__name__)


class AlarmServiceError(Exception):
    """Base exception for alarm service errors."""
    pass


class UnauthorizedError(AlarmServiceError):
    """Raised when the presented credential is missing or not allowed."""
    pass


class AlarmNotFoundError(AlarmServiceError):
    """Raised when an alarm does not exist or belongs to another credential."""
    pass


class AlarmStoreError(AlarmServiceError):
    """Raised when a write against the alarm table fails."""
    pass


class AlarmService:
    """
    Alarm CRUD operations, optionally scoped by the owning credential.

    With scoping enabled every call must present a valid credential, and rows
    owned by another credential are indistinguishable from missing rows. With
    scoping disabled the credential is ignored and all rows are shared.
    """

    def __init__(self, db_manager: DatabaseManager, key_validator: KeyValidator, scoped: bool = True):
        """
        Initialize alarm service.

        Args:
            db_manager: Database manager owning the alarm repository
            key_validator: Allow-list used to authorize credentials
            scoped: Whether alarms are isolated per credential
        """
        self.db = db_manager
        self.key_validator = key_validator
        self.scoped = scoped

        logger.info(f"Alarm service initialized with credential scoping {'enabled' if scoped else 'disabled'}")

    def _owner(self, credential: Optional[str]) -> Optional[str]:
        if not self.scoped:
            return None
        if not self.key_validator.is_valid(credential):
            raise UnauthorizedError("Invalid API key")
        return credential

    @trace_function("alarm_create")
    def create(self, credential: Optional[str], sound_id: int, sound_name: str, alarm_time: str) -> Alarm:
        """
        Create a new active alarm.

        Raises:
            UnauthorizedError: If scoping is enabled and the credential is invalid
            AlarmStoreError: If the insert fails
        """
        owner = self._owner(credential)
        try:
            alarm = self.db.alarms.create_alarm(owner, sound_id, sound_name, alarm_time)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store alarm for sound {sound_id}: {e}")
            raise AlarmStoreError(f"Failed to create alarm: {e}")

        record_alarm_operation("create")
        return alarm

    def get_by_id(self, credential: Optional[str], alarm_id: int) -> Optional[Alarm]:
        """Return the alarm, or None if it is missing or not owned by the caller."""
        owner = self._owner(credential)
        return self.db.alarms.get_alarm(owner, alarm_id)

    def list(self, credential: Optional[str]) -> List[Alarm]:
        """Return the caller's alarms ordered by alarm time (string order)."""
        owner = self._owner(credential)
        return self.db.alarms.list_alarms(owner)

    @trace_function("alarm_update")
    def update(self, credential: Optional[str], alarm_id: int, changes: AlarmUpdate) -> Alarm:
        """
        Merge the supplied fields over the stored alarm.

        Fields left unset in ``changes`` keep their current value; the update
        timestamp is refreshed even when nothing else changes.

        Raises:
            UnauthorizedError: If scoping is enabled and the credential is invalid
            AlarmNotFoundError: If the alarm is missing or foreign
            AlarmStoreError: If the update fails
        """
        owner = self._owner(credential)
        try:
            alarm = self.db.alarms.update_alarm(owner, alarm_id, changes.supplied())
        except SQLAlchemyError as e:
            logger.error(f"Failed to update alarm {alarm_id}: {e}")
            raise AlarmStoreError(f"Failed to update alarm: {e}")

        if alarm is None:
            raise AlarmNotFoundError(f"Alarm {alarm_id} not found")

        record_alarm_operation("update")
        return alarm

    @trace_function("alarm_toggle")
    def toggle(self, credential: Optional[str], alarm_id: int) -> Alarm:
        """
        Flip the active flag of an alarm.

        Raises:
            UnauthorizedError: If scoping is enabled and the credential is invalid
            AlarmNotFoundError: If the alarm is missing or foreign
        """
        current = self.get_by_id(credential, alarm_id)
        if current is None:
            raise AlarmNotFoundError(f"Alarm {alarm_id} not found")

        return self.update(credential, alarm_id, AlarmUpdate(is_active=not current.is_active))

    @trace_function("alarm_delete")
    def delete(self, credential: Optional[str], alarm_id: int) -> None:
        """Delete an alarm; missing or foreign alarms are silently ignored."""
        owner = self._owner(credential)
        try:
            deleted = self.db.alarms.delete_alarm(owner, alarm_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete alarm {alarm_id}: {e}")
            raise AlarmStoreError(f"Failed to delete alarm: {e}")

        if deleted:
            record_alarm_operation("delete")

    def list_active_at_time(self, credential: Optional[str], alarm_time: str) -> List[Alarm]:
        """Return the caller's active alarms whose time string equals ``alarm_time``."""
        owner = self._owner(credential)
        return self.db.alarms.list_active_at_time(owner, alarm_time)
