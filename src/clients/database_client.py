"""Relational database client for alarm persistence."""

import logging
from typing import List, Optional

import sqlalchemy
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from ..models.db_models import Alarm, utc_now

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Client owning the SQLAlchemy engine for the alarm database."""

    def __init__(self, database_url: str):
        """Initialize client with a database URL; the engine is created lazily."""
        self._engine: Optional[sqlalchemy.Engine] = None
        self._url = database_url

    @property
    def engine(self) -> sqlalchemy.Engine:
        """Get or create the engine, making sure the schema exists."""
        if self._engine is None:
            self._engine = self._create_engine()
            SQLModel.metadata.create_all(self._engine)
        return self._engine

    def _create_engine(self) -> sqlalchemy.Engine:
        if not self._url.startswith("sqlite"):
            return create_engine(self._url)

        # Route handlers run in a threadpool, so connections cross threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if self._url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(self._url, **kwargs)

    def reset_schema(self) -> None:
        """Drop and recreate the alarm table."""
        logger.warning("Resetting alarm database schema")
        SQLModel.metadata.drop_all(self.engine)
        SQLModel.metadata.create_all(self.engine)

    def health_check(self) -> bool:
        """Check if database connection is healthy."""
        try:
            with Session(self.engine) as session:
                session.exec(select(Alarm.id).limit(1)).first()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


class AlarmRepository:
    """Repository for alarm database operations.

    An ``owner`` of None disables credential filtering; otherwise every
    statement is additionally restricted to rows owned by that credential.
    """

    def __init__(self, db_client: DatabaseClient):
        """Initialize repository with a database client."""
        self.client = db_client

    @staticmethod
    def _owned(statement, owner: Optional[str]):
        if owner is not None:
            statement = statement.where(Alarm.api_key == owner)
        return statement

    def create_alarm(self, owner: Optional[str], sound_id: int, sound_name: str, alarm_time: str) -> Alarm:
        """Insert a new active alarm and return the stored row."""
        alarm = Alarm(
            api_key=owner,
            sound_id=sound_id,
            sound_name=sound_name,
            alarm_time=alarm_time,
            is_active=True
        )
        with Session(self.client.engine) as session:
            session.add(alarm)
            session.commit()
            session.refresh(alarm)

        logger.info(f"Created alarm {alarm.id} at {alarm.alarm_time}")
        return alarm

    def get_alarm(self, owner: Optional[str], alarm_id: int) -> Optional[Alarm]:
        """Retrieve a single alarm, or None if it is missing or foreign."""
        statement = self._owned(select(Alarm).where(Alarm.id == alarm_id), owner)
        with Session(self.client.engine) as session:
            return session.exec(statement).first()

    def list_alarms(self, owner: Optional[str]) -> List[Alarm]:
        """Retrieve alarms ordered by their stored alarm time."""
        statement = self._owned(select(Alarm), owner).order_by(Alarm.alarm_time, Alarm.id)
        with Session(self.client.engine) as session:
            return list(session.exec(statement).all())

    def list_active_at_time(self, owner: Optional[str], alarm_time: str) -> List[Alarm]:
        """Retrieve active alarms whose time string matches exactly."""
        statement = self._owned(
            select(Alarm).where(Alarm.alarm_time == alarm_time, Alarm.is_active == True),  # noqa: E712
            owner
        ).order_by(Alarm.id)
        with Session(self.client.engine) as session:
            return list(session.exec(statement).all())

    def update_alarm(self, owner: Optional[str], alarm_id: int, values: dict) -> Optional[Alarm]:
        """Apply ``values`` to an alarm and refresh its update timestamp.

        Returns:
            The stored row after the update, or None if no such row is visible.
        """
        statement = self._owned(select(Alarm).where(Alarm.id == alarm_id), owner)
        with Session(self.client.engine) as session:
            alarm = session.exec(statement).first()
            if alarm is None:
                return None

            for name, value in values.items():
                setattr(alarm, name, value)
            alarm.updated_at = utc_now()

            session.add(alarm)
            session.commit()
            session.refresh(alarm)

        logger.info(f"Updated alarm {alarm_id}: {sorted(values)}")
        return alarm

    def delete_alarm(self, owner: Optional[str], alarm_id: int) -> bool:
        """Delete an alarm; returns whether a row was removed."""
        statement = self._owned(select(Alarm).where(Alarm.id == alarm_id), owner)
        with Session(self.client.engine) as session:
            alarm = session.exec(statement).first()
            if alarm is None:
                logger.info(f"Alarm {alarm_id} not found for deletion")
                return False
            session.delete(alarm)
            session.commit()

        logger.info(f"Deleted alarm {alarm_id}")
        return True

    def count_alarms(self) -> int:
        with Session(self.client.engine) as session:
            return session.exec(select(func.count()).select_from(Alarm)).one()


class DatabaseManager:
    """High-level database manager that coordinates repositories."""

    def __init__(self, database_url: str):
        """Initialize database manager with client and repositories."""
        self.client = DatabaseClient(database_url)
        self.alarms = AlarmRepository(self.client)

    def health_check(self) -> bool:
        """Check overall database health."""
        return self.client.health_check()
