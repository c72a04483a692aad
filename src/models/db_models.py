"""Database models for alarm persistence.

This module defines the SQLModel table backing the alarm store.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Current UTC time used for server-assigned timestamps."""
    return datetime.now(timezone.utc)


class Alarm(SQLModel, table=True):
    """Database model for a scheduled alarm.

    Attributes:
        id: Auto-incrementing primary key, immutable once assigned.
        api_key: Owning credential; None when credential scoping is disabled.
        sound_id: Catalog identifier of the sound to play.
        sound_name: Display name of the sound to play.
        alarm_time: Caller-defined time string, stored verbatim.
        is_active: Whether the alarm should fire.
        created_at: Server-assigned creation timestamp.
        updated_at: Server-assigned timestamp refreshed on every mutation.
    """

    __tablename__ = "alarms"

    id: Optional[int] = Field(default=None, primary_key=True)
    api_key: Optional[str] = Field(default=None, index=True)
    sound_id: int
    sound_name: str
    alarm_time: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
