"""Internal data models for the sound catalog and alarm API."""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass
class AlarmUpdate:
    """Optional field set for a partial alarm update.

    Fields left as None keep the value currently stored for the alarm.
    """

    sound_id: Optional[int] = None
    sound_name: Optional[str] = None
    alarm_time: Optional[str] = None
    is_active: Optional[bool] = None

    def supplied(self) -> Dict[str, Any]:
        """Return only the fields the caller actually supplied."""
        return {
            field.name: getattr(self, field.name)
            for field in fields(self)
            if getattr(self, field.name) is not None
        }


@dataclass
class CatalogQuery:
    """Search, filter and sort parameters for a catalog request."""

    search: Optional[str] = None
    filter: Optional[str] = None  # "author", "tag" or "date"
    author: Optional[str] = None
    tag: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    sort: Optional[str] = None  # "asc", anything else sorts descending
