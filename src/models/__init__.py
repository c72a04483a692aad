"""Data models for the sound catalog and alarm API."""

from .api_models import (
    AlarmCreateRequest,
    AlarmResponse,
    AlarmUpdateRequest,
    AudioReference,
    CoverDimensions,
    CoverReference,
    ErrorResponse,
    HealthResponse,
    KeyValidationResponse,
    MessageResponse,
    Sound,
    SoundMetadata,
    SoundStatistics
)
from .db_models import Alarm
from .internal_models import (
    AlarmUpdate,
    CatalogQuery
)

__all__ = [
    "Alarm",
    "AlarmCreateRequest",
    "AlarmResponse",
    "AlarmUpdate",
    "AlarmUpdateRequest",
    "AudioReference",
    "CatalogQuery",
    "CoverDimensions",
    "CoverReference",
    "ErrorResponse",
    "HealthResponse",
    "KeyValidationResponse",
    "MessageResponse",
    "Sound",
    "SoundMetadata",
    "SoundStatistics"
]
