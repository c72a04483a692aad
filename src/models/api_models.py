"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .db_models import Alarm


class SoundMetadata(BaseModel):
    """Metadata parsed from a sound's description file."""

    description: str
    tags: List[str]
    author: str
    lastUpdated: str
    details: str
    publishDate: str


class AudioReference(BaseModel):
    """Location and format of a sound's audio file."""

    url: str
    format: str
    duration: Optional[int] = None


class CoverDimensions(BaseModel):
    """Pixel dimensions of a cover image."""

    width: int = 0
    height: int = 0


class CoverReference(BaseModel):
    """Location, format and size of a sound's cover image."""

    url: str
    format: str
    dimensions: Optional[CoverDimensions] = None


class SoundStatistics(BaseModel):
    """Placeholder popularity statistics for a sound."""

    plays: int
    favorites: int
    downloads: int


class Sound(BaseModel):
    """A catalog entry derived from the assets directory."""

    id: int = Field(..., ge=1, description="Position in the current scan (1-based, not stable)")
    name: str
    metadata: SoundMetadata
    audio: AudioReference
    cover: CoverReference
    statistics: SoundStatistics
    relatedSounds: Optional[List[int]] = None


class AlarmCreateRequest(BaseModel):
    """Request model for alarm creation."""

    soundId: int = Field(..., description="Catalog identifier of the sound")
    soundName: str = Field(..., min_length=1, description="Display name of the sound")
    alarmTime: str = Field(..., min_length=1, description="Alarm time, stored verbatim")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "soundId": 1,
                "soundName": "Rain",
                "alarmTime": "07:00"
            }
        }
    )


class AlarmUpdateRequest(BaseModel):
    """Request model for a partial alarm update; omitted fields are kept."""

    soundId: Optional[int] = None
    soundName: Optional[str] = None
    alarmTime: Optional[str] = None
    isActive: Optional[bool] = None

    @field_validator('soundName', 'alarmTime')
    @classmethod
    def validate_not_blank(cls, v):
        if v is not None and not v:
            raise ValueError('Value must not be empty')
        return v


class AlarmResponse(BaseModel):
    """Response model for a stored alarm."""

    id: int
    apiKey: Optional[str] = None
    soundId: int
    soundName: str
    alarmTime: str
    isActive: bool
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_alarm(cls, alarm: Alarm) -> "AlarmResponse":
        return cls(
            id=alarm.id,
            apiKey=alarm.api_key,
            soundId=alarm.sound_id,
            soundName=alarm.sound_name,
            alarmTime=alarm.alarm_time,
            isActive=alarm.is_active,
            createdAt=alarm.created_at,
            updatedAt=alarm.updated_at,
        )


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class KeyValidationResponse(BaseModel):
    """Response model for the credential check endpoint."""

    valid: bool
    message: str


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Service health status")
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Service version")
    alarm_count: Optional[int] = Field(None, description="Stored alarms, absent when the database is unreachable")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type or category")
    message: str = Field(..., description="Human-readable error message")
    correlation_id: str = Field(..., description="Request correlation ID for tracing")
    timestamp: datetime = Field(..., description="Error timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "NotFound",
                "message": "Alarm not found",
                "correlation_id": "req_123456789",
                "timestamp": "2024-01-01T12:00:00Z"
            }
        }
    )
