"""
Alarm API endpoints for per-credential alarm scheduling.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_alarm_service, get_credential
from src.api.errors import correlation_id_for, create_error_response
from src.models.api_models import (
    AlarmCreateRequest,
    AlarmResponse,
    AlarmUpdateRequest,
    ErrorResponse,
    MessageResponse
)
from src.models.internal_models import AlarmUpdate
from src.services.alarm_service import (
    AlarmNotFoundError,
    AlarmService,
    UnauthorizedError
)

logger = structlog.get_logger()
router = APIRouter(prefix="/alarms", tags=["alarms"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def unauthorized_response(request: Request):
    return create_error_response(
        "Unauthorized", "Invalid or missing API key", correlation_id_for(request), 401
    )


def not_found_response(request: Request):
    return create_error_response(
        "NotFound", "Alarm not found", correlation_id_for(request), 404
    )


@router.post("", status_code=201, response_model=AlarmResponse, responses=ERROR_RESPONSES)
def create_alarm(
    body: AlarmCreateRequest,
    request: Request,
    credential: Optional[str] = Depends(get_credential),
    service: AlarmService = Depends(get_alarm_service)
):
    """Create an active alarm for the calling credential."""
    try:
        alarm = service.create(credential, body.soundId, body.soundName, body.alarmTime)
    except UnauthorizedError:
        return unauthorized_response(request)
    except Exception as e:
        logger.error("Alarm creation failed", error=str(e), sound_id=body.soundId)
        return create_error_response(
            "BadRequest", "Failed to create alarm", correlation_id_for(request), 400
        )

    logger.info("Alarm created", alarm_id=alarm.id, alarm_time=alarm.alarm_time)
    return AlarmResponse.from_alarm(alarm)


@router.get("", response_model=List[AlarmResponse], responses=ERROR_RESPONSES)
def list_alarms(
    request: Request,
    credential: Optional[str] = Depends(get_credential),
    service: AlarmService = Depends(get_alarm_service)
):
    """List the caller's alarms ordered by alarm time."""
    try:
        alarms = service.list(credential)
    except UnauthorizedError:
        return unauthorized_response(request)

    return [AlarmResponse.from_alarm(alarm) for alarm in alarms]


@router.get("/active/{alarm_time}", response_model=List[AlarmResponse], responses=ERROR_RESPONSES)
def list_active_alarms(
    alarm_time: str,
    request: Request,
    credential: Optional[str] = Depends(get_credential),
    service: AlarmService = Depends(get_alarm_service)
):
    """List the caller's active alarms set for exactly ``alarm_time``."""
    try:
        alarms = service.list_active_at_time(credential, alarm_time)
    except UnauthorizedError:
        return unauthorized_response(request)

    return [AlarmResponse.from_alarm(alarm) for alarm in alarms]


@router.get("/{alarm_id}", response_model=AlarmResponse, responses=ERROR_RESPONSES)
def get_alarm(
    alarm_id: int,
    request: Request,
    credential: Optional[str] = Depends(get_credential),
    service: AlarmService = Depends(get_alarm_service)
):
    """Fetch one alarm; alarms of other credentials are reported as missing."""
    try:
        alarm = service.get_by_id(credential, alarm_id)
    except UnauthorizedError:
        return unauthorized_response(request)

    if alarm is None:
        return not_found_response(request)
    return AlarmResponse.from_alarm(alarm)


@router.put("/{alarm_id}", response_model=AlarmResponse, responses=ERROR_RESPONSES)
def update_alarm(
    alarm_id: int,
    body: AlarmUpdateRequest,
    request: Request,
    credential: Optional[str] = Depends(get_credential),
    service: AlarmService = Depends(get_alarm_service)
):
    """Partially update an alarm; omitted fields keep their current value."""
    changes = AlarmUpdate(
        sound_id=body.soundId,
        sound_name=body.soundName,
        alarm_time=body.alarmTime,
        is_active=body.isActive
    )
    try:
        alarm = service.update(credential, alarm_id, changes)
    except UnauthorizedError:
        return unauthorized_response(request)
    except AlarmNotFoundError:
        return not_found_response(request)
    except Exception as e:
        logger.error("Alarm update failed", error=str(e), alarm_id=alarm_id)
        return create_error_response(
            "BadRequest", "Failed to update alarm", correlation_id_for(request), 400
        )

    logger.info("Alarm updated", alarm_id=alarm_id, fields=sorted(changes.supplied()))
    return AlarmResponse.from_alarm(alarm)


@router.delete("/{alarm_id}", response_model=MessageResponse, responses=ERROR_RESPONSES)
def delete_alarm(
    alarm_id: int,
    request: Request,
    credential: Optional[str] = Depends(get_credential),
    service: AlarmService = Depends(get_alarm_service)
):
    """Delete an alarm. Deleting a missing alarm still succeeds."""
    try:
        service.delete(credential, alarm_id)
    except UnauthorizedError:
        return unauthorized_response(request)
    except Exception as e:
        logger.error("Alarm deletion failed", error=str(e), alarm_id=alarm_id)
        return create_error_response(
            "BadRequest", "Failed to delete alarm", correlation_id_for(request), 400
        )

    return MessageResponse(message="Alarm deleted successfully")


@router.patch("/{alarm_id}/toggle", response_model=AlarmResponse, responses=ERROR_RESPONSES)
def toggle_alarm(
    alarm_id: int,
    request: Request,
    credential: Optional[str] = Depends(get_credential),
    service: AlarmService = Depends(get_alarm_service)
):
    """Flip the active flag of an alarm."""
    try:
        alarm = service.toggle(credential, alarm_id)
    except UnauthorizedError:
        return unauthorized_response(request)
    except AlarmNotFoundError:
        return not_found_response(request)
    except Exception as e:
        logger.error("Alarm toggle failed", error=str(e), alarm_id=alarm_id)
        return create_error_response(
            "BadRequest", "Failed to toggle alarm status", correlation_id_for(request), 400
        )

    logger.info("Alarm toggled", alarm_id=alarm_id, is_active=alarm.is_active)
    return AlarmResponse.from_alarm(alarm)
