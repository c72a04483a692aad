"""Request-scoped accessors for the services attached to the application."""

from typing import Optional

from fastapi import Request

from src.config import Settings
from src.services.alarm_service import AlarmService
from src.services.catalog_service import CatalogBuilder
from src.services.key_validator import KeyValidator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_alarm_service(request: Request) -> AlarmService:
    return request.app.state.alarm_service


def get_catalog_builder(request: Request) -> CatalogBuilder:
    return request.app.state.catalog_builder


def get_key_validator(request: Request) -> KeyValidator:
    return request.app.state.key_validator


def get_credential(request: Request) -> Optional[str]:
    """Credential presented in the configured API key header, if any."""
    return request.headers.get(request.app.state.settings.api_key_header)
