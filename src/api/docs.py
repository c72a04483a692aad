"""API documentation endpoints: Swagger UI, OpenAPI document and UI config."""

from typing import Any, Dict

import structlog
import yaml
from fastapi import APIRouter, Depends, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import HTMLResponse

from src.api.dependencies import get_settings
from src.config import Settings

logger = structlog.get_logger()
router = APIRouter(include_in_schema=False)


@router.get("/ui", response_class=HTMLResponse)
def swagger_ui(request: Request) -> HTMLResponse:
    """Swagger UI reading the document from /doc and its options from /swagger-config."""
    return get_swagger_ui_html(
        openapi_url="/doc",
        title=f"{request.app.title} - Swagger UI",
        swagger_ui_parameters={"configUrl": "/swagger-config"}
    )


@router.get("/swagger-config")
def swagger_config() -> Dict[str, Any]:
    return {
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "docExpansion": "list",
        "filter": True,
        "tryItOutEnabled": True,
    }


@router.get("/doc")
def openapi_document(request: Request, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """
    Serve the OpenAPI document.

    A hand-written ``swagger.yaml`` takes precedence over the schema FastAPI
    generates from the routes.
    """
    if settings.swagger_path.is_file():
        with open(settings.swagger_path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
        if isinstance(document, dict):
            return document
        logger.warning("Ignoring swagger document that is not a mapping", path=str(settings.swagger_path))

    return request.app.openapi()
