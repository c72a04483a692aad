"""Sound catalog and static asset endpoints."""

from pathlib import Path
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse

from src.api.dependencies import get_catalog_builder, get_settings
from src.api.errors import correlation_id_for, create_error_response
from src.config import Settings
from src.models.api_models import ErrorResponse, Sound
from src.models.internal_models import CatalogQuery
from src.services.catalog_query import NoSoundsFoundError, apply_query
from src.services.catalog_service import CatalogBuilder

logger = structlog.get_logger()
router = APIRouter(tags=["sounds"])


def _param(request: Request, value: Optional[str], header: str) -> Optional[str]:
    """Prefer the query-string value, fall back to the legacy request header."""
    return value if value else request.headers.get(header)


def resolve_asset(directory: Path, file_name: str) -> Optional[Path]:
    """Return the asset path if ``file_name`` names a file directly inside ``directory``."""
    if not file_name or Path(file_name).name != file_name:
        return None
    path = directory / file_name
    return path if path.is_file() else None


@router.get("/sounds", response_model=List[Sound], responses={404: {"model": ErrorResponse}})
def list_sounds(
    request: Request,
    search: Optional[str] = Query(None, description="Substring of name, tag or author"),
    filter_kind: Optional[str] = Query(None, alias="filter", description="author, tag or date"),
    author: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    sort: Optional[str] = Query(None, description="asc or desc by publish date"),
    builder: CatalogBuilder = Depends(get_catalog_builder)
):
    """
    List the sound catalog, rebuilt from disk for this request.

    Every parameter may also be sent as a request header of the same name.
    """
    query = CatalogQuery(
        search=_param(request, search, "search"),
        filter=_param(request, filter_kind, "filter"),
        author=_param(request, author, "author"),
        tag=_param(request, tag, "tag"),
        start_date=_param(request, start_date, "startDate"),
        end_date=_param(request, end_date, "endDate"),
        sort=_param(request, sort, "sort")
    )

    sounds = builder.build()
    try:
        result = apply_query(sounds, query)
    except NoSoundsFoundError:
        logger.info("Catalog query matched no sounds", catalog_size=len(sounds), search=query.search, filter=query.filter)
        return create_error_response("NotFound", "No sounds found", correlation_id_for(request), 404)

    return result


@router.get("/audio/{file_name}", response_class=FileResponse, responses={404: {"model": ErrorResponse}})
def get_audio(file_name: str, request: Request, settings: Settings = Depends(get_settings)):
    """Stream an audio file from the music directory."""
    path = resolve_asset(settings.music_dir, file_name)
    if path is None:
        return create_error_response("NotFound", "Audio file not found", correlation_id_for(request), 404)
    return FileResponse(path, media_type="audio/mpeg")


@router.get("/cover/{file_name}", response_class=FileResponse, responses={404: {"model": ErrorResponse}})
def get_cover(file_name: str, request: Request, settings: Settings = Depends(get_settings)):
    """Stream a cover image from the cover directory."""
    path = resolve_asset(settings.cover_dir, file_name)
    if path is None:
        return create_error_response("NotFound", "Cover image not found", correlation_id_for(request), 404)
    return FileResponse(path, media_type="image/jpeg")
