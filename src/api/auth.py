"""
Credential check endpoint.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.api.dependencies import get_credential, get_key_validator
from src.models.api_models import KeyValidationResponse
from src.services.key_validator import KeyValidator

router = APIRouter(tags=["authentication"])


@router.get(
    "/validate-key",
    response_model=KeyValidationResponse,
    responses={401: {"model": KeyValidationResponse}}
)
def validate_key(
    credential: Optional[str] = Depends(get_credential),
    key_validator: KeyValidator = Depends(get_key_validator)
):
    """Report whether the presented API key is on the allow-list."""
    if not credential:
        return JSONResponse(
            status_code=401,
            content=KeyValidationResponse(valid=False, message="No API key provided").model_dump()
        )

    if not key_validator.is_valid(credential):
        return JSONResponse(
            status_code=401,
            content=KeyValidationResponse(valid=False, message="Invalid API key").model_dump()
        )

    return KeyValidationResponse(valid=True, message="API key is valid")
