from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.dtos import AuthTokens, SessionInfo, SessionStats
from src.app.services.session_service import SessionService
from src.depends import get_current_user, get_session_service

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class CreateSessionRequest(BaseModel):
    """
    Create session payload

    Sent by the login, registration and OAuth handlers once they have
    authenticated the user.
    """

    user_id: str = Field(..., min_length=1, max_length=128, description="Authenticated user ID")
    device_id: str = Field(..., min_length=1, max_length=255, description="Client installation ID")
    device_info: Optional[Dict[str, Any]] = Field(
        None, description="Client metadata (os, model, appVersion, platform, ...)"
    )
    ip_address: Optional[str] = Field(None, max_length=64, description="End user IP")
    user_agent: Optional[str] = Field(None, max_length=512, description="End user agent")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthTokens,
    dependencies=[Depends(verify_admin_api_key)],
)
async def create_session(
    request: CreateSessionRequest,
    service: SessionService = Depends(get_session_service),
):
    """
    Create Session

    Issues an access token and a refresh token for a new device session.

    Requires: X-Admin-API-Key header

    Raises:
        - 400 Bad Request: INVALID_INPUT
        - 401 Unauthorized: Missing or invalid admin API key
        - 500 Internal Server Error: Server error
    """
    result = await service.create_session(
        request.user_id,
        request.device_info,
        request.device_id,
        ip_address=request.ip_address,
        user_agent=request.user_agent,
    )

    if result.is_err():
        error = result.error
        if error.code == "INVALID_INPUT":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value.tokens


@router.get("", status_code=status.HTTP_200_OK, response_model=List[SessionInfo])
async def list_sessions(
    current_user: dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """List the caller's active devices"""
    result = await service.find_active_sessions(current_user["sub"])
    if result.is_err():
        raise ServerError(result.error)
    return result.value


@router.get("/stats", status_code=status.HTTP_200_OK, response_model=SessionStats)
async def session_stats(
    current_user: dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    result = await service.get_session_stats(current_user["sub"])
    if result.is_err():
        raise ServerError(result.error)
    return result.value
