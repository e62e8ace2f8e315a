"""
Admin API Routes - Session Maintenance Endpoints

These endpoints are for internal schedulers and operators.
Authentication is via Admin API Key, not user access tokens.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from src.api.error import ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.session_service import SessionService
from src.depends import get_session_service

router = APIRouter(prefix="/admin", tags=["Admin"])


class CleanupResponse(BaseModel):
    revoked_count: int


@router.post(
    "/sessions/cleanup",
    status_code=status.HTTP_200_OK,
    response_model=CleanupResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def cleanup_expired_sessions(
    service: SessionService = Depends(get_session_service),
):
    """
    Cleanup Expired Sessions

    Revokes every session past its expiry that is still marked active.
    Runs the same job as the periodic in-process cleanup.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 500 Internal Server Error: CLEANUP_FAILED
    """
    result = await service.cleanup_expired_sessions()

    if result.is_err():
        raise ServerError(result.error)

    return {"revoked_count": result.value}
