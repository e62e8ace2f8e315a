from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError, ServerError
from src.app.services.dtos import AuthTokens
from src.app.services.session_service import (
    INVALID_OR_EXPIRED,
    REUSE_DETECTED,
    SessionService,
)
from src.depends import get_current_user, get_session_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


def client_ip(http_request: Request) -> Optional[str]:
    """Peer address, or the first X-Forwarded-For hop when behind a trusted proxy"""
    forwarded = http_request.headers.get("x-forwarded-for")
    if forwarded and ApplicationConfig.TRUST_FORWARDED_FOR:
        return forwarded.split(",")[0].strip()
    return http_request.client.host if http_request.client else None


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload

    Validates incoming refresh request.
    """

    session_id: UUID = Field(..., description="Session ID returned at login")
    refresh_token: str = Field(..., min_length=1, description="Current refresh token")
    device_id: Optional[str] = Field(
        None, description="Device ID; when given it must match the session"
    )


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=AuthTokens)
async def refresh(
    request: RefreshRequest,
    http_request: Request,
    service: SessionService = Depends(get_session_service),
):
    """
    Refresh Tokens

    Exchanges a refresh token for a new access token and a new refresh token.
    The presented refresh token stops working.

    Raises:
        - 401 Unauthorized: INVALID_OR_EXPIRED (unknown, revoked or expired
          session, device mismatch)
        - 401 Unauthorized: REUSE_DETECTED (token already used; every session
          of the user has been revoked and the user must sign in again)
        - 500 Internal Server Error: Server error
    """
    result = await service.verify_and_rotate(
        request.session_id,
        request.refresh_token,
        device_id=request.device_id,
        ip_address=client_ip(http_request),
        user_agent=http_request.headers.get("user-agent"),
    )

    if result.is_err():
        error = result.error
        if error.code in (INVALID_OR_EXPIRED, REUSE_DETECTED):
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise ServerError(error)

    return result.value.tokens


class LogoutRequest(BaseModel):
    """Optional logout payload; defaults to the caller's current session"""

    session_id: Optional[UUID] = Field(None, description="Session to log out")


class LogoutResponse(BaseModel):
    message: str
    revoked: bool


class LogoutAllResponse(BaseModel):
    message: str
    revoked_count: int


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    request: Optional[LogoutRequest] = None,
    current_user: dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """
    Logout

    Revokes the current session, or another session of the same user.

    Raises:
        - 403 Forbidden: Session belongs to another user
        - 404 Not Found: Session not found
    """
    current_session_id = UUID(current_user["sid"])
    session_id = (request.session_id if request else None) or current_session_id

    if session_id != current_session_id:
        session = await service.get_session(session_id)
        if session is None:
            raise ClientError(
                Error("SESSION_NOT_FOUND", "Session not found"),
                status_code=status.HTTP_404_NOT_FOUND,
            )
        if session.user_id != current_user["sub"]:
            raise ClientError(
                Error("FORBIDDEN", "Session does not belong to current user"),
                status_code=status.HTTP_403_FORBIDDEN,
            )

    result = await service.revoke_session(session_id)
    if result.is_err():
        raise ServerError(result.error)

    revoked = result.value
    return {
        "message": "Session revoked successfully" if revoked else "Session already inactive",
        "revoked": revoked,
    }


@router.post("/logout-all", status_code=status.HTTP_200_OK, response_model=LogoutAllResponse)
async def logout_all(
    current_user: dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """
    Logout Everywhere

    Revokes every active session of the caller, including the current one.
    """
    result = await service.revoke_all_user_sessions(current_user["sub"])
    if result.is_err():
        raise ServerError(result.error)

    return {
        "message": f"Successfully revoked {result.value} session(s)",
        "revoked_count": result.value,
    }


@router.post(
    "/logout-others", status_code=status.HTTP_200_OK, response_model=LogoutAllResponse
)
async def logout_others(
    current_user: dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    """
    Logout Other Devices

    Revokes every active session of the caller except the current one.
    """
    result = await service.revoke_all_user_sessions(
        current_user["sub"], except_session_id=UUID(current_user["sid"])
    )
    if result.is_err():
        raise ServerError(result.error)

    return {
        "message": f"Successfully revoked {result.value} other session(s)",
        "revoked_count": result.value,
    }
