"""Session-cookie logout endpoint.

Clears the http-only auth cookies the browser cannot remove itself. The
client calls this best-effort before wiping its own storage.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from dotask.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

SESSION_COOKIES = ("accessToken", "refreshToken")


class LogoutResponse(BaseModel):
    success: bool
    message: str


def clear_session_cookies(response: JSONResponse) -> None:
    """Delete the auth cookies and overwrite the access token with an expired blank."""
    for name in SESSION_COOKIES:
        response.delete_cookie(
            name,
            path="/",
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
        )
    response.set_cookie(
        "accessToken",
        "",
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=0,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout() -> JSONResponse:
    """Clear session cookies. Always answers with a success/failure envelope."""
    try:
        response = JSONResponse(
            content=LogoutResponse(success=True, message="Logged out successfully").model_dump()
        )
        clear_session_cookies(response)
        return response
    except Exception as e:
        logger.error("Logout error: %s", e, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=LogoutResponse(success=False, message="Logout failed").model_dump(),
        )
