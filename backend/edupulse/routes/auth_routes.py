"""
Authentication and session routes.

Endpoints:
- POST /api/auth/login
- POST /api/auth/logout
- GET /api/auth/me
- POST /api/session/refresh
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from ..clients import StoreError
from ..models import LoginRequest, User
from ..session import get_session
from .deps import get_active_session, get_current_user

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "Vui lòng nhập đầy đủ tài khoản và mật khẩu"
INVALID_CREDENTIALS = "Thông tin đăng nhập không chính xác"
CONNECTION_ERROR = "Lỗi kết nối. Vui lòng thử lại sau."


def create_auth_routes() -> APIRouter:
    """Create login/logout and snapshot refresh routes."""

    router = APIRouter(prefix="/api", tags=["auth"])

    @router.post("/auth/login")
    async def login(request: LoginRequest):
        """Check credentials against the store and sign the user in."""
        session = get_active_session()
        account = request.account.strip()
        if not account or not request.password:
            raise HTTPException(status_code=400, detail=MISSING_CREDENTIALS)

        try:
            response = await session.store.login(account, request.password)
        except StoreError as e:
            logger.error(f"Login request failed: {e}")
            raise HTTPException(status_code=502, detail=CONNECTION_ERROR)

        if not response.success or response.user is None:
            raise HTTPException(status_code=401, detail=response.message or INVALID_CREDENTIALS)

        session.sign_in(response.user)
        return {"user": response.user, "is_staff": response.user.is_staff}

    @router.post("/auth/logout")
    async def logout(background_tasks: BackgroundTasks):
        """Clear the session; the store is notified after the response."""
        session = get_session()
        user = session.sign_out()
        if user is not None:
            background_tasks.add_task(session.store.logout, user.name)
            logger.info(f"Signed out: {user.account}")
        return {"success": True}

    @router.get("/auth/me")
    async def me(user: User = Depends(get_current_user)):
        return {"user": user, "is_staff": user.is_staff}

    @router.post("/session/refresh")
    async def refresh():
        """Re-fetch the snapshot; the current one is kept on failure."""
        session = get_session()
        if not await session.refresh():
            raise HTTPException(status_code=502, detail=CONNECTION_ERROR)
        return {
            "success": True,
            "maintenance": session.snapshot.maintenance,
            "results": len(session.snapshot.results),
        }

    return router
