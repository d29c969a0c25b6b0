"""认证相关路由定义。"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.packages.office.api.v1.schemas.auth import LoginRequest, LogoutResponse, TokenResponse
from app.packages.office.core.dependencies import get_current_session_id, get_db
from app.packages.office.core.security import store_refreshed_token
from app.packages.office.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    """校验凭证并签发访问令牌，令牌同时通过 ``X-Access-Token`` 响应头返回。"""
    result = auth_service.login(db, username=payload.username, password=payload.password)
    store_refreshed_token(request, result["data"]["access_token"])
    return result


@router.post("/logout", response_model=LogoutResponse)
def logout(session_id: str = Depends(get_current_session_id)) -> LogoutResponse:
    """退出登录并作废当前会话，之后该令牌不再可用。"""
    return auth_service.logout(session_id)
