"""认证服务：登录签发令牌与退出登录。"""

from sqlalchemy.orm import Session

from app.packages.office.core.config import get_settings
from app.packages.office.core.constants import ACCESS_TOKEN_TYPE, HTTP_STATUS_OK, HTTP_STATUS_UNAUTHORIZED
from app.packages.office.core.exceptions import AppException, ForbiddenError
from app.packages.office.core.logger import logger
from app.packages.office.core.responses import create_response
from app.packages.office.core.security import create_access_token, verify_password
from app.packages.office.core.session import create_session, delete_session
from app.packages.office.crud.users import user_crud


class AuthService:
    """负责处理登录与退出流程。"""

    def login(self, db: Session, *, username: str, password: str) -> dict:
        """校验用户凭证，创建会话并签发访问令牌。"""
        user = user_crud.get_by_username(db, username)
        if user is None or not verify_password(password, user.hashed_password):
            logger.warning("Login failed for username %s", username)
            raise AppException(msg="用户名或密码错误", code=HTTP_STATUS_UNAUTHORIZED)
        if not user.is_active:
            raise ForbiddenError("用户未激活")

        ttl_seconds = max(get_settings().access_token_expire_minutes, 1) * 60
        session_id = create_session(user.id, ttl_seconds)

        token_payload = {"user_id": user.id, "username": user.username, "sid": session_id}
        access_token = create_access_token(token_payload)

        logger.info("User %s logged in", user.id)

        return create_response(
            "登录成功",
            {
                "access_token": access_token,
                "token_type": ACCESS_TOKEN_TYPE,
            },
            HTTP_STATUS_OK,
        )

    def logout(self, session_id: str | None) -> dict:
        if session_id:
            delete_session(session_id)
        return create_response("退出登录成功", None, HTTP_STATUS_OK)


auth_service = AuthService()
