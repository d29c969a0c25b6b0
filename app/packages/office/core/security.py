"""安全模块：提供密码哈希、验证以及 JWT 令牌的生成/解析能力。"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt
from starlette.requests import Request

from .config import get_settings
from .logger import logger


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """校验明文密码与已存储哈希值是否匹配。"""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    """对输入密码执行 bcrypt 哈希并返回可持久化的字符串。"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def create_access_token(subject: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """根据传入载荷生成带有过期时间的签名 JWT。"""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta else timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = subject.copy()
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """解析 JWT 并在合法时返回其中的业务载荷，否则返回 ``None``。

    过期由会话层的滑动 TTL 控制，因此此处不校验 ``exp``。
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError as exc:  # pragma: no cover - logging side effect
        logger.warning("Failed to decode JWT: %s", exc)
        return None


def store_refreshed_token(request: Request, token: Optional[str]) -> None:
    """把本次请求新签发的访问令牌挂到 ``request.state``，由中间件写入 ``X-Access-Token``。"""
    request.state.refreshed_token = token


def consume_refreshed_token(request: Request) -> Optional[str]:
    return getattr(request.state, "refreshed_token", None)


def store_current_session_id(request: Request, session_id: Optional[str]) -> None:
    request.state.session_id = session_id


def get_request_session_id(request: Request) -> Optional[str]:
    return getattr(request.state, "session_id", None)
