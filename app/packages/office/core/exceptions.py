"""异常处理模块：定义统一的业务异常与响应格式。

业务层只抛出下列异常之一，每个异常都携带一条面向用户的可读消息：

- ``NotFoundError``：部门、用户或审批不存在；
- ``ConflictError``：部门名称重复、用户已在部门中；
- ``ForbiddenError``：非当前审批人、移除部门负责人、处理已结束的审批；
- ``InvalidStateError``：部门下仍有其他成员、用户未关联任何部门；
- ``ValidationError``：请求参数不合法。
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.packages.office.core.security import consume_refreshed_token


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.data = data

    @property
    def msg(self) -> str:
        return str(self.detail)


class NotFoundError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_404_NOT_FOUND, data)


class ConflictError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_409_CONFLICT, data)


class ForbiddenError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_403_FORBIDDEN, data)


class InvalidStateError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_400_BAD_REQUEST, data)


class ValidationError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_422_UNPROCESSABLE_ENTITY, data)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    payload = {"msg": exc.detail, "data": getattr(exc, "data", None), "code": exc.status_code}
    token = consume_refreshed_token(request)
    if token:
        payload["meta"] = {"access_token": token}
    return JSONResponse(status_code=exc.status_code, content=payload)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：将未捕获异常转换为标准的 500 响应结构。"""
    payload = {
        "msg": "服务器内部错误",
        "data": None,
        "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)
