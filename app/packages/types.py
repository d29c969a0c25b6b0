"""业务包元数据定义。"""

from __future__ import annotations

from dataclasses import dataclass
from logging import Logger
from typing import Callable, Optional

from fastapi import APIRouter, Request


@dataclass(frozen=True)
class AppPackage:
    """描述一个业务包暴露给主应用的必要接口。

    主应用只通过这些入口装配路由、日志、异常处理与启动初始化，
    不直接引用业务包内部模块。
    """

    name: str
    api_router: APIRouter
    get_settings: Callable[[], object]
    setup_logging: Callable[[], None]
    logger: Logger
    init_db: Callable[[], None]
    create_response: Callable[..., dict]
    http_exception_handler: Callable[..., object]
    generic_exception_handler: Callable[..., object]
    # 读取本次请求中新签发的访问令牌，供响应头回写
    consume_refreshed_token: Callable[[Request], Optional[str]]
