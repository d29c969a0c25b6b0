"""用户服务：账号创建、查询与个人信息聚合。"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.office.core.constants import HTTP_STATUS_OK
from app.packages.office.core.exceptions import ConflictError, NotFoundError
from app.packages.office.core.logger import logger
from app.packages.office.core.responses import create_response
from app.packages.office.core.security import get_password_hash
from app.packages.office.core.timezone import format_datetime
from app.packages.office.crud.users import user_crud
from app.packages.office.models.user import User
from app.packages.office.services.department_service import department_service


class UserService:
    """聚合用户相关的核心业务能力。"""

    def build_user_profile(self, db: Session, user: User) -> dict:
        """返回当前用户信息及其直接所属部门。"""
        department = department_service.resolve_primary_department(db, user.id)
        data = self._serialize_user(user)
        data["department"] = (
            {"id": department.id, "name": department.name} if department is not None else None
        )
        return create_response("获取用户信息成功", data, HTTP_STATUS_OK)

    def list_users(
        self,
        db: Session,
        *,
        name: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> dict:
        page = max(page, 1)
        page_size = max(page_size, 1)
        items, total = user_crud.list_with_filters(
            db,
            name=name,
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        data = {
            "list": [self._serialize_user(item) for item in items],
            "count": total,
            "page": page,
            "page_size": page_size,
        }
        return create_response("获取用户列表成功", data, HTTP_STATUS_OK)

    def get_user(self, db: Session, *, user_id: str) -> dict:
        user = user_crud.get(db, user_id)
        if user is None:
            raise NotFoundError("用户不存在")
        return create_response("获取用户详情成功", self._serialize_user(user), HTTP_STATUS_OK)

    def create_user(self, db: Session, *, username: str, password: str, name: str = "") -> dict:
        """创建用户；用户名全局唯一。"""
        username = username.strip()
        if user_crud.get_by_username(db, username) is not None:
            raise ConflictError("用户名已存在")

        user = user_crud.create(
            db,
            {
                "username": username,
                "name": (name or "").strip() or username,
                "hashed_password": get_password_hash(password),
                "is_active": True,
            },
        )
        logger.info("User %s (%s) created", user.id, user.username)
        return create_response("新增用户成功", self._serialize_user(user), HTTP_STATUS_OK)

    @staticmethod
    def _serialize_user(user: User) -> dict:
        return {
            "id": user.id,
            "username": user.username,
            "name": user.name,
            "is_active": user.is_active,
            "create_time": format_datetime(user.create_time),
        }


user_service = UserService()
