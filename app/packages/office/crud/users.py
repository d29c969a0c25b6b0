"""用户 CRUD：集中管理用户相关的数据操作。"""

from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.packages.office.crud.base import CRUDBase
from app.packages.office.models.user import User


class CRUDUser(CRUDBase[User]):
    """封装常用的用户查询方法，供业务层复用。"""

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        """根据唯一用户名获取用户实例。"""
        return self.query(db).filter(User.username == username).first()

    def list_with_filters(
        self,
        db: Session,
        *,
        name: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[list[User], int]:
        """按姓名/用户名模糊过滤用户并返回分页结果。"""
        query = self.query(db)
        if name:
            keyword = f"%{name.strip()}%"
            query = query.filter((User.name.ilike(keyword)) | (User.username.ilike(keyword)))

        total = query.count()
        items = (
            query.order_by(User.username.asc())
            .offset(max(skip, 0))
            .limit(max(limit, 1))
            .all()
        )
        return items, total


user_crud = CRUDUser(User)
