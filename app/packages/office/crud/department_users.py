"""部门成员 CRUD：管理 (部门, 用户) 关联记录。"""

from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.packages.office.crud.base import CRUDBase
from app.packages.office.models.department_user import DepartmentUser


class CRUDDepartmentUser(CRUDBase[DepartmentUser]):
    """成员关联的查询与统计。"""

    def get_pair(self, db: Session, *, dep_id: str, user_id: str) -> Optional[DepartmentUser]:
        return (
            self.query(db)
            .filter(DepartmentUser.dep_id == dep_id, DepartmentUser.user_id == user_id)
            .first()
        )

    def list_by_department(self, db: Session, dep_id: str) -> list[DepartmentUser]:
        return (
            self.query(db)
            .filter(DepartmentUser.dep_id == dep_id)
            .order_by(DepartmentUser.create_time.asc(), DepartmentUser.id.asc())
            .all()
        )

    def list_by_departments(self, db: Session, dep_ids: Optional[Iterable[str]] = None) -> list[DepartmentUser]:
        """按部门集合查询成员；``dep_ids`` 为 ``None`` 时返回全部关联。"""
        query = self.query(db)
        if dep_ids is not None:
            id_set = {item for item in dep_ids if item}
            if not id_set:
                return []
            query = query.filter(DepartmentUser.dep_id.in_(id_set))
        return query.all()

    def list_by_user(self, db: Session, user_id: str) -> list[DepartmentUser]:
        """查询用户的全部部门关联（含级联计入的上级部门）。"""
        return self.query(db).filter(DepartmentUser.user_id == user_id).all()

    def count_by_department(self, db: Session, dep_id: str) -> int:
        return (
            db.query(func.count(DepartmentUser.id))
            .filter(DepartmentUser.dep_id == dep_id)
            .scalar()
            or 0
        )


department_user_crud = CRUDDepartmentUser(DepartmentUser)
