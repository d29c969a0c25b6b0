"""部门 CRUD：管理部门相关的数据库操作。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.office.crud.base import CRUDBase
from app.packages.office.models.department import Department


class CRUDDepartment(CRUDBase[Department]):
    """提供部门实体的便捷查询方法。"""

    def get_by_name(self, db: Session, name: str) -> Optional[Department]:
        """按照唯一名称检索部门（大小写敏感的精确匹配）。"""
        return self.query(db).filter(Department.name == name).first()

    def list_all(self, db: Session) -> list[Department]:
        """获取全部部门，按路径深度与名称排序，便于组装树。"""
        return self.query(db).order_by(Department.parent_path.asc(), Department.name.asc()).all()


department_crud = CRUDDepartment(Department)
