"""CRUD 基类：为各实体提供通用的数据访问方法。

所有写操作都支持 ``auto_commit=False``，以便业务层把多步级联放进同一个事务。
"""

from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from app.packages.office.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """封装常见的查询、创建与保存逻辑，减少重复代码。"""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        """按主键查询，不存在时返回 ``None``。"""
        if not id:
            return None
        return self.query(db).filter(self.model.id == id).first()

    def list_by_ids(self, db: Session, ids: Iterable[str]) -> List[ModelType]:
        """根据主键集合批量查询。"""
        id_set = {item for item in ids if item}
        if not id_set:
            return []
        return self.query(db).filter(self.model.id.in_(id_set)).all()

    def map_by_ids(self, db: Session, ids: Iterable[str]) -> Dict[str, ModelType]:
        return {item.id: item for item in self.list_by_ids(db, ids)}

    def create(self, db: Session, obj_in: Dict[str, Any], *, auto_commit: bool = True) -> ModelType:
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        if auto_commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
        return db_obj

    def save(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> ModelType:
        db.add(db_obj)
        if auto_commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
        return db_obj

    def hard_delete(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> None:
        """物理删除行。"""
        db.delete(db_obj)
        if auto_commit:
            try:
                db.commit()
            except Exception:
                db.rollback()
                raise
        else:
            db.flush()

    def query(self, db: Session):
        return db.query(self.model)
