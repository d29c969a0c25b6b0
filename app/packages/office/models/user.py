"""用户模型：描述系统中的账号，部门归属由部门成员关联表维护。"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.office.models.base import ID_LENGTH, Base, TimestampMixin, generate_id


class User(TimestampMixin, Base):
    """用户实体。``name`` 为展示用姓名，用于审批标题与负责人名称。"""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), default="")
    hashed_password: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
