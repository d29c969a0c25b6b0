"""部门成员模型：记录“用户计入某部门”的关联，加入子部门即级联计入所有上级部门。"""

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.office.models.base import ID_LENGTH, Base, TimestampMixin, generate_id


class DepartmentUser(TimestampMixin, Base):
    """成员关联。

    ``is_direct`` 区分“直接加入该部门”与“因加入子部门而级联计入”，
    级联移除时直接成员身份不会被回收。
    """

    __tablename__ = "department_users"
    __table_args__ = (
        # 同一用户在同一部门只记录一次，保证祖先级联插入幂等
        UniqueConstraint("dep_id", "user_id", name="uq_department_users_dep_user"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    dep_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("departments.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    is_direct: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
