"""部门模型：以物化路径（parent_path）表达部门树。"""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.office.models.base import ID_LENGTH, Base, TimestampMixin, generate_id
from app.packages.office.utils.path_utils import parse_parent_path


class Department(TimestampMixin, Base):
    """部门实体。

    - 名称全局唯一；
    - ``parent_id`` 为空字符串表示根部门；
    - ``parent_path`` 形如 ``:rootId:...:parentId``，根部门为空字符串；
    - ``member_count`` 为冗余的成员数量，随成员级联变化重新统计。
    """

    __tablename__ = "departments"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    parent_id: Mapped[str] = mapped_column(String(ID_LENGTH), default="", index=True)
    parent_path: Mapped[str] = mapped_column(Text, default="", index=True)
    level: Mapped[int] = mapped_column(Integer, default=0)
    leader_id: Mapped[str] = mapped_column(String(ID_LENGTH), default="", index=True)
    member_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def ancestor_ids(self) -> list[str]:
        """根到直接上级的祖先 ID 列表。"""
        return parse_parent_path(self.parent_path)
