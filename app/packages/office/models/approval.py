"""审批模型：审批单本体与参与人索引表。"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.packages.office.core.enums import ApprovalStatusEnum
from app.packages.office.models.base import ID_LENGTH, Base, TimestampMixin, generate_id


class Approval(TimestampMixin, Base):
    """审批单。

    ``approvers`` 为创建时按部门树计算出的审批链快照，元素结构为
    ``{"user_id", "status", "reason"}``；``approver_idx`` 指向当前审批人，
    ``current_approver_id`` 是其冗余副本。``detail`` 保存请假/外出/补卡之一的详情。
    """

    __tablename__ = "approvals"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=generate_id)
    no: Mapped[str] = mapped_column(String(32), index=True)
    user_id: Mapped[str] = mapped_column(String(ID_LENGTH), index=True)
    type: Mapped[int] = mapped_column(Integer, index=True)
    status: Mapped[int] = mapped_column(Integer, default=ApprovalStatusEnum.PROCESSING.value, index=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    abstract: Mapped[str] = mapped_column(String(255), default="")
    reason: Mapped[str] = mapped_column(Text, default="")

    current_approver_id: Mapped[str] = mapped_column(String(ID_LENGTH), default="", index=True)
    approver_idx: Mapped[int] = mapped_column(Integer, default=0)
    approvers: Mapped[List[dict[str, Any]]] = mapped_column(JSON, default=list)
    detail: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    finish_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    participants: Mapped[List["ApprovalParticipant"]] = relationship(
        "ApprovalParticipant",
        back_populates="approval",
        cascade="all, delete-orphan",
        order_by="ApprovalParticipant.position",
    )

    @property
    def participant_ids(self) -> list[str]:
        return [item.user_id for item in self.participants]


class ApprovalParticipant(Base):
    """审批参与人：申请人与审批链上的全部成员，用于可见性判断与“我审核的”列表。"""

    __tablename__ = "approval_participants"

    approval_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("approvals.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    approval: Mapped[Approval] = relationship("Approval", back_populates="participants")
