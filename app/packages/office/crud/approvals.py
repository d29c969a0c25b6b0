"""审批 CRUD：审批单的持久化与列表查询。"""

from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from app.packages.office.core.enums import ApprovalOptionEnum
from app.packages.office.crud.base import CRUDBase
from app.packages.office.models.approval import Approval, ApprovalParticipant


class CRUDApproval(CRUDBase[Approval]):
    """审批单查询。"""

    def list_with_filters(
        self,
        db: Session,
        *,
        user_id: str,
        option: Optional[int] = None,
        approval_type: Optional[int] = None,
        status: Optional[int] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[list[Approval], int]:
        """查询当前用户可见的审批单，返回 ``(items, total)``。

        - ``option=SUBMIT``：我提交的；
        - ``option=AUDIT``：我参与审批但不是申请人的；
        - 未指定：申请人或参与人为当前用户的全部审批。
        """
        query = self.query(db)
        if option == ApprovalOptionEnum.SUBMIT:
            query = query.filter(Approval.user_id == user_id)
        else:
            participant_ids = db.query(ApprovalParticipant.approval_id).filter(
                ApprovalParticipant.user_id == user_id
            )
            if option == ApprovalOptionEnum.AUDIT:
                query = query.filter(Approval.id.in_(participant_ids), Approval.user_id != user_id)
            else:
                query = query.filter((Approval.user_id == user_id) | (Approval.id.in_(participant_ids)))

        if approval_type is not None:
            query = query.filter(Approval.type == approval_type)
        if status is not None:
            query = query.filter(Approval.status == status)

        total = query.count()
        items = (
            query.options(selectinload(Approval.participants))
            .order_by(Approval.create_time.desc(), Approval.no.desc())
            .offset(max(skip, 0))
            .limit(max(limit, 1))
            .all()
        )
        return items, total


approval_crud = CRUDApproval(Approval)
