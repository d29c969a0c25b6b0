"""审批业务逻辑：创建、处理（通过/拒绝/撤销）、列表与详情。

状态流转：创建后为“处理中”，审批链上的当前审批人依次处理；任一审批人拒绝
即整体拒绝，最后一位审批人通过且全部审批人均为通过时整体通过。申请人可随时撤销。
"""

from __future__ import annotations

import random
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.packages.office.core.config import get_settings
from app.packages.office.core.constants import HTTP_STATUS_OK
from app.packages.office.core.enums import ApprovalOptionEnum, ApprovalStatusEnum, ApprovalTypeEnum
from app.packages.office.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.packages.office.core.logger import logger
from app.packages.office.core.responses import create_response
from app.packages.office.core.timezone import format_datetime
from app.packages.office.core.timezone import now as tz_now
from app.packages.office.crud.approvals import approval_crud
from app.packages.office.crud.users import user_crud
from app.packages.office.db.session import atomic
from app.packages.office.models.approval import Approval, ApprovalParticipant
from app.packages.office.models.user import User
from app.packages.office.services.approval_chain import build_chain
from app.packages.office.services.approval_details import DetailHandler, default_detail_handlers, parse_detail

_DISPOSE_ACTIONS = {ApprovalStatusEnum.PASS, ApprovalStatusEnum.REFUSE, ApprovalStatusEnum.CANCEL}

_FINISHED_MESSAGES = {
    ApprovalStatusEnum.CANCEL: "该审核已撤销",
    ApprovalStatusEnum.PASS: "该审核已通过",
    ApprovalStatusEnum.REFUSE: "该审核已拒绝",
    ApprovalStatusEnum.AUTO_PASS: "该审核已自动通过",
}


def generate_approval_no(width: int) -> str:
    """生成指定位数的随机数字编号，仅用于展示。"""
    return "".join(random.choice("0123456789") for _ in range(max(width, 1)))


class ApprovalService:
    """审批单的状态机与查询。"""

    def __init__(self, detail_handlers: Mapping[type, DetailHandler]) -> None:
        self._detail_handlers = dict(detail_handlers)

    # ------------------------------------------------------------------
    # 创建
    # ------------------------------------------------------------------

    def create(
        self,
        db: Session,
        *,
        requester_id: str,
        approval_type: int,
        detail: Any = None,
        reason: str = "",
    ) -> dict[str, Any]:
        """创建审批，审批链在此刻按部门树计算并固化；未提供详情时摘要为空。"""
        requester = user_crud.get(db, requester_id)
        if requester is None:
            raise NotFoundError("用户不存在")

        try:
            type_enum = ApprovalTypeEnum(approval_type)
        except ValueError as exc:
            raise ValidationError("审批类型不存在") from exc

        try:
            detail_model = parse_detail(detail)
        except PydanticValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False, include_input=False)
            raise ValidationError("审批详情不合法", data=errors) from exc

        abstract = ""
        if detail_model is not None:
            handler = self._detail_handlers.get(type(detail_model))
            if handler is None:
                raise ValidationError("不支持的审批详情")
            if handler.approval_type != type_enum:
                raise ValidationError("审批详情与审批类型不匹配")
            abstract = handler.build_abstract(detail_model)
            reason = detail_model.reason or reason

        chain = build_chain(db, requester.id)
        approvers = [
            {
                "user_id": user_id,
                "status": (ApprovalStatusEnum.PROCESSING if index == 0 else ApprovalStatusEnum.NOT_STARTED).value,
                "reason": "",
            }
            for index, user_id in enumerate(chain.approvers)
        ]

        timestamp = tz_now()
        approval = Approval(
            no=generate_approval_no(get_settings().approval_no_width),
            user_id=requester.id,
            type=type_enum.value,
            status=ApprovalStatusEnum.PROCESSING.value,
            title=f"{self._user_name(requester)} 提交的 {type_enum.label}",
            abstract=abstract,
            reason=reason or "",
            current_approver_id=chain.approvers[0],
            approver_idx=0,
            approvers=approvers,
            detail=detail_model.model_dump(mode="json") if detail_model is not None else None,
            create_time=timestamp,
            update_time=timestamp,
        )
        approval.participants = [
            ApprovalParticipant(user_id=user_id, position=index) for index, user_id in enumerate(chain.participants)
        ]

        with atomic(db):
            approval_crud.save(db, approval, auto_commit=False)

        logger.info(
            "Approval %s created by %s from department %s with %d approvers",
            approval.id,
            requester.id,
            chain.department_id,
            len(approvers),
        )
        return create_response("创建审批成功", {"id": approval.id}, HTTP_STATUS_OK)

    # ------------------------------------------------------------------
    # 处理
    # ------------------------------------------------------------------

    def dispose(
        self,
        db: Session,
        *,
        approval_id: str,
        user_id: str,
        status: int,
        reason: str = "",
    ) -> dict[str, Any]:
        """通过、拒绝或撤销审批。校验失败时不做任何修改。"""
        try:
            action = ApprovalStatusEnum(status)
        except ValueError as exc:
            raise ValidationError("不支持的审批操作") from exc
        if action not in _DISPOSE_ACTIONS:
            raise ValidationError("不支持的审批操作")

        approval = approval_crud.get(db, approval_id)
        if approval is None:
            raise NotFoundError("审批不存在")
        current_status = ApprovalStatusEnum(approval.status)

        if action == ApprovalStatusEnum.CANCEL:
            if user_id != approval.user_id:
                raise ForbiddenError("审核用户错误")
            if current_status.is_terminal:
                logger.warning("Approval %s cancelled while already %s", approval.id, current_status.name)
            with atomic(db):
                approval.status = ApprovalStatusEnum.CANCEL.value
                approval.finish_time = tz_now()
                approval.update_time = approval.finish_time
                approval_crud.save(db, approval, auto_commit=False)
            logger.info("Approval %s cancelled by requester %s", approval.id, user_id)
            return create_response("撤销审批成功", self._state(approval), HTTP_STATUS_OK)

        if approval.current_approver_id != user_id:
            raise ForbiddenError("审核用户错误")
        if current_status in _FINISHED_MESSAGES:
            raise ForbiddenError(_FINISHED_MESSAGES[current_status])

        approvers = [dict(item) for item in approval.approvers or []]
        index = approval.approver_idx
        if not 0 <= index < len(approvers):
            raise ForbiddenError("审批链状态异常")

        approvers[index]["status"] = action.value
        approvers[index]["reason"] = reason or ""

        with atomic(db):
            if action == ApprovalStatusEnum.REFUSE:
                approval.status = ApprovalStatusEnum.REFUSE.value
                approval.finish_time = tz_now()
            elif index < len(approvers) - 1:
                index += 1
                approvers[index]["status"] = ApprovalStatusEnum.PROCESSING.value
                approval.approver_idx = index
                approval.current_approver_id = approvers[index]["user_id"]
            elif all(item["status"] == ApprovalStatusEnum.PASS.value for item in approvers):
                approval.status = ApprovalStatusEnum.PASS.value
                approval.finish_time = tz_now()
            # 重新赋值整个列表，JSON 列的原地修改不会被追踪
            approval.approvers = approvers
            approval.update_time = tz_now()
            approval_crud.save(db, approval, auto_commit=False)

        logger.info("Approval %s %s by %s", approval.id, action.name.lower(), user_id)
        return create_response("处理审批成功", self._state(approval), HTTP_STATUS_OK)

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def list_approvals(
        self,
        db: Session,
        *,
        user_id: str,
        option: Optional[int] = None,
        approval_type: Optional[int] = None,
        status: Optional[int] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> dict[str, Any]:
        """分页查询与当前用户相关的审批，按创建时间倒序。"""
        if option is not None:
            try:
                option = ApprovalOptionEnum(option)
            except ValueError as exc:
                raise ValidationError("查询视角不存在") from exc

        page = max(page, 1)
        page_size = max(page_size, 1)
        items, total = approval_crud.list_with_filters(
            db,
            user_id=user_id,
            option=option,
            approval_type=approval_type,
            status=status,
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        data = {
            "list": [self._serialize_brief(item) for item in items],
            "count": total,
            "page": page,
            "page_size": page_size,
        }
        return create_response("获取审批列表成功", data, HTTP_STATUS_OK)

    def info(self, db: Session, *, approval_id: str, user_id: str) -> dict[str, Any]:
        """返回审批详情，审批人均解析为用户名；仅参与人可见。"""
        approval = approval_crud.get(db, approval_id)
        if approval is None:
            raise NotFoundError("审批不存在")
        participant_ids = approval.participant_ids
        if user_id not in participant_ids:
            raise ForbiddenError("无权查看该审批")

        users = user_crud.map_by_ids(db, participant_ids)

        def person(target_id: str) -> dict[str, str]:
            return {"user_id": target_id, "user_name": self._user_name(users.get(target_id))}

        data = self._serialize_brief(approval)
        data.update(
            {
                "reason": approval.reason,
                "user": person(approval.user_id),
                "approver": person(approval.current_approver_id),
                "approver_idx": approval.approver_idx,
                "approvers": [
                    {**person(item["user_id"]), "status": item["status"], "reason": item.get("reason", "")}
                    for item in approval.approvers or []
                ],
                "participants": participant_ids,
                "detail": approval.detail,
                "update_time": format_datetime(approval.update_time),
            }
        )
        return create_response("获取审批详情成功", data, HTTP_STATUS_OK)

    # ------------------------------------------------------------------
    # 序列化
    # ------------------------------------------------------------------

    @staticmethod
    def _user_name(user: Optional[User]) -> str:
        if user is None:
            return ""
        return user.name or user.username

    @staticmethod
    def _state(approval: Approval) -> Dict[str, Any]:
        return {
            "id": approval.id,
            "status": approval.status,
            "approver_idx": approval.approver_idx,
            "current_approver_id": approval.current_approver_id,
        }

    @staticmethod
    def _serialize_brief(approval: Approval) -> Dict[str, Any]:
        status = ApprovalStatusEnum(approval.status)
        approval_type = ApprovalTypeEnum(approval.type)
        return {
            "id": approval.id,
            "no": approval.no,
            "type": approval_type.value,
            "type_name": approval_type.label,
            "status": status.value,
            "status_name": status.label,
            "title": approval.title,
            "abstract": approval.abstract,
            "user_id": approval.user_id,
            "current_approver_id": approval.current_approver_id,
            "create_time": format_datetime(approval.create_time),
            "finish_time": format_datetime(approval.finish_time),
        }


approval_service = ApprovalService(default_detail_handlers())
