"""审批相关的请求与响应模型。"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from app.packages.office.api.v1.schemas.common import IdData, PageData, ResponseEnvelope
from app.packages.office.core.enums import ApprovalTypeEnum
from app.packages.office.services.approval_details import ApprovalDetail


class ApprovalCreateRequest(BaseModel):
    """创建审批：请假、外出、补卡审批需携带对应的 ``detail``。"""

    type: ApprovalTypeEnum
    reason: str = Field(default="", max_length=500)
    detail: Optional[ApprovalDetail] = None


class ApprovalDisposeRequest(BaseModel):
    """处理审批：``status`` 取 2 通过、3 拒绝、4 撤销。"""

    status: int = Field(..., description="2 通过，3 拒绝，4 撤销")
    reason: str = Field(default="", max_length=500)


class ApprovalState(BaseModel):
    id: str
    status: int
    approver_idx: int
    current_approver_id: str


class ApprovalBrief(BaseModel):
    id: str
    no: str
    type: int
    type_name: str
    status: int
    status_name: str
    title: str
    abstract: str
    user_id: str
    current_approver_id: str
    create_time: Optional[str] = None
    finish_time: Optional[str] = None


class ApprovalPerson(BaseModel):
    user_id: str
    user_name: str


class ApprovalChainEntry(ApprovalPerson):
    status: int
    reason: str = ""


class ApprovalInfo(ApprovalBrief):
    reason: str
    user: ApprovalPerson
    approver: ApprovalPerson
    approver_idx: int
    approvers: list[ApprovalChainEntry]
    participants: list[str]
    detail: Optional[dict[str, Any]] = None
    update_time: Optional[str] = None


ApprovalCreateResponse = ResponseEnvelope[IdData]
ApprovalStateResponse = ResponseEnvelope[ApprovalState]
ApprovalInfoResponse = ResponseEnvelope[ApprovalInfo]
ApprovalListResponse = ResponseEnvelope[PageData[ApprovalBrief]]
