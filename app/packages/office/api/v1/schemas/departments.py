"""部门相关的请求与响应模型。"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from app.packages.office.api.v1.schemas.common import ResponseEnvelope


class DepartmentCreateRequest(BaseModel):
    """创建部门：名称全局唯一，负责人会自动计入该部门及所有上级部门。"""

    name: str = Field(..., min_length=1, max_length=100)
    parent_id: str = Field(default="", max_length=32, description="上级部门 ID，空字符串表示根部门")
    level: Optional[int] = Field(default=None, ge=0, description="层级，缺省时按父路径深度推算")
    leader_id: str = Field(..., min_length=1, max_length=32)


class DepartmentUpdateRequest(BaseModel):
    """更新部门：未提供的字段保持原值。"""

    name: str = Field(..., min_length=1, max_length=100)
    parent_id: Optional[str] = Field(default=None, max_length=32)
    level: Optional[int] = Field(default=None, ge=0)
    leader_id: Optional[str] = Field(default=None, max_length=32)


class DepartmentUserAddRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=32)


class DepartmentUsersSetRequest(BaseModel):
    user_ids: list[str] = Field(default_factory=list, description="部门期望的完整成员列表")


class DepartmentItem(BaseModel):
    id: str
    name: str
    parent_id: str
    parent_path: str
    level: int
    leader_id: str
    leader: str
    member_count: int
    create_time: Optional[str] = None


class DepartmentMember(BaseModel):
    user_id: str
    user_name: str


class DepartmentTreeNode(DepartmentItem):
    """部门树节点。"""

    users: list[DepartmentMember] = Field(default_factory=list)
    children: list["DepartmentTreeNode"] = Field(default_factory=list)


class DepartmentChainNode(DepartmentItem):
    """用户部门链路中的一级，``children`` 至多包含下一级。"""

    children: list["DepartmentChainNode"] = Field(default_factory=list)


class MembershipData(BaseModel):
    dep_id: str
    user_id: str


class SetUsersFailure(BaseModel):
    user_id: str
    action: str
    msg: str


class SetUsersResult(BaseModel):
    added: list[str]
    removed: list[str]
    failed: list[SetUsersFailure]


DepartmentTreeNode.model_rebuild()
DepartmentChainNode.model_rebuild()

DepartmentResponse = ResponseEnvelope[DepartmentItem]
DepartmentTreeResponse = ResponseEnvelope[list[DepartmentTreeNode]]
DepartmentChainResponse = ResponseEnvelope[DepartmentChainNode]
DepartmentDeletionResponse = ResponseEnvelope[None]
MembershipResponse = ResponseEnvelope[MembershipData]
SetUsersResponse = ResponseEnvelope[SetUsersResult]
