"""用户相关的请求与响应模型。"""

from typing import Optional

from pydantic import BaseModel, Field

from app.packages.office.api.v1.schemas.common import PageData, ResponseEnvelope


class UserCreateRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(default="", max_length=100, description="展示用姓名，缺省时使用用户名")


class UserItem(BaseModel):
    id: str
    username: str
    name: str
    is_active: bool
    create_time: Optional[str] = None


class DepartmentBrief(BaseModel):
    id: str
    name: str


class UserProfile(UserItem):
    """当前登录用户的信息，附带其直接所属部门。"""

    department: Optional[DepartmentBrief] = None


UserResponse = ResponseEnvelope[UserItem]
UserProfileResponse = ResponseEnvelope[UserProfile]
UserListResponse = ResponseEnvelope[PageData[UserItem]]
