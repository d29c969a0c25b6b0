"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.office.models.approval import Approval, ApprovalParticipant
from app.packages.office.models.department import Department
from app.packages.office.models.department_user import DepartmentUser
from app.packages.office.models.user import User

__all__ = [
    "Approval",
    "ApprovalParticipant",
    "Department",
    "DepartmentUser",
    "User",
]
