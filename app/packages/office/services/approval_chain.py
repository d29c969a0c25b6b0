"""审批链计算：根据申请人所在部门逐级向上确定审批人。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from sqlalchemy.orm import Session

from app.packages.office.core.exceptions import InvalidStateError
from app.packages.office.core.logger import logger
from app.packages.office.crud.departments import department_crud
from app.packages.office.services.department_service import department_service
from app.packages.office.utils.path_utils import ancestors_nearest_first


@dataclass(frozen=True)
class ApprovalChain:
    """创建审批时计算出的审批链快照。

    ``approvers`` 依次为直属部门负责人、直接上级部门负责人……直至根部门负责人，
    同一人负责多级时会重复出现；``participants`` 为申请人与全部审批人去重后的列表。
    """

    department_id: str
    approvers: Tuple[str, ...]
    participants: Tuple[str, ...]


def build_chain(db: Session, requester_id: str) -> ApprovalChain:
    department = department_service.resolve_primary_department(db, requester_id)
    if department is None:
        raise InvalidStateError("用户未关联任何部门")

    approvers = []
    if department.leader_id:
        approvers.append(department.leader_id)

    ancestor_ids = ancestors_nearest_first(department.parent_path)
    ancestors = department_crud.map_by_ids(db, ancestor_ids)
    for ancestor_id in ancestor_ids:
        ancestor = ancestors.get(ancestor_id)
        if ancestor is None or not ancestor.leader_id:
            logger.warning(
                "Skipping unresolved ancestor %s while building approval chain for %s",
                ancestor_id,
                requester_id,
            )
            continue
        approvers.append(ancestor.leader_id)

    if not approvers:
        raise InvalidStateError("未找到可用的审批人")

    participants = tuple(dict.fromkeys([requester_id, *approvers]))
    return ApprovalChain(
        department_id=department.id,
        approvers=tuple(approvers),
        participants=participants,
    )
