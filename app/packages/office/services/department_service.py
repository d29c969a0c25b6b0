"""部门业务逻辑：维护部门树以及成员的级联归属。

成员归属遵循“加入子部门即计入所有上级部门”的闭包规则：

- 加入部门时，为每个上级部门补齐成员关联；
- 移出部门时，从近到远逐级检查上级部门，只有当用户不再通过其他分支
  计入该上级、且不是该上级的直接成员时才移除对应关联。

每个级联操作在同一个数据库事务内完成，失败时整体回滚。
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.packages.office.core.constants import HTTP_STATUS_OK
from app.packages.office.core.exceptions import (
    AppException,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.packages.office.core.logger import logger
from app.packages.office.core.responses import create_response
from app.packages.office.core.timezone import format_datetime
from app.packages.office.crud.department_users import department_user_crud
from app.packages.office.crud.departments import department_crud
from app.packages.office.crud.users import user_crud
from app.packages.office.db.session import atomic
from app.packages.office.models.department import Department
from app.packages.office.models.user import User
from app.packages.office.utils.path_utils import (
    ancestors_nearest_first,
    department_parent_path,
    is_under,
    path_depth,
)


class DepartmentService:
    """部门的增删改查与成员级联管理。"""

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def tree(self, db: Session) -> dict[str, Any]:
        """返回完整的部门树，节点附带负责人姓名、成员数量与成员列表。"""
        departments = department_crud.list_all(db)
        memberships = department_user_crud.list_by_departments(db)

        user_ids = {item.user_id for item in memberships}
        user_ids.update(dep.leader_id for dep in departments if dep.leader_id)
        users = user_crud.map_by_ids(db, user_ids)

        members_map: Dict[str, List[dict]] = defaultdict(list)
        for item in memberships:
            members_map[item.dep_id].append(
                {"user_id": item.user_id, "user_name": self._user_name(users.get(item.user_id))}
            )

        # 按父路径分组，根部门的父路径为空
        grouped: Dict[str, List[Department]] = defaultdict(list)
        for dep in departments:
            grouped[dep.parent_path or ""].append(dep)
        for siblings in grouped.values():
            siblings.sort(key=lambda node: (node.name, node.id))

        def build(node: Department) -> dict[str, Any]:
            data = self._serialize(node, users.get(node.leader_id))
            data["member_count"] = len(members_map.get(node.id, []))
            data["users"] = members_map.get(node.id, [])
            child_path = department_parent_path(node.parent_path, node.id)
            data["children"] = [build(child) for child in grouped.get(child_path, [])]
            return data

        roots = [build(root) for root in grouped.get("", [])]
        return create_response("获取部门树成功", roots, HTTP_STATUS_OK)

    def info(self, db: Session, dep_id: str) -> dict[str, Any]:
        """返回单个部门详情。"""
        department = self._get_department_or_404(db, dep_id)
        leader = user_crud.get(db, department.leader_id)
        return create_response("获取部门详情成功", self._serialize(department, leader), HTTP_STATUS_OK)

    def user_department_info(self, db: Session, user_id: str) -> dict[str, Any]:
        """返回用户所属部门及其完整的上级链路，结构为根 -> ... -> 所属部门的单链嵌套。"""
        if user_crud.get(db, user_id) is None:
            raise NotFoundError("用户不存在")

        department = self.resolve_primary_department(db, user_id)
        if department is None:
            raise InvalidStateError("用户未关联任何部门")

        ancestor_ids = department.ancestor_ids
        ancestors = department_crud.map_by_ids(db, ancestor_ids)
        chain = [ancestors[item] for item in ancestor_ids if item in ancestors]
        chain.append(department)

        leaders = user_crud.map_by_ids(db, [dep.leader_id for dep in chain])
        root: Optional[dict[str, Any]] = None
        node: Optional[dict[str, Any]] = None
        for dep in chain:
            current = self._serialize(dep, leaders.get(dep.leader_id))
            current["children"] = []
            if node is None:
                root = current
            else:
                node["children"].append(current)
            node = current
        return create_response("获取用户部门信息成功", root, HTTP_STATUS_OK)

    def resolve_primary_department(self, db: Session, user_id: str) -> Optional[Department]:
        """找出用户直接所属的部门。

        用户会被级联计入所有上级部门，因此层级最深（父路径最长）的那一个
        才是其实际所属部门；深度相同时取部门 ID 最小者，保证结果确定。
        """
        memberships = department_user_crud.list_by_user(db, user_id)
        departments = department_crud.list_by_ids(db, [item.dep_id for item in memberships])
        if not departments:
            return None
        return min(departments, key=lambda dep: (-path_depth(dep.parent_path), dep.id))

    # ------------------------------------------------------------------
    # 部门维护
    # ------------------------------------------------------------------

    def create_department(
        self,
        db: Session,
        *,
        name: str,
        leader_id: str,
        parent_id: str = "",
        level: Optional[int] = None,
    ) -> dict[str, Any]:
        """创建部门，并把负责人加入该部门及其全部上级部门。"""
        name = self._normalize_name(name)
        if department_crud.get_by_name(db, name) is not None:
            raise ConflictError("已存在该部门")

        parent_path = ""
        if parent_id:
            parent = department_crud.get(db, parent_id)
            if parent is None:
                raise NotFoundError("上级部门不存在")
            parent_path = self._child_path(parent)

        leader = self._get_user_or_404(db, leader_id)

        with atomic(db):
            department = department_crud.create(
                db,
                {
                    "name": name,
                    "parent_id": parent_id or "",
                    "parent_path": parent_path,
                    "level": level if level is not None else path_depth(parent_path) + 1,
                    "leader_id": leader.id,
                    "member_count": 1,
                },
                auto_commit=False,
            )
            affected = self._add_membership(db, department, leader.id)
            self._refresh_member_counts(db, affected)

        db.refresh(department)
        logger.info("Department %s (%s) created with leader %s", department.id, department.name, leader.id)
        return create_response("创建部门成功", self._serialize(department, leader), HTTP_STATUS_OK)

    def edit_department(
        self,
        db: Session,
        dep_id: str,
        *,
        name: str,
        parent_id: Optional[str] = None,
        level: Optional[int] = None,
        leader_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """更新部门名称、上级、层级与负责人。

        ``parent_id``/``level``/``leader_id`` 为 ``None`` 时保持原值，``parent_id=""``
        表示调整为根部门。调整上级时仅重算本部门的父路径，已有下级部门的路径
        与成员关联不会随之改写。
        """
        department = self._get_department_or_404(db, dep_id)
        name = self._normalize_name(name)

        duplicate = department_crud.get_by_name(db, name)
        if duplicate is not None and duplicate.id != department.id:
            raise ConflictError("已存在该部门")

        new_parent_path = department.parent_path
        if parent_id is not None and parent_id != department.parent_id:
            if parent_id:
                if parent_id == department.id:
                    raise ValidationError("不能将部门移动到自身之下")
                parent = department_crud.get(db, parent_id)
                if parent is None:
                    raise NotFoundError("上级部门不存在")
                if is_under(parent.parent_path, department.id):
                    raise ValidationError("不能将部门移动到其下级部门之下")
                new_parent_path = self._child_path(parent)
            else:
                new_parent_path = ""

        leader: Optional[User] = None
        if leader_id is not None and leader_id != department.leader_id:
            leader = self._get_user_or_404(db, leader_id)

        with atomic(db):
            department.name = name
            if parent_id is not None:
                department.parent_id = parent_id
                department.parent_path = new_parent_path
            if level is not None:
                department.level = level
            affected: List[str] = []
            if leader is not None:
                department.leader_id = leader.id
                membership = department_user_crud.get_pair(db, dep_id=department.id, user_id=leader.id)
                if membership is None or not membership.is_direct:
                    affected = self._add_membership(db, department, leader.id)
            department_crud.save(db, department, auto_commit=False)
            self._refresh_member_counts(db, affected)

        db.refresh(department)
        logger.info("Department %s updated", department.id)
        leader = leader or user_crud.get(db, department.leader_id)
        return create_response("更新部门成功", self._serialize(department, leader), HTTP_STATUS_OK)

    def delete_department(self, db: Session, dep_id: str) -> dict[str, Any]:
        """删除部门；部门不存在时视为成功。

        仅当部门成员只剩负责人（或没有成员）时允许删除，删除前会按移出成员的
        规则把负责人从上级部门中回收。
        """
        department = department_crud.get(db, dep_id)
        if department is None:
            logger.info("Department %s already absent, nothing to delete", dep_id)
            return create_response("删除部门成功", None, HTTP_STATUS_OK)

        memberships = department_user_crud.list_by_department(db, department.id)
        if any(item.user_id != department.leader_id for item in memberships):
            raise InvalidStateError("该部门下还存在用户，不能删除该部门")

        name = department.name
        with atomic(db):
            affected: List[str] = []
            for membership in memberships:
                department_user_crud.hard_delete(db, membership, auto_commit=False)
                affected.extend(self._prune_ancestors(db, department, membership.user_id))
            department_crud.hard_delete(db, department, auto_commit=False)
            self._refresh_member_counts(db, affected)

        logger.info("Department %s (%s) deleted", dep_id, name)
        return create_response("删除部门成功", None, HTTP_STATUS_OK)

    # ------------------------------------------------------------------
    # 成员维护
    # ------------------------------------------------------------------

    def add_user(self, db: Session, dep_id: str, user_id: str) -> dict[str, Any]:
        """将用户加入部门，并级联加入所有上级部门。"""
        department = self._get_department_or_404(db, dep_id)
        user = self._get_user_or_404(db, user_id)
        with atomic(db):
            affected = self._add_membership(db, department, user.id)
            self._refresh_member_counts(db, affected)
        logger.info("User %s joined department %s", user.id, department.id)
        return create_response("添加部门成员成功", {"dep_id": department.id, "user_id": user.id}, HTTP_STATUS_OK)

    def remove_user(self, db: Session, dep_id: str, user_id: str) -> dict[str, Any]:
        """将用户移出部门，并按需从上级部门中移除。

        用户仍属于某个下级部门时不能真正离开本部门：直接成员降为级联成员，
        仅因级联计入的成员则拒绝移出。
        """
        department = self._get_department_or_404(db, dep_id)
        with atomic(db):
            affected = self._remove_membership(db, department, user_id)
            self._refresh_member_counts(db, affected)
        logger.info("User %s left department %s", user_id, department.id)
        return create_response("移除部门成员成功", {"dep_id": department.id, "user_id": user_id}, HTTP_STATUS_OK)

    def set_users(self, db: Session, dep_id: str, user_ids: Iterable[str]) -> dict[str, Any]:
        """把部门成员调整为给定集合。

        多出的成员逐个移出（负责人以及仍在下级部门中的成员除外），缺少的成员逐个加入；
        每一步单独提交，某一步失败不会影响其他步骤，失败明细随结果返回。
        """
        department = self._get_department_or_404(db, dep_id)
        desired = list(dict.fromkeys(item for item in user_ids if item))
        desired_set = set(desired)
        current_ids = [item.user_id for item in department_user_crud.list_by_department(db, department.id)]
        current_set = set(current_ids)

        added: List[str] = []
        removed: List[str] = []
        failed: List[dict[str, str]] = []

        for user_id in current_ids:
            if user_id in desired_set or user_id == department.leader_id:
                continue
            if self._held_by_descendant(db, department, user_id):
                logger.info(
                    "User %s kept in department %s through a sub-department", user_id, department.id
                )
                continue
            try:
                with atomic(db):
                    affected = self._remove_membership(db, department, user_id)
                    self._refresh_member_counts(db, affected)
                removed.append(user_id)
            except AppException as exc:
                logger.warning("Failed to remove user %s from department %s: %s", user_id, department.id, exc.msg)
                failed.append({"user_id": user_id, "action": "remove", "msg": exc.msg})

        for user_id in desired:
            if user_id in current_set:
                continue
            try:
                user = self._get_user_or_404(db, user_id)
                with atomic(db):
                    affected = self._add_membership(db, department, user.id)
                    self._refresh_member_counts(db, affected)
                added.append(user_id)
            except AppException as exc:
                logger.warning("Failed to add user %s to department %s: %s", user_id, department.id, exc.msg)
                failed.append({"user_id": user_id, "action": "add", "msg": exc.msg})

        logger.info(
            "Department %s members reconciled: %d added, %d removed, %d failed",
            department.id,
            len(added),
            len(removed),
            len(failed),
        )
        data = {"added": added, "removed": removed, "failed": failed}
        return create_response("设置部门成员成功", data, HTTP_STATUS_OK)

    # ------------------------------------------------------------------
    # 级联
    # ------------------------------------------------------------------

    def _add_membership(self, db: Session, department: Department, user_id: str) -> List[str]:
        """写入直接成员关联并补齐上级部门的关联，返回成员数发生变化的部门 ID。"""
        affected: List[str] = []
        membership = department_user_crud.get_pair(db, dep_id=department.id, user_id=user_id)
        if membership is not None:
            if membership.is_direct:
                raise ConflictError("该用户已在此部门中")
            # 此前仅因下级部门级联计入，现转为直接成员
            membership.is_direct = True
            department_user_crud.save(db, membership, auto_commit=False)
        else:
            department_user_crud.create(
                db,
                {"dep_id": department.id, "user_id": user_id, "is_direct": True},
                auto_commit=False,
            )
            affected.append(department.id)

        ancestor_ids = department.ancestor_ids
        existing_ancestors = department_crud.map_by_ids(db, ancestor_ids)
        for ancestor_id in ancestor_ids:
            if ancestor_id not in existing_ancestors:
                logger.warning(
                    "Ancestor department %s of %s no longer exists, skipping membership cascade",
                    ancestor_id,
                    department.id,
                )
                continue
            if department_user_crud.get_pair(db, dep_id=ancestor_id, user_id=user_id) is not None:
                continue
            department_user_crud.create(
                db,
                {"dep_id": ancestor_id, "user_id": user_id, "is_direct": False},
                auto_commit=False,
            )
            affected.append(ancestor_id)
        return affected

    def _remove_membership(self, db: Session, department: Department, user_id: str) -> List[str]:
        if user_id == department.leader_id:
            raise ForbiddenError("不能删除部门负责人")
        membership = department_user_crud.get_pair(db, dep_id=department.id, user_id=user_id)
        if membership is None:
            raise NotFoundError("该用户不在此部门中")

        if self._held_by_descendant(db, department, user_id):
            # 仍属于某个下级部门时必须继续计入本部门，只能撤销直接成员身份
            if not membership.is_direct:
                raise InvalidStateError("该用户仍在下级部门中，不能移出该部门")
            membership.is_direct = False
            department_user_crud.save(db, membership, auto_commit=False)
            logger.info(
                "User %s stays in department %s through a sub-department, membership demoted",
                user_id,
                department.id,
            )
            return []

        department_user_crud.hard_delete(db, membership, auto_commit=False)
        return [department.id, *self._prune_ancestors(db, department, user_id)]

    def _held_by_descendant(self, db: Session, department: Department, user_id: str) -> bool:
        """用户是否还属于 ``department`` 的某个下级部门。"""
        other_ids = [
            item.dep_id for item in department_user_crud.list_by_user(db, user_id) if item.dep_id != department.id
        ]
        return any(
            is_under(other.parent_path, department.id) for other in department_crud.list_by_ids(db, other_ids)
        )

    def _prune_ancestors(self, db: Session, department: Department, user_id: str) -> List[str]:
        """从近到远检查上级部门，移除不再需要的级联关联，返回被移除关联的部门 ID。

        上级部门 ``a`` 的关联保留的条件：用户是 ``a`` 的直接成员，或者用户仍属于
        另一个路径经过 ``a`` 的部门。逐级移除后的结果会参与更远一级的判断。
        """
        ancestor_ids = ancestors_nearest_first(department.parent_path)
        if not ancestor_ids:
            return []

        remaining = {
            item.dep_id: item
            for item in department_user_crud.list_by_user(db, user_id)
            if item.dep_id != department.id
        }
        dep_map = department_crud.map_by_ids(db, remaining.keys())

        removed: List[str] = []
        for ancestor_id in ancestor_ids:
            membership = remaining.get(ancestor_id)
            if membership is None or membership.is_direct:
                continue
            still_needed = any(
                other_id != ancestor_id
                and other_id in dep_map
                and is_under(dep_map[other_id].parent_path, ancestor_id)
                for other_id in remaining
            )
            if still_needed:
                continue
            department_user_crud.hard_delete(db, membership, auto_commit=False)
            remaining.pop(ancestor_id)
            removed.append(ancestor_id)
        return removed

    def _refresh_member_counts(self, db: Session, dep_ids: Iterable[str]) -> None:
        for department in department_crud.list_by_ids(db, dep_ids):
            department.member_count = department_user_crud.count_by_department(db, department.id)
            department_crud.save(db, department, auto_commit=False)

    # ------------------------------------------------------------------
    # 辅助方法
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("部门名称不能为空")
        return name

    @staticmethod
    def _child_path(parent: Department) -> str:
        try:
            return department_parent_path(parent.parent_path, parent.id)
        except ValueError as exc:
            raise ValidationError("部门 ID 不合法") from exc

    @staticmethod
    def _get_department_or_404(db: Session, dep_id: str) -> Department:
        department = department_crud.get(db, dep_id)
        if department is None:
            raise NotFoundError("部门不存在")
        return department

    @staticmethod
    def _get_user_or_404(db: Session, user_id: str) -> User:
        user = user_crud.get(db, user_id)
        if user is None:
            raise NotFoundError("用户不存在")
        return user

    @staticmethod
    def _user_name(user: Optional[User]) -> str:
        if user is None:
            return ""
        return user.name or user.username

    def _serialize(self, department: Department, leader: Optional[User] = None) -> dict[str, Any]:
        return {
            "id": department.id,
            "name": department.name,
            "parent_id": department.parent_id,
            "parent_path": department.parent_path,
            "level": department.level,
            "leader_id": department.leader_id,
            "leader": self._user_name(leader),
            "member_count": department.member_count,
            "create_time": format_datetime(department.create_time),
        }


department_service = DepartmentService()
