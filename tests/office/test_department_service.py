"""部门层级与成员级联的业务测试。"""

import pytest

from app.packages.office.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.packages.office.crud.departments import department_crud
from app.packages.office.services.department_service import department_service


def _member_count(db, dep_id: str) -> int:
    db.expire_all()
    return department_crud.get(db, dep_id).member_count


def test_create_department_cascades_leader_upward(db_session_fixture, org, memberships):
    department = department_crud.get(db_session_fixture, org.backend)
    assert department.parent_id == org.eng
    assert department.parent_path == f":{org.hq}:{org.eng}"
    assert department.level == 3

    assert memberships(org.l3) == {org.backend, org.eng, org.hq}
    assert memberships(org.l2) == {org.eng, org.hq}
    assert memberships(org.l1) == {org.hq}
    assert _member_count(db_session_fixture, org.hq) == 3
    assert _member_count(db_session_fixture, org.backend) == 1


def test_create_department_rejects_duplicate_name(db_session_fixture, org):
    with pytest.raises(ConflictError) as exc_info:
        department_service.create_department(db_session_fixture, name="Eng", leader_id=org.u)
    assert exc_info.value.msg == "已存在该部门"


def test_create_department_requires_existing_parent_and_leader(db_session_fixture, org, memberships):
    with pytest.raises(NotFoundError):
        department_service.create_department(
            db_session_fixture, name="Ghost", parent_id="missing", leader_id=org.u
        )
    with pytest.raises(NotFoundError):
        department_service.create_department(db_session_fixture, name="Ghost", leader_id="missing")

    assert department_crud.get_by_name(db_session_fixture, "Ghost") is None
    assert memberships(org.u) == set()


def test_add_user_joins_every_ancestor(db_session_fixture, org, memberships):
    department_service.add_user(db_session_fixture, org.backend, org.u)

    assert memberships(org.u) == {org.backend, org.eng, org.hq}
    assert _member_count(db_session_fixture, org.backend) == 2
    assert _member_count(db_session_fixture, org.hq) == 4


def test_add_user_twice_is_a_conflict(db_session_fixture, org):
    department_service.add_user(db_session_fixture, org.backend, org.u)
    with pytest.raises(ConflictError) as exc_info:
        department_service.add_user(db_session_fixture, org.backend, org.u)
    assert exc_info.value.msg == "该用户已在此部门中"


def test_add_unknown_user_or_department(db_session_fixture, org):
    with pytest.raises(NotFoundError):
        department_service.add_user(db_session_fixture, org.backend, "missing")
    with pytest.raises(NotFoundError):
        department_service.add_user(db_session_fixture, "missing", org.u)


def test_remove_only_membership_clears_all_ancestors(db_session_fixture, org, memberships):
    department_service.add_user(db_session_fixture, org.backend, org.u)
    department_service.remove_user(db_session_fixture, org.backend, org.u)

    assert memberships(org.u) == set()
    assert _member_count(db_session_fixture, org.hq) == 3


def test_remove_keeps_ancestor_joined_directly(db_session_fixture, org, memberships):
    department_service.add_user(db_session_fixture, org.eng, org.u)
    department_service.add_user(db_session_fixture, org.backend, org.u)

    department_service.remove_user(db_session_fixture, org.backend, org.u)

    assert memberships(org.u) == {org.eng, org.hq}


def test_joining_ancestor_after_cascade_promotes_membership(db_session_fixture, org, memberships):
    department_service.add_user(db_session_fixture, org.backend, org.u)
    # 已因 Backend 级联计入 Eng，此处转为 Eng 的直接成员
    department_service.add_user(db_session_fixture, org.eng, org.u)

    department_service.remove_user(db_session_fixture, org.backend, org.u)

    assert memberships(org.u) == {org.eng, org.hq}


def test_remove_keeps_ancestors_needed_by_sibling_branch(db_session_fixture, org, make_user, memberships):
    l4 = make_user("L4")
    frontend = department_service.create_department(
        db_session_fixture, name="Frontend", parent_id=org.eng, leader_id=l4.id
    )["data"]["id"]
    department_service.add_user(db_session_fixture, org.backend, org.u)
    department_service.add_user(db_session_fixture, frontend, org.u)

    department_service.remove_user(db_session_fixture, org.backend, org.u)

    assert memberships(org.u) == {frontend, org.eng, org.hq}


def test_remove_prunes_nearest_level_before_farther(db_session_fixture, org, make_user, memberships):
    # U 在 HQ 下另有一个分支 Sales，Eng 不再需要而 HQ 仍需要
    l5 = make_user("L5")
    sales = department_service.create_department(
        db_session_fixture, name="Sales", parent_id=org.hq, leader_id=l5.id
    )["data"]["id"]
    department_service.add_user(db_session_fixture, org.backend, org.u)
    department_service.add_user(db_session_fixture, sales, org.u)

    department_service.remove_user(db_session_fixture, org.backend, org.u)

    assert memberships(org.u) == {sales, org.hq}


@pytest.mark.parametrize("dep_attr, leader_attr", [("hq", "l1"), ("eng", "l2"), ("backend", "l3")])
def test_leader_cannot_be_removed(db_session_fixture, org, memberships, dep_attr, leader_attr):
    dep_id, leader_id = getattr(org, dep_attr), getattr(org, leader_attr)
    before = memberships(leader_id)

    with pytest.raises(ForbiddenError) as exc_info:
        department_service.remove_user(db_session_fixture, dep_id, leader_id)

    assert exc_info.value.msg == "不能删除部门负责人"
    assert memberships(leader_id) == before


def test_remove_non_member_fails(db_session_fixture, org):
    with pytest.raises(NotFoundError) as exc_info:
        department_service.remove_user(db_session_fixture, org.backend, org.u)
    assert exc_info.value.msg == "该用户不在此部门中"


def test_delete_department_with_members_is_rejected(db_session_fixture, org):
    department_service.add_user(db_session_fixture, org.backend, org.u)
    with pytest.raises(InvalidStateError):
        department_service.delete_department(db_session_fixture, org.backend)
    assert department_crud.get(db_session_fixture, org.backend) is not None


def test_delete_department_releases_leader(db_session_fixture, org, memberships):
    department_service.delete_department(db_session_fixture, org.backend)

    db_session_fixture.expire_all()
    assert department_crud.get(db_session_fixture, org.backend) is None
    assert memberships(org.l3) == set()
    assert memberships(org.l2) == {org.eng, org.hq}
    assert _member_count(db_session_fixture, org.eng) == 1


def test_delete_department_keeps_leader_where_still_needed(db_session_fixture, org, memberships):
    ops = department_service.create_department(
        db_session_fixture, name="Ops", parent_id=org.hq, leader_id=org.l2
    )["data"]["id"]
    assert memberships(org.l2) == {org.eng, ops, org.hq}

    department_service.delete_department(db_session_fixture, ops)

    assert memberships(org.l2) == {org.eng, org.hq}


def test_delete_missing_department_is_idempotent(db_session_fixture, org):
    department_service.delete_department(db_session_fixture, org.backend)
    payload = department_service.delete_department(db_session_fixture, org.backend)
    assert payload["code"] == 200


def test_edit_department_rename_and_conflict(db_session_fixture, org):
    payload = department_service.edit_department(db_session_fixture, org.backend, name="Platform")
    assert payload["data"]["name"] == "Platform"
    assert payload["data"]["parent_path"] == f":{org.hq}:{org.eng}"

    with pytest.raises(ConflictError):
        department_service.edit_department(db_session_fixture, org.backend, name="HQ")

    # 保持原名视为合法
    department_service.edit_department(db_session_fixture, org.backend, name="Platform")


def test_edit_department_reparent_recomputes_own_path(db_session_fixture, org):
    payload = department_service.edit_department(
        db_session_fixture, org.backend, name="Backend", parent_id=org.hq
    )
    assert payload["data"]["parent_id"] == org.hq
    assert payload["data"]["parent_path"] == f":{org.hq}"


def test_edit_department_rejects_cycles(db_session_fixture, org):
    with pytest.raises(ValidationError):
        department_service.edit_department(db_session_fixture, org.hq, name="HQ", parent_id=org.hq)
    with pytest.raises(ValidationError):
        department_service.edit_department(db_session_fixture, org.hq, name="HQ", parent_id=org.backend)


def test_edit_department_new_leader_joins(db_session_fixture, org, memberships):
    department_service.edit_department(db_session_fixture, org.backend, name="Backend", leader_id=org.u)

    assert department_crud.get(db_session_fixture, org.backend).leader_id == org.u
    assert memberships(org.u) == {org.backend, org.eng, org.hq}
    with pytest.raises(ForbiddenError):
        department_service.remove_user(db_session_fixture, org.backend, org.u)


def test_resolve_primary_department_prefers_deepest(db_session_fixture, org):
    department_service.add_user(db_session_fixture, org.backend, org.u)
    primary = department_service.resolve_primary_department(db_session_fixture, org.u)
    assert primary.id == org.backend


def test_resolve_primary_department_tie_breaks_on_lowest_id(db_session_fixture, org, make_user):
    l4 = make_user("L4")
    frontend = department_service.create_department(
        db_session_fixture, name="Frontend", parent_id=org.eng, leader_id=l4.id
    )["data"]["id"]
    department_service.add_user(db_session_fixture, frontend, org.u)
    department_service.add_user(db_session_fixture, org.backend, org.u)

    for _ in range(3):
        primary = department_service.resolve_primary_department(db_session_fixture, org.u)
        assert primary.id == min(frontend, org.backend)


def test_resolve_primary_department_without_membership(db_session_fixture, org):
    assert department_service.resolve_primary_department(db_session_fixture, org.u) is None


def test_set_users_reports_failures_and_continues(db_session_fixture, org, make_user, memberships):
    other = make_user("Other")
    department_service.add_user(db_session_fixture, org.backend, other.id)

    payload = department_service.set_users(
        db_session_fixture, org.backend, [org.u, "missing", org.l3]
    )

    data = payload["data"]
    assert data["added"] == [org.u]
    assert data["removed"] == [other.id]
    assert data["failed"] == [{"user_id": "missing", "action": "add", "msg": "用户不存在"}]
    assert memberships(org.u) == {org.backend, org.eng, org.hq}
    assert memberships(other.id) == set()


def test_remove_from_ancestor_while_in_child_is_rejected(db_session_fixture, org, memberships):
    department_service.add_user(db_session_fixture, org.backend, org.u)

    with pytest.raises(InvalidStateError) as exc_info:
        department_service.remove_user(db_session_fixture, org.eng, org.u)

    assert exc_info.value.msg == "该用户仍在下级部门中，不能移出该部门"
    assert memberships(org.u) == {org.backend, org.eng, org.hq}


def test_remove_direct_ancestor_membership_while_in_child_keeps_closure(db_session_fixture, org, memberships):
    department_service.add_user(db_session_fixture, org.eng, org.u)
    department_service.add_user(db_session_fixture, org.backend, org.u)

    department_service.remove_user(db_session_fixture, org.eng, org.u)
    assert memberships(org.u) == {org.backend, org.eng, org.hq}
    assert _member_count(db_session_fixture, org.eng) == 3

    # Eng 已不再是直接成员，离开 Backend 后一并回收
    department_service.remove_user(db_session_fixture, org.backend, org.u)
    assert memberships(org.u) == set()


def test_set_users_keeps_members_of_sub_departments(db_session_fixture, org, memberships):
    department_service.add_user(db_session_fixture, org.backend, org.u)

    payload = department_service.set_users(db_session_fixture, org.eng, [org.l2])

    assert payload["data"] == {"added": [], "removed": [], "failed": []}
    assert memberships(org.u) == {org.backend, org.eng, org.hq}
    assert memberships(org.l3) == {org.backend, org.eng, org.hq}
    assert _member_count(db_session_fixture, org.eng) == 3


def test_set_users_never_removes_leader(db_session_fixture, org, memberships):
    department_service.add_user(db_session_fixture, org.backend, org.u)

    payload = department_service.set_users(db_session_fixture, org.backend, [])

    assert payload["data"]["removed"] == [org.u]
    assert memberships(org.l3) == {org.backend, org.eng, org.hq}
    assert _member_count(db_session_fixture, org.backend) == 1


def test_tree_nests_children_with_members(db_session_fixture, org):
    department_service.add_user(db_session_fixture, org.backend, org.u)

    roots = department_service.tree(db_session_fixture)["data"]

    assert [node["name"] for node in roots] == ["HQ"]
    hq = roots[0]
    assert hq["leader"] == "L1"
    assert hq["member_count"] == 4
    eng = hq["children"][0]
    assert eng["name"] == "Eng"
    backend = eng["children"][0]
    assert backend["name"] == "Backend"
    assert backend["children"] == []
    assert {item["user_name"] for item in backend["users"]} == {"L3", "U"}


def test_user_department_info_returns_ancestor_chain(db_session_fixture, org):
    department_service.add_user(db_session_fixture, org.backend, org.u)

    root = department_service.user_department_info(db_session_fixture, org.u)["data"]

    assert root["id"] == org.hq
    assert root["children"][0]["id"] == org.eng
    assert root["children"][0]["children"][0]["id"] == org.backend
    assert root["children"][0]["children"][0]["children"] == []


def test_user_department_info_without_department(db_session_fixture, org):
    with pytest.raises(InvalidStateError) as exc_info:
        department_service.user_department_info(db_session_fixture, org.u)
    assert exc_info.value.msg == "用户未关联任何部门"
