"""审批接口的集成测试用例。"""

import pytest
from fastapi.testclient import TestClient

from app.packages.office.core.enums import ApprovalStatusEnum, ApprovalTypeEnum
from app.packages.office.services.department_service import department_service


@pytest.fixture()
def member(db_session_fixture, org):
    department_service.add_user(db_session_fixture, org.backend, org.u)
    return org


def _submit(client: TestClient, headers: dict, **body) -> str:
    body.setdefault("type", ApprovalTypeEnum.UNIVERSAL.value)
    response = client.post("/api/v1/approvals", json=body, headers=headers)
    assert response.status_code == 200, response.json()
    return response.json()["data"]["id"]


def test_submit_and_approve_through_chain(client: TestClient, member, auth_headers):
    approval_id = _submit(client, auth_headers(member.u), reason="出差")

    for approver in (member.l3, member.l2, member.l1):
        response = client.put(
            f"/api/v1/approvals/{approval_id}/dispose",
            json={"status": ApprovalStatusEnum.PASS.value},
            headers=auth_headers(approver),
        )
        assert response.status_code == 200

    assert response.json()["data"]["status"] == ApprovalStatusEnum.PASS
    info = client.get(f"/api/v1/approvals/{approval_id}", headers=auth_headers(member.u)).json()["data"]
    assert info["status_name"] == "通过"
    assert info["reason"] == "出差"
    assert info["participants"] == [member.u, member.l3, member.l2, member.l1]


def test_wrong_approver_is_forbidden(client: TestClient, member, auth_headers):
    approval_id = _submit(client, auth_headers(member.u))

    response = client.put(
        f"/api/v1/approvals/{approval_id}/dispose",
        json={"status": ApprovalStatusEnum.PASS.value},
        headers=auth_headers(member.l1),
    )

    assert response.status_code == 403
    assert response.json()["msg"] == "审核用户错误"


def test_submit_leave_with_detail(client: TestClient, member, auth_headers):
    detail = {"kind": "leave", "type": 4, "start_time": 1700000000, "end_time": 1700172800}
    approval_id = _submit(client, auth_headers(member.u), type=ApprovalTypeEnum.LEAVE.value, detail=detail)

    info = client.get(f"/api/v1/approvals/{approval_id}", headers=auth_headers(member.l3)).json()["data"]
    assert info["title"] == "U 提交的 请假审批"
    assert info["abstract"].startswith("【年假】")
    assert info["detail"]["type"] == 4


def test_submit_mismatched_detail(client: TestClient, member, auth_headers):
    response = client.post(
        "/api/v1/approvals",
        json={"type": ApprovalTypeEnum.GO_OUT.value, "detail": {"kind": "make_card", "date": 1700000000}},
        headers=auth_headers(member.u),
    )

    assert response.status_code == 422
    assert response.json()["msg"] == "审批详情与审批类型不匹配"


def test_submit_without_department(client: TestClient, org, auth_headers):
    response = client.post("/api/v1/approvals", json={"type": 1}, headers=auth_headers(org.u))

    assert response.status_code == 400
    assert response.json()["msg"] == "用户未关联任何部门"


def test_list_submitted_and_audited(client: TestClient, member, auth_headers):
    approval_id = _submit(client, auth_headers(member.u))

    submitted = client.get("/api/v1/approvals", params={"option": 1}, headers=auth_headers(member.u)).json()["data"]
    assert submitted["count"] == 1
    assert submitted["list"][0]["id"] == approval_id

    audited = client.get("/api/v1/approvals", params={"option": 2}, headers=auth_headers(member.l2)).json()["data"]
    assert [item["id"] for item in audited["list"]] == [approval_id]

    outsider = client.get(f"/api/v1/approvals/{approval_id}", headers=auth_headers("admin"))
    assert outsider.status_code == 403


def test_requester_cancels(client: TestClient, member, auth_headers):
    approval_id = _submit(client, auth_headers(member.u))

    response = client.put(
        f"/api/v1/approvals/{approval_id}/dispose",
        json={"status": ApprovalStatusEnum.CANCEL.value},
        headers=auth_headers(member.u),
    )

    assert response.status_code == 200
    assert response.json()["msg"] == "撤销审批成功"
    assert response.json()["data"]["status"] == ApprovalStatusEnum.CANCEL
