"""认证与用户接口的集成测试用例。"""

from fastapi.testclient import TestClient


def test_login_success(client: TestClient):
    """登录流程：正确凭证应返回访问令牌。"""
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "admin123"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["code"] == 200
    assert payload["data"]["token_type"] == "bearer"
    assert payload["data"]["access_token"]


def test_login_invalid_credentials(client: TestClient):
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "wrongpassword"})

    assert response.status_code == 401
    assert response.json()["msg"] == "用户名或密码错误"


def test_current_user_requires_token(client: TestClient):
    response = client.get("/api/v1/users/me")

    assert response.status_code == 401
    payload = response.json()
    assert payload["code"] == 401
    assert payload["msg"] == "缺少认证信息"


def test_current_user_with_department(client: TestClient, org, auth_headers):
    """登录后的个人信息应包含其实际所属的部门。"""
    response = client.get("/api/v1/users/me", headers=auth_headers(org.l3))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == org.l3
    assert data["department"] == {"id": org.backend, "name": "Backend"}


def test_logout_invalidates_session(client: TestClient, auth_headers):
    headers = auth_headers("admin")

    response = client.post("/api/v1/auth/logout", headers=headers)
    assert response.status_code == 200
    assert response.json()["msg"] == "退出登录成功"

    response = client.get("/api/v1/users/me", headers=headers)
    assert response.status_code == 401


def test_create_and_search_users(client: TestClient, auth_headers):
    headers = auth_headers("admin")

    response = client.post(
        "/api/v1/users",
        json={"username": "zhangsan", "password": "zhangsan123", "name": "张三"},
        headers=headers,
    )
    assert response.status_code == 200
    user_id = response.json()["data"]["id"]

    duplicate = client.post(
        "/api/v1/users",
        json={"username": "zhangsan", "password": "zhangsan123"},
        headers=headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["msg"] == "用户名已存在"

    listing = client.get("/api/v1/users", params={"name": "张"}, headers=headers).json()["data"]
    assert [item["id"] for item in listing["list"]] == [user_id]


def test_access_token_header_is_returned(client: TestClient, auth_headers):
    """登录与已认证请求都应在 ``X-Access-Token`` 响应头中返回可用的令牌。"""
    login = client.post("/api/v1/auth/login", json={"username": "admin", "password": "admin123"})
    assert login.headers.get("X-Access-Token") == login.json()["data"]["access_token"]

    response = client.get("/api/v1/users/me", headers=auth_headers("admin"))
    refreshed = response.headers.get("X-Access-Token")
    assert refreshed

    again = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {refreshed}"})
    assert again.status_code == 200
