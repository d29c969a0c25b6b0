"""测试夹具：为 pytest 提供数据库与客户端的共享配置。"""

import os
import uuid
from types import SimpleNamespace
from typing import Callable, Generator

TEST_DB_PATH = os.path.join(os.path.dirname(__file__), "test.db")
TEST_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"

# 必须在导入应用之前设置，确保引擎与会话后端使用测试配置
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("APP_ACTIVE_PACKAGE", "office")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from app.main import app  # noqa: E402
from app.packages.office.core.constants import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME  # noqa: E402
from app.packages.office.core.dependencies import get_db  # noqa: E402
from app.packages.office.core.security import get_password_hash  # noqa: E402
from app.packages.office.crud.users import user_crud  # noqa: E402
from app.packages.office.db import session as db_session  # noqa: E402
from app.packages.office.db.init_db import init_db  # noqa: E402
from app.packages.office.models import (  # noqa: E402
    Approval,
    ApprovalParticipant,
    Department,
    DepartmentUser,
    User,
)
from app.packages.office.models.base import Base  # noqa: E402
from app.packages.office.services.department_service import department_service  # noqa: E402

TEST_PASSWORD = "secret123"
_TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)

    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal

    Base.metadata.create_all(bind=engine)
    init_db()
    yield

    engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话，用例结束后清空业务数据（保留管理员）。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for model in (ApprovalParticipant, Approval, DepartmentUser, Department):
            session.query(model).delete(synchronize_session=False)
        session.query(User).filter(User.username != DEFAULT_ADMIN_USERNAME).delete(synchronize_session=False)
        session.commit()
        session.close()


@pytest.fixture()
def client(db_session_fixture):
    """构建 FastAPI TestClient，并注入测试专用的数据库依赖。"""
    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session_fixture: Session) -> Callable[..., User]:
    """创建测试用户的工厂，密码统一为 ``TEST_PASSWORD``。"""

    def _make(name: str) -> User:
        return user_crud.create(
            db_session_fixture,
            {
                "username": f"{name.lower()}_{uuid.uuid4().hex[:8]}",
                "name": name,
                "hashed_password": _TEST_PASSWORD_HASH,
                "is_active": True,
            },
        )

    return _make


@pytest.fixture()
def org(db_session_fixture: Session, make_user) -> SimpleNamespace:
    """三级部门树：HQ(L1) -> Eng(L2) -> Backend(L3)，以及尚未加入任何部门的员工 U。"""
    db = db_session_fixture
    l1, l2, l3, u = make_user("L1"), make_user("L2"), make_user("L3"), make_user("U")

    hq = department_service.create_department(db, name="HQ", leader_id=l1.id)["data"]
    eng = department_service.create_department(db, name="Eng", parent_id=hq["id"], leader_id=l2.id)["data"]
    backend = department_service.create_department(
        db, name="Backend", parent_id=eng["id"], leader_id=l3.id
    )["data"]

    return SimpleNamespace(
        l1=l1.id,
        l2=l2.id,
        l3=l3.id,
        u=u.id,
        hq=hq["id"],
        eng=eng["id"],
        backend=backend["id"],
    )


@pytest.fixture()
def memberships(db_session_fixture: Session) -> Callable[[str], set[str]]:
    """返回“查询用户当前计入的部门 ID 集合”的函数。"""

    def _memberships(user_id: str) -> set[str]:
        db_session_fixture.expire_all()
        query = db_session_fixture.query(DepartmentUser).filter(DepartmentUser.user_id == user_id)
        return {item.dep_id for item in query}

    return _memberships


@pytest.fixture()
def auth_headers(client: TestClient, db_session_fixture: Session) -> Callable[[str], dict[str, str]]:
    """以指定用户登录并返回带访问令牌的请求头；传入 ``"admin"`` 时使用管理员账号。"""

    def _headers(user_id: str) -> dict[str, str]:
        if user_id == DEFAULT_ADMIN_USERNAME:
            username, password = DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD
        else:
            username, password = user_crud.get(db_session_fixture, user_id).username, TEST_PASSWORD
        response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        token = response.json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _headers
