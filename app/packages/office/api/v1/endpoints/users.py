"""用户管理路由定义。"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.packages.office.api.v1.schemas.users import (
    UserCreateRequest,
    UserListResponse,
    UserProfileResponse,
    UserResponse,
)
from app.packages.office.core.dependencies import get_current_active_user, get_db
from app.packages.office.models.user import User
from app.packages.office.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse)
def create_user(
    payload: UserCreateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> UserResponse:
    return user_service.create_user(db, username=payload.username, password=payload.password, name=payload.name)


@router.get("", response_model=UserListResponse)
def list_users(
    name: Optional[str] = Query(None, description="姓名或用户名模糊匹配"),
    page: int = Query(1, ge=1, description="页码，从 1 开始"),
    page_size: int = Query(20, ge=1, le=200, description="每页数量"),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> UserListResponse:
    return user_service.list_users(db, name=name, page=page, page_size=page_size)


@router.get("/me", response_model=UserProfileResponse)
def read_current_user(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UserProfileResponse:
    """获取当前登录用户的信息及所属部门。"""
    return user_service.build_user_profile(db, current_user)


@router.get("/{user_id}", response_model=UserResponse)
def read_user(
    user_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> UserResponse:
    return user_service.get_user(db, user_id=user_id)
