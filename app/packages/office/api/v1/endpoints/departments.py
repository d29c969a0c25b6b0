"""部门管理路由定义。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.office.api.v1.schemas.departments import (
    DepartmentChainResponse,
    DepartmentCreateRequest,
    DepartmentDeletionResponse,
    DepartmentResponse,
    DepartmentTreeResponse,
    DepartmentUpdateRequest,
    DepartmentUserAddRequest,
    DepartmentUsersSetRequest,
    MembershipResponse,
    SetUsersResponse,
)
from app.packages.office.core.dependencies import get_current_active_user, get_db
from app.packages.office.models.user import User
from app.packages.office.services.department_service import department_service

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("/tree", response_model=DepartmentTreeResponse)
def read_department_tree(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> DepartmentTreeResponse:
    """以树形结构返回全部部门（含负责人、成员与子部门）。"""
    return department_service.tree(db)


@router.get("/users/{user_id}", response_model=DepartmentChainResponse)
def read_user_department(
    user_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> DepartmentChainResponse:
    """返回用户所属部门及其上级链路。"""
    return department_service.user_department_info(db, user_id)


@router.get("/{dep_id}", response_model=DepartmentResponse)
def read_department(
    dep_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> DepartmentResponse:
    return department_service.info(db, dep_id)


@router.post("", response_model=DepartmentResponse)
def create_department(
    payload: DepartmentCreateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> DepartmentResponse:
    return department_service.create_department(
        db,
        name=payload.name,
        parent_id=payload.parent_id,
        level=payload.level,
        leader_id=payload.leader_id,
    )


@router.put("/{dep_id}", response_model=DepartmentResponse)
def update_department(
    dep_id: str,
    payload: DepartmentUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> DepartmentResponse:
    return department_service.edit_department(
        db,
        dep_id,
        name=payload.name,
        parent_id=payload.parent_id,
        level=payload.level,
        leader_id=payload.leader_id,
    )


@router.delete("/{dep_id}", response_model=DepartmentDeletionResponse)
def delete_department(
    dep_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> DepartmentDeletionResponse:
    return department_service.delete_department(db, dep_id)


@router.put("/{dep_id}/users", response_model=SetUsersResponse)
def set_department_users(
    dep_id: str,
    payload: DepartmentUsersSetRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> SetUsersResponse:
    """将部门成员调整为给定列表，失败的单项会在 ``failed`` 中返回。"""
    return department_service.set_users(db, dep_id, payload.user_ids)


@router.post("/{dep_id}/users", response_model=MembershipResponse)
def add_department_user(
    dep_id: str,
    payload: DepartmentUserAddRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> MembershipResponse:
    return department_service.add_user(db, dep_id, payload.user_id)


@router.delete("/{dep_id}/users/{user_id}", response_model=MembershipResponse)
def remove_department_user(
    dep_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> MembershipResponse:
    return department_service.remove_user(db, dep_id, user_id)
