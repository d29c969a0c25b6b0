"""审批路由定义。"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.packages.office.api.v1.schemas.approvals import (
    ApprovalCreateRequest,
    ApprovalCreateResponse,
    ApprovalDisposeRequest,
    ApprovalInfoResponse,
    ApprovalListResponse,
    ApprovalStateResponse,
)
from app.packages.office.core.dependencies import get_current_active_user, get_db
from app.packages.office.models.user import User
from app.packages.office.services.approval_service import approval_service

router = APIRouter(prefix="/approvals", tags=["approvals"])


@router.post("", response_model=ApprovalCreateResponse)
def create_approval(
    payload: ApprovalCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ApprovalCreateResponse:
    """以当前用户为申请人创建审批。"""
    return approval_service.create(
        db,
        requester_id=current_user.id,
        approval_type=payload.type,
        detail=payload.detail,
        reason=payload.reason,
    )


@router.get("", response_model=ApprovalListResponse)
def list_approvals(
    option: Optional[int] = Query(None, description="1 我提交的，2 我审核的，缺省为全部"),
    type: Optional[int] = Query(None, description="审批类型"),
    status: Optional[int] = Query(None, description="审批状态"),
    page: int = Query(1, ge=1, description="页码，从 1 开始"),
    page_size: int = Query(20, ge=1, le=200, description="每页数量"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ApprovalListResponse:
    return approval_service.list_approvals(
        db,
        user_id=current_user.id,
        option=option,
        approval_type=type,
        status=status,
        page=page,
        page_size=page_size,
    )


@router.get("/{approval_id}", response_model=ApprovalInfoResponse)
def read_approval(
    approval_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ApprovalInfoResponse:
    return approval_service.info(db, approval_id=approval_id, user_id=current_user.id)


@router.put("/{approval_id}/dispose", response_model=ApprovalStateResponse)
def dispose_approval(
    approval_id: str,
    payload: ApprovalDisposeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ApprovalStateResponse:
    """通过、拒绝或撤销审批。"""
    return approval_service.dispose(
        db,
        approval_id=approval_id,
        user_id=current_user.id,
        status=payload.status,
        reason=payload.reason,
    )
