"""审批详情：请假、外出、补卡三类详情及其摘要生成。

详情以 ``kind`` 字段区分，创建审批时解析一次并以 JSON 形式保存。
每类详情对应一个 ``DetailHandler``，由 ``default_detail_handlers()`` 组装后
注入 ``ApprovalService``。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, computed_field, model_validator

from app.packages.office.core.enums import (
    ApprovalTypeEnum,
    LeaveTypeEnum,
    TimeFormatTypeEnum,
    WorkCheckTypeEnum,
)
from app.packages.office.core.timezone import format_timestamp_date


class _TimeRangeMixin(BaseModel):
    start_time: int = Field(..., ge=0, description="开始时间（Unix 秒）")
    end_time: int = Field(..., ge=0, description="结束时间（Unix 秒）")

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_time < self.start_time:
            raise ValueError("结束时间不能早于开始时间")
        return self


class LeaveDetail(_TimeRangeMixin):
    kind: Literal["leave"] = "leave"
    type: LeaveTypeEnum = Field(..., description="请假类型")
    reason: str = Field(default="", max_length=500)
    time_type: TimeFormatTypeEnum = Field(default=TimeFormatTypeEnum.DAY, description="时长单位")


class GoOutDetail(_TimeRangeMixin):
    kind: Literal["go_out"] = "go_out"
    reason: str = Field(default="", max_length=500)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration(self) -> float:
        """外出时长（小时）。"""
        return round((self.end_time - self.start_time) / 3600.0, 2)


class MakeCardDetail(BaseModel):
    kind: Literal["make_card"] = "make_card"
    date: int = Field(..., ge=0, description="补卡日期（Unix 秒）")
    reason: str = Field(default="", max_length=500)
    day: int = Field(default=0, ge=0)
    check_type: WorkCheckTypeEnum = Field(default=WorkCheckTypeEnum.ON_WORK)


ApprovalDetail = Annotated[Union[LeaveDetail, GoOutDetail, MakeCardDetail], Field(discriminator="kind")]

_detail_adapter: TypeAdapter = TypeAdapter(ApprovalDetail)


def parse_detail(value: Any) -> Optional[BaseModel]:
    """接受详情模型、字典或 ``None``，统一转换为详情模型。"""
    if value is None or isinstance(value, (LeaveDetail, GoOutDetail, MakeCardDetail)):
        return value
    return _detail_adapter.validate_python(value)


@dataclass(frozen=True)
class DetailHandler:
    """某一类详情对应的审批类型与摘要生成函数。"""

    approval_type: ApprovalTypeEnum
    build_abstract: Callable[[Any], str]


def _leave_abstract(detail: LeaveDetail) -> str:
    return "【{}】: 【{}】-【{}】".format(
        detail.type.label,
        format_timestamp_date(detail.start_time),
        format_timestamp_date(detail.end_time),
    )


def _go_out_abstract(detail: GoOutDetail) -> str:
    return f"【{format_timestamp_date(detail.start_time)}】-【{format_timestamp_date(detail.end_time)}】"


def _make_card_abstract(detail: MakeCardDetail) -> str:
    return f"【{format_timestamp_date(detail.date)}】【{detail.reason}】"


def default_detail_handlers() -> Dict[type, DetailHandler]:
    return {
        LeaveDetail: DetailHandler(ApprovalTypeEnum.LEAVE, _leave_abstract),
        GoOutDetail: DetailHandler(ApprovalTypeEnum.GO_OUT, _go_out_abstract),
        MakeCardDetail: DetailHandler(ApprovalTypeEnum.MAKE_CARD, _make_card_abstract),
    }
