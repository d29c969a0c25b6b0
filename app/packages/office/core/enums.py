"""枚举定义：约束审批类型、审批状态以及各类审批详情的可选值。"""

from enum import IntEnum


class ApprovalStatusEnum(IntEnum):
    """审批状态：0 未开始，1 处理中，2 通过，3 拒绝，4 撤销，5 自动通过。"""

    NOT_STARTED = 0
    PROCESSING = 1
    PASS = 2
    REFUSE = 3
    CANCEL = 4
    AUTO_PASS = 5

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in {
            ApprovalStatusEnum.PASS,
            ApprovalStatusEnum.REFUSE,
            ApprovalStatusEnum.CANCEL,
            ApprovalStatusEnum.AUTO_PASS,
        }


_STATUS_LABELS = {
    ApprovalStatusEnum.NOT_STARTED: "未开始",
    ApprovalStatusEnum.PROCESSING: "处理中",
    ApprovalStatusEnum.PASS: "通过",
    ApprovalStatusEnum.REFUSE: "拒绝",
    ApprovalStatusEnum.CANCEL: "撤销",
    ApprovalStatusEnum.AUTO_PASS: "自动通过",
}


class ApprovalTypeEnum(IntEnum):
    """审批类型编号。"""

    UNIVERSAL = 1
    LEAVE = 2
    MAKE_CARD = 3
    GO_OUT = 4
    REIMBURSE = 5
    PAYMENT = 6
    BUYER = 7
    PROCEEDS = 8
    POSITIVE = 9
    DIMISSION = 10
    OVERTIME = 11
    BUYER_CONTRACT = 12

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]


_TYPE_LABELS = {
    ApprovalTypeEnum.UNIVERSAL: "通用审批",
    ApprovalTypeEnum.LEAVE: "请假审批",
    ApprovalTypeEnum.MAKE_CARD: "补卡审批",
    ApprovalTypeEnum.GO_OUT: "外出审批",
    ApprovalTypeEnum.REIMBURSE: "报销审批",
    ApprovalTypeEnum.PAYMENT: "付款审批",
    ApprovalTypeEnum.BUYER: "采购审批",
    ApprovalTypeEnum.PROCEEDS: "收款审批",
    ApprovalTypeEnum.POSITIVE: "转正审批",
    ApprovalTypeEnum.DIMISSION: "离职审批",
    ApprovalTypeEnum.OVERTIME: "加班审批",
    ApprovalTypeEnum.BUYER_CONTRACT: "采购合同审批",
}


class LeaveTypeEnum(IntEnum):
    MATTER = 1
    REST = 2
    FALL = 3
    ANNUAL = 4
    MATERNITY = 5
    PATERNITY = 6
    MARRIAGE = 7
    FUNERAL = 8
    BREASTFEEDING = 9

    @property
    def label(self) -> str:
        return _LEAVE_LABELS[self]


_LEAVE_LABELS = {
    LeaveTypeEnum.MATTER: "事假",
    LeaveTypeEnum.REST: "调休",
    LeaveTypeEnum.FALL: "病假",
    LeaveTypeEnum.ANNUAL: "年假",
    LeaveTypeEnum.MATERNITY: "产假",
    LeaveTypeEnum.PATERNITY: "陪产假",
    LeaveTypeEnum.MARRIAGE: "婚假",
    LeaveTypeEnum.FUNERAL: "丧假",
    LeaveTypeEnum.BREASTFEEDING: "哺乳假",
}


class WorkCheckTypeEnum(IntEnum):
    """打卡类型：1 上班卡，2 下班卡。"""

    ON_WORK = 1
    OFF_WORK = 2


class TimeFormatTypeEnum(IntEnum):
    """请假时长单位：1 小时，2 天。"""

    HOUR = 1
    DAY = 2


class ApprovalOptionEnum(IntEnum):
    """审批列表视角：1 我提交的，2 我审核的。"""

    SUBMIT = 1
    AUDIT = 2
