"""
数据模型模块

职责：
- 定义 PDF 碎片、版面行、交易行、司机报表等结构
- 司机报表的累加（Report Aggregator）
- 不做任何 PDF 读取或匹配逻辑
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, NamedTuple


class MatchType(str, Enum):
    """费率的解析方式"""

    EXACT = "EXACT"
    FUZZY = "FUZZY"
    NONE = "NONE"


class TextFragment(NamedTuple):
    """
    PDF 页面上的一个文本碎片。

    y 轴向上（页面顶部 y 最大），与 PDF 用户坐标一致。
    """

    x: float
    y: float
    text: str


@dataclass(frozen=True)
class LayoutRow:
    """版面重建后的一行：从左到右的单元格文本"""

    y: float
    tokens: List[str]

    @property
    def line_text(self) -> str:
        return " ".join(self.tokens)


@dataclass(frozen=True)
class TripRow:
    """通过行形状校验的交易行（尚未匹配费率）"""

    truck: str
    date: str
    pickup: str
    drop: str
    do_number: str
    eff_wt: float
    original_eff_rt: float
    original_comm: float
    ot: str


@dataclass(frozen=True)
class Transaction:
    """
    已解析费率的交易记录。

    不变量：
        new_comm == eff_wt * new_eff_rt
        diff == new_comm - original_comm
    """

    truck: str
    date: str
    pickup: str
    drop: str
    do_number: str
    eff_wt: float
    original_eff_rt: float
    new_eff_rt: float
    original_comm: float
    new_comm: float
    diff: float
    ot: str
    match_type: MatchType
    matched_pickup: Optional[str] = None
    matched_drop: Optional[str] = None

    @property
    def route(self) -> str:
        return f"{self.pickup} → {self.drop}"

    def to_dict(self) -> dict:
        return {
            "truck": self.truck,
            "date": self.date,
            "pickup": self.pickup,
            "drop": self.drop,
            "do_number": self.do_number,
            "eff_wt": self.eff_wt,
            "original_eff_rt": self.original_eff_rt,
            "new_eff_rt": self.new_eff_rt,
            "original_comm": self.original_comm,
            "new_comm": self.new_comm,
            "diff": self.diff,
            "ot": self.ot,
            "match_type": self.match_type.value,
            "matched_pickup": self.matched_pickup,
            "matched_drop": self.matched_drop,
        }


@dataclass
class DriverReport:
    """
    单个司机的报表。

    生命周期：遇到 "Driver Name :" 行时创建，之后的交易行依次追加，
    遇到下一个司机标记或文档结束时关闭。
    """

    driver_name: str
    transactions: List[Transaction] = field(default_factory=list)
    total_original_comm: float = 0.0
    total_new_comm: float = 0.0
    mismatched_trips: int = 0
    fuzzy_trips: int = 0

    def add_transaction(self, txn: Transaction) -> None:
        """追加交易并更新累计值（只做求和，不做平均）"""
        self.transactions.append(txn)
        self.total_original_comm += txn.original_comm
        self.total_new_comm += txn.new_comm

        if txn.match_type == MatchType.NONE:
            self.mismatched_trips += 1
        elif txn.match_type == MatchType.FUZZY:
            self.fuzzy_trips += 1

    @property
    def total_diff(self) -> float:
        return self.total_new_comm - self.total_original_comm

    def to_dict(self) -> dict:
        return {
            "driver_name": self.driver_name,
            "transactions": [t.to_dict() for t in self.transactions],
            "total_original_comm": self.total_original_comm,
            "total_new_comm": self.total_new_comm,
            "mismatched_trips": self.mismatched_trips,
            "fuzzy_trips": self.fuzzy_trips,
        }


@dataclass(frozen=True)
class AuditSummary:
    """全部司机报表的汇总"""

    total_drivers: int
    total_trips: int
    exact_trips: int
    fuzzy_trips: int
    mismatched_trips: int
    total_original_comm: float
    total_new_comm: float
    missing_routes: List[str]


def summarize_reports(reports: List[DriverReport]) -> AuditSummary:
    """
    汇总所有司机报表。

    Args:
        reports: 已关闭的司机报表列表

    Returns:
        AuditSummary，missing_routes 为去重排序后的 "PICKUP → DROP" 列表
    """
    trips = sum(len(r.transactions) for r in reports)
    fuzzy = sum(r.fuzzy_trips for r in reports)
    mismatched = sum(r.mismatched_trips for r in reports)

    routes = set()
    for report in reports:
        for txn in report.transactions:
            if txn.match_type == MatchType.NONE:
                routes.add(txn.route)

    return AuditSummary(
        total_drivers=len(reports),
        total_trips=trips,
        exact_trips=trips - fuzzy - mismatched,
        fuzzy_trips=fuzzy,
        mismatched_trips=mismatched,
        total_original_comm=sum(r.total_original_comm for r in reports),
        total_new_comm=sum(r.total_new_comm for r in reports),
        missing_routes=sorted(routes),
    )
