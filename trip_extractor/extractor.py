"""
司机分段抽取模块

职责：
- 按文档顺序扫描重建后的行，识别 "Driver Name :" 分段标记
- 行形状校验：区分交易行与噪声行（标题、页脚、表头）
- 按固定列位置抽取交易字段
- 只做抽取，费率匹配由调用方传入的 resolve 完成
"""

import re
import math
import logging
from typing import List, Optional, Callable, Iterable, NamedTuple, Tuple

from .models import LayoutRow, TripRow, Transaction, DriverReport
from .reader import read_pdf_fragments
from .preprocessor import group_document_rows, ROW_TOLERANCE

logger = logging.getLogger("pdf_text")

DRIVER_MARKER = "Driver Name :"
UNKNOWN_DRIVER = "Unknown"

DATE_RE = re.compile(r"\d{2}-\d{2}-\d{4}")
NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)")

MIN_TRIP_TOKENS = 8
FULL_WIDTH_TOKENS = 11
COMM_INDEX = 9

Resolver = Callable[[TripRow], Transaction]


class SegmentState(NamedTuple):
    """分段扫描的折叠状态：当前打开的司机 + 已关闭的报表"""

    current: Optional[DriverReport] = None
    closed: Tuple[DriverReport, ...] = ()


def parse_float(s: str) -> float:
    """
    宽松解析数字：去掉首尾空白和千分位逗号，取开头的数字部分。

    Args:
        s: 单元格文本

    Returns:
        浮点数，无法解析时返回 NaN

    Example:
        "1,234.50" → 1234.5
        "10KG" → 10.0
        "N/A" → nan
    """
    m = NUMBER_PREFIX_RE.match(s.strip().replace(",", ""))
    if not m:
        return float("nan")
    return float(m.group(0))


def driver_name_from_line(line_text: str, marker: str = DRIVER_MARKER) -> Optional[str]:
    """
    检测司机分段标记。

    Args:
        line_text: 整行文本
        marker: 标记字符串

    Returns:
        标记之后的司机名（为空时返回 "Unknown"）；不是标记行返回 None

    Example:
        "Driver Name : AHMAD BIN ALI" → "AHMAD BIN ALI"
        "Driver Name :" → "Unknown"
    """
    if marker not in line_text:
        return None
    name = line_text.split(marker, 1)[1].strip()
    return name or UNKNOWN_DRIVER


def is_transaction_row(tokens: List[str]) -> bool:
    """至少 8 列，且第 2 列包含 DD-DD-DDDD 日期"""
    if len(tokens) < MIN_TRIP_TOKENS:
        return False
    return DATE_RE.search(tokens[1]) is not None


def parse_trip_row(tokens: List[str]) -> Optional[TripRow]:
    """
    行形状校验 + 按位置抽取字段。

    列布局：
        0 车牌 | 1 日期 | 2 提货地 | 3 卸货地 | 4 DO# | 5 有效重量 | 6 原费率 | ... | 9 佣金 | ... | 末列 OT

    少于 11 列时（省略了可选列，后续字段左移），佣金取倒数第 2 列。

    Args:
        tokens: 行内单元格

    Returns:
        TripRow；不是交易行或重量无法解析时返回 None
    """
    if not is_transaction_row(tokens):
        return None

    eff_wt = parse_float(tokens[5])
    if math.isnan(eff_wt):
        logger.debug(f"[SKIP] Weight not numeric: {' '.join(tokens)}")
        return None

    comm_index = COMM_INDEX
    if len(tokens) < FULL_WIDTH_TOKENS:
        comm_index = len(tokens) - 2

    return TripRow(
        truck=tokens[0],
        date=tokens[1],
        pickup=tokens[2],
        drop=tokens[3],
        do_number=tokens[4],
        eff_wt=eff_wt,
        original_eff_rt=parse_float(tokens[6]),
        original_comm=parse_float(tokens[comm_index]),
        ot=tokens[-1],
    )


def segment_step(state: SegmentState, row: LayoutRow, resolve: Resolver) -> SegmentState:
    """
    折叠的单步：处理一行，返回新状态。

    Args:
        state: 当前状态
        row: 重建后的行
        resolve: TripRow → Transaction 的费率解析函数

    Returns:
        新状态
    """
    name = driver_name_from_line(row.line_text)
    if name is not None:
        closed = state.closed
        if state.current is not None:
            closed = closed + (state.current,)
        logger.debug(f"[DRIVER] {name}")
        return SegmentState(current=DriverReport(driver_name=name), closed=closed)

    # 第一个司机之前的内容（页眉等）
    if state.current is None:
        return state

    trip = parse_trip_row(row.tokens)
    if trip is None:
        return state

    state.current.add_transaction(resolve(trip))
    return state


def close_segments(state: SegmentState) -> List[DriverReport]:
    """文档结束：关闭仍打开的司机，返回按标记出现顺序排列的报表"""
    closed = list(state.closed)
    if state.current is not None:
        closed.append(state.current)
    return closed


def segment_drivers(
    pages: Iterable[Iterable[LayoutRow]],
    resolve: Resolver
) -> List[DriverReport]:
    """
    按文档顺序把所有页的行分段为司机报表。

    状态跨页传递：一个司机的交易可以跨页，后续页不会重复标记行。

    Args:
        pages: 每页的 LayoutRow 列表，按页顺序
        resolve: TripRow → Transaction 的费率解析函数

    Returns:
        DriverReport 列表
    """
    state = SegmentState()
    for rows in pages:
        for row in rows:
            state = segment_step(state, row, resolve)
    return close_segments(state)


def parse_driver_pdf(
    pdf_path: str,
    resolve: Resolver,
    pages: Optional[List[int]] = None,
    tolerance: float = ROW_TOLERANCE
) -> List[DriverReport]:
    """
    读取 PDF 并抽取全部司机报表。

    数据流：reader → preprocessor（逐页版面重建）→ 分段折叠。

    Args:
        pdf_path: PDF 文件路径
        resolve: TripRow → Transaction 的费率解析函数
        pages: 指定页码（1-based），None 表示全部
        tolerance: 行归并容差

    Returns:
        DriverReport 列表

    Raises:
        FileNotFoundError / PdfReadError: 文档级错误，不返回部分结果
    """
    fragments = read_pdf_fragments(pdf_path, pages=pages)
    page_rows = group_document_rows(fragments.values(), tolerance=tolerance)

    reports = segment_drivers(page_rows, resolve)
    total = sum(len(r.transactions) for r in reports)
    logger.info(f"Parsed {len(reports)} driver(s), {total} transaction(s) from {len(page_rows)} page(s)")
    return reports
