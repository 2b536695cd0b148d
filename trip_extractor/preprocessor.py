"""
版面重建模块

职责：
- 把一页上无序的文本碎片按纵坐标归并成行
- 行内按横坐标排序，生成单元格列表和整行文本
- 不包含业务逻辑，只做通用版面处理
"""

import logging
from typing import List, Dict, Iterable

from .models import TextFragment, LayoutRow

logger = logging.getLogger("pdf_text")

# 纵坐标差 < 5 视为同一行（近似基线对齐，不是精确的排版分组）
ROW_TOLERANCE = 5.0


def group_rows(
    fragments: Iterable[TextFragment],
    tolerance: float = ROW_TOLERANCE
) -> List[LayoutRow]:
    """
    把一页的文本碎片重建为表格行。

    归并规则：
        - 碎片加入第一个满足 |row.y - frag.y| < tolerance 的已有行
        - 行的代表纵坐标是创建该行的第一个碎片的 y，之后不再更新
        - 否则新建一行

    排序规则：
        - 行按 y 降序（页面顶部在前）
        - 行内按 x 升序（从左到右，稳定排序）

    Args:
        fragments: 同一页的文本碎片（y 轴向上）
        tolerance: 行归并容差

    Returns:
        LayoutRow 列表；tokens 为去空白后的非空字符串

    Example:
        输入:  [(120, 700.2, "IPOH"), (40, 700, "PENANG"), (40, 680, "Total")]
        输出:  [LayoutRow(y=700.2, tokens=["PENANG", "IPOH"]),
                LayoutRow(y=680, tokens=["Total"])]
    """
    buckets: List[Dict] = []

    for frag in fragments:
        for bucket in buckets:
            if abs(bucket["y"] - frag.y) < tolerance:
                bucket["items"].append(frag)
                break
        else:
            buckets.append({"y": frag.y, "items": [frag]})

    buckets.sort(key=lambda b: b["y"], reverse=True)

    rows = []
    for bucket in buckets:
        items = sorted(bucket["items"], key=lambda f: f.x)
        tokens = [f.text.strip() for f in items]
        rows.append(LayoutRow(y=bucket["y"], tokens=[t for t in tokens if t]))

    return rows


def group_document_rows(
    pages: Iterable[List[TextFragment]],
    tolerance: float = ROW_TOLERANCE
) -> List[List[LayoutRow]]:
    """
    逐页重建版面，保持页顺序。

    每页之间互不影响；结果必须按原页顺序交给分段器。

    Args:
        pages: 按页顺序排列的碎片列表
        tolerance: 行归并容差

    Returns:
        每页的 LayoutRow 列表
    """
    out = []
    for page_no, frags in enumerate(pages, start=1):
        rows = group_rows(frags, tolerance=tolerance)
        logger.debug(f"Page {page_no}: {len(frags)} fragments -> {len(rows)} rows")
        out.append(rows)
    return out


def rows_to_dicts(pages: List[List[LayoutRow]]) -> List[Dict]:
    """
    把重建后的行转为扁平字典（用于 debug 输出）。

    Returns:
        [{"page": int, "index": int, "y": float, "tokens": int, "text": str}, ...]
    """
    out = []
    for page_no, rows in enumerate(pages, start=1):
        for idx, row in enumerate(rows, start=1):
            out.append({
                "page": page_no,
                "index": idx,
                "y": row.y,
                "tokens": len(row.tokens),
                "text": row.line_text
            })
    return out
