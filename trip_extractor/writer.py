"""
输出模块

职责：
- 把中间结果（碎片、版面行、司机报表）输出到 JSON/CSV/JSONL
- 统一输出接口，不包含业务逻辑
"""

import os
import csv
import json
import logging
from typing import List, Dict, Any

from .models import DriverReport

logger = logging.getLogger("pdf_text")


def reports_to_dicts(reports: List[DriverReport]) -> List[Dict]:
    """司机报表 → 可 JSON 序列化的字典列表"""
    return [r.to_dict() for r in reports]


def flatten_reports(reports: List[DriverReport]) -> List[Dict]:
    """
    司机报表 → 每笔交易一行的扁平字典（用于 CSV / JSONL）。

    Returns:
        [{"driver_name": str, "truck": str, ..., "match_type": str}, ...]
    """
    rows = []
    for report in reports:
        for t in report.transactions:
            rows.append({"driver_name": report.driver_name, **t.to_dict()})
    return rows


def write_json(data: Any, file_path: str) -> None:
    """
    输出 JSON 文件。

    Args:
        data: 要输出的数据
        file_path: 输出文件路径
    """
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    logger.info(f"Wrote JSON: {file_path}")


def write_jsonl(rows: List[Dict], file_path: str) -> None:
    """输出 JSONL 文件（每行一个 JSON 对象）"""
    with open(file_path, "w", encoding="utf-8") as f:
        for r in rows:
            f.write(json.dumps(r, ensure_ascii=False) + "\n")
    logger.info(f"Wrote JSONL: {file_path} ({len(rows)} rows)")


def write_csv(rows: List[Dict], file_path: str, fieldnames: List[str] = None) -> None:
    """
    输出 CSV 文件（UTF-8 BOM，Excel 可直接打开）。

    Args:
        rows: 要输出的行列表
        file_path: 输出文件路径
        fieldnames: 列名列表，不指定则从第一行推断
    """
    if not rows and fieldnames is None:
        logger.warning(f"No data to write to CSV: {file_path}")
        return

    if fieldnames is None:
        fieldnames = list(rows[0].keys())

    with open(file_path, "w", newline="", encoding="utf-8-sig") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        w.writerows(rows)
    logger.info(f"Wrote CSV: {file_path} ({len(rows)} rows)")


def print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def print_jsonl(rows: List[Dict], limit: int = 50) -> None:
    """
    输出 JSONL 到 stdout（预览模式）。

    Args:
        rows: 要输出的行列表
        limit: 最多输出行数
    """
    for r in rows[:limit]:
        print(json.dumps(r, ensure_ascii=False))

    if len(rows) > limit:
        print(f"... ({len(rows) - limit} more rows, use --out to save all)")


def write_auto(data: Any, file_path: str) -> None:
    """
    根据文件扩展名自动选择输出格式。

    司机报表列表在 .csv / .jsonl 下按交易展开，在 .json 下保持嵌套结构。

    Args:
        data: 要输出的数据（字典列表或 DriverReport 列表）
        file_path: 输出文件路径

    Raises:
        ValueError: 不支持的文件格式
    """
    ext = os.path.splitext(file_path)[1].lower()
    is_reports = isinstance(data, list) and data and isinstance(data[0], DriverReport)

    if ext == ".json":
        write_json(reports_to_dicts(data) if is_reports else data, file_path)
    elif ext in (".jsonl", ".csv"):
        if not isinstance(data, list):
            raise ValueError(f"{ext.upper()[1:]} format requires list data, got {type(data)}")
        rows = flatten_reports(data) if is_reports else data
        if ext == ".jsonl":
            write_jsonl(rows, file_path)
        else:
            write_csv(rows, file_path)
    else:
        raise ValueError(f"Unsupported file format: {ext}")


def print_auto(data: Any, mode: str = "json") -> None:
    """
    根据模式输出到 stdout。

    Args:
        data: 要输出的数据（字典列表或 DriverReport 列表）
        mode: "json" 或 "jsonl"
    """
    is_reports = isinstance(data, list) and data and isinstance(data[0], DriverReport)
    if mode == "jsonl" and isinstance(data, list):
        print_jsonl(flatten_reports(data) if is_reports else data)
    else:
        print_json(reports_to_dicts(data) if is_reports else data)
