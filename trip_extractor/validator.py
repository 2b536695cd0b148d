"""
数据校验模块

包含两层校验逻辑：交易级、司机级。
"""

import math
from typing import List

from .models import DriverReport, MatchType

TOLERANCE = 0.01


def validate_reports(reports: List[DriverReport], tolerance: float = TOLERANCE) -> List[str]:
    """
    校验司机报表的算术不变量。

    校验层级：
        1. 交易级：new_comm == eff_wt × new_eff_rt，diff == new_comm − original_comm
        2. 司机级：累计佣金 == Σ(交易佣金)，未匹配/模糊计数 == 对应类型的交易数

    原佣金为 NaN（PDF 中不是数字）时输出 [ERROR] 而不做数值比较。

    Args:
        reports: 司机报表列表
        tolerance: 允许的浮点误差

    Returns:
        警告信息列表，空列表表示全部通过
    """
    warnings = []

    for driver_idx, report in enumerate(reports, start=1):
        label = f"Driver {driver_idx} ('{report.driver_name}')"

        # 层级 1：交易级校验
        for trip_idx, t in enumerate(report.transactions, start=1):
            trip_label = f"{label}, Trip {trip_idx} (DO#: {t.do_number})"

            if math.isnan(t.original_comm) or math.isnan(t.new_eff_rt):
                warnings.append(
                    f"[ERROR] {trip_label}: commission or rate is not a number in the PDF!"
                )
                continue

            expected_comm = t.eff_wt * t.new_eff_rt
            if abs(expected_comm - t.new_comm) > tolerance:
                warnings.append(
                    f"[WARNING] {trip_label}: new_comm mismatch! "
                    f"Expected: {expected_comm:.2f}, Calculated: {t.new_comm:.2f} "
                    f"(eff_wt={t.eff_wt}, new_eff_rt={t.new_eff_rt})"
                )

            expected_diff = t.new_comm - t.original_comm
            if abs(expected_diff - t.diff) > tolerance:
                warnings.append(
                    f"[WARNING] {trip_label}: diff mismatch! "
                    f"Expected: {expected_diff:.2f}, Calculated: {t.diff:.2f}"
                )

        # 层级 2：司机级校验
        original_calc = sum(t.original_comm for t in report.transactions)
        new_calc = sum(t.new_comm for t in report.transactions)

        if not math.isnan(original_calc) and abs(original_calc - report.total_original_comm) > tolerance:
            warnings.append(
                f"[WARNING] {label}: total_original_comm mismatch! "
                f"Expected: {original_calc:.2f}, Calculated: {report.total_original_comm:.2f}"
            )

        if not math.isnan(new_calc) and abs(new_calc - report.total_new_comm) > tolerance:
            warnings.append(
                f"[WARNING] {label}: total_new_comm mismatch! "
                f"Expected: {new_calc:.2f}, Calculated: {report.total_new_comm:.2f}"
            )

        none_count = sum(1 for t in report.transactions if t.match_type == MatchType.NONE)
        fuzzy_count = sum(1 for t in report.transactions if t.match_type == MatchType.FUZZY)

        if none_count != report.mismatched_trips:
            warnings.append(
                f"[WARNING] {label}: mismatched_trips is {report.mismatched_trips}, "
                f"but {none_count} trip(s) are unmatched"
            )
        if fuzzy_count != report.fuzzy_trips:
            warnings.append(
                f"[WARNING] {label}: fuzzy_trips is {report.fuzzy_trips}, "
                f"but {fuzzy_count} trip(s) are fuzzy-matched"
            )

    return warnings
