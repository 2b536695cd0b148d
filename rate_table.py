"""
费率表模块
从 CSV 文件中提取 PickLoc / DropLoc / Driver Rev_Rate 列，生成路线费率映射
"""
import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, NamedTuple, Tuple

import pandas as pd

from trip_extractor.extractor import parse_float

logger = logging.getLogger(__name__)

DEFAULT_PICKUP_COL = "PickLoc"
DEFAULT_DROP_COL = "DropLoc"
DEFAULT_RATE_COL = "Driver Rev_Rate"


class RouteKey(NamedTuple):
    """路线键：(提货地, 卸货地)，均已去空格并转大写"""

    pickup: str
    drop: str

    @classmethod
    def of(cls, pickup: str, drop: str) -> "RouteKey":
        return cls(pickup.strip().upper(), drop.strip().upper())

    def __str__(self):
        return f"{self.pickup}|{self.drop}"


@dataclass(frozen=True)
class RateData:
    """
    费率数据。

    rate_map: 只读映射 RouteKey → 费率
    valid_pickups / valid_drops: CSV 中出现过的地点（按首次出现顺序），仅用作模糊匹配候选池
    """

    rate_map: Mapping[RouteKey, float]
    valid_pickups: Tuple[str, ...]
    valid_drops: Tuple[str, ...]

    def lookup(self, key: RouteKey):
        return self.rate_map.get(key)


def build_rate_data(records) -> RateData:
    """
    从 (pickup, drop, rate) 记录构建费率数据。

    参数:
        records: 可迭代的 (pickup, drop, rate) 三元组；rate 为原始字符串或数字

    返回:
        RateData

        注意：
        - 同一路线重复出现时，后面的覆盖前面的
        - 跳过 pickup / drop 为空或 rate 不是数字的行
    """
    rate_map: Dict[RouteKey, float] = {}
    pickups: Dict[str, None] = {}
    drops: Dict[str, None] = {}
    skipped_count = 0
    duplicate_count = 0

    for pickup, drop, raw_rate in records:
        pick = (pickup or "").strip().upper()
        dest = (drop or "").strip().upper()
        rate = parse_float(str(raw_rate)) if raw_rate is not None else float("nan")

        if not pick or not dest or math.isnan(rate):
            skipped_count += 1
            continue

        key = RouteKey(pick, dest)
        if key in rate_map:
            logger.debug(f"Route '{key}' appears again, overriding rate {rate_map[key]} with {rate}")
            duplicate_count += 1

        rate_map[key] = rate
        pickups.setdefault(pick)
        drops.setdefault(dest)

    logger.info(
        f"Rate table built: {len(rate_map)} route(s), {len(pickups)} pickup(s), {len(drops)} drop(s); "
        f"skipped {skipped_count} row(s), {duplicate_count} duplicate(s)"
    )
    return RateData(
        rate_map=MappingProxyType(rate_map),
        valid_pickups=tuple(pickups),
        valid_drops=tuple(drops),
    )


def load_rate_table(
    csv_path: str,
    pickup_col: str = DEFAULT_PICKUP_COL,
    drop_col: str = DEFAULT_DROP_COL,
    rate_col: str = DEFAULT_RATE_COL,
) -> RateData:
    """
    从 CSV 文件中读取费率表

    参数:
        csv_path: CSV 文件路径
        pickup_col: 提货地列名（默认 "PickLoc"）
        drop_col: 卸货地列名（默认 "DropLoc"）
        rate_col: 费率列名（默认 "Driver Rev_Rate"）

    返回:
        RateData

    异常:
        FileNotFoundError: 文件不存在
        ValueError: 无法解析或缺少必需列
    """
    try:
        logger.info(f"Reading rate CSV: {csv_path}")
        # 全部按字符串读取，避免 "007" 之类的地点代码被转成数字
        df = pd.read_csv(
            csv_path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
        df.columns = [str(c).strip() for c in df.columns]

        for col in (pickup_col, drop_col, rate_col):
            if col.strip() not in df.columns:
                raise ValueError(f"Column '{col}' not found. Available columns: {df.columns.tolist()}")

        records = zip(df[pickup_col.strip()], df[drop_col.strip()], df[rate_col.strip()])
        return build_rate_data(records)

    except Exception as e:
        logger.error(f"Failed to load rate CSV: {e}")
        raise


if __name__ == "__main__":
    import argparse

    logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')

    parser = argparse.ArgumentParser(description='Load the driver rate CSV and print a preview')
    parser.add_argument('csv_file', help='Rate CSV file path')
    parser.add_argument('--pickup-col', default=DEFAULT_PICKUP_COL, help='Pickup column name (default: PickLoc)')
    parser.add_argument('--drop-col', default=DEFAULT_DROP_COL, help='Drop column name (default: DropLoc)')
    parser.add_argument('--rate-col', default=DEFAULT_RATE_COL, help='Rate column name (default: "Driver Rev_Rate")')
    args = parser.parse_args()

    data = load_rate_table(
        args.csv_file,
        pickup_col=args.pickup_col,
        drop_col=args.drop_col,
        rate_col=args.rate_col
    )

    print("\nFirst 5 routes:")
    for i, (key, rate) in enumerate(data.rate_map.items()):
        if i >= 5:
            break
        print(f"  {key.pickup} -> {key.drop}: {rate:.2f}")

    print(f"\nTotal: {len(data.rate_map)} routes")
