"""
费率解析模块
把 PDF 交易行的路线对应到 CSV 费率表，重新计算佣金
"""
import logging
from typing import Optional, Tuple

from location_matcher import find_best_match, MATCH_THRESHOLD
from rate_table import RateData, RouteKey
from trip_extractor.models import MatchType, Transaction, TripRow

logger = logging.getLogger(__name__)


def resolve_rate(
    pickup: str,
    drop: str,
    original_rate: float,
    rate_data: RateData,
    threshold: float = MATCH_THRESHOLD
) -> Tuple[float, MatchType, Optional[str], Optional[str]]:
    """
    确定一条路线的新费率

    顺序:
        1. 精确匹配：交易自身的 (pickup, drop) 在费率表中 → EXACT
        2. 模糊匹配：pickup / drop 分别在候选池中匹配，两者都必须被接受；
           再用两个标准地点组成的路线查表 → FUZZY
        3. 其余情况 → NONE，沿用原费率（不会拼凑 CSV 中没有出现过的组合）

    参数:
        pickup: PDF 中的提货地
        drop: PDF 中的卸货地
        original_rate: PDF 中的原费率
        rate_data: 费率数据
        threshold: 模糊匹配接受阈值

    返回:
        (新费率, 匹配类型, 匹配到的提货地, 匹配到的卸货地)；后两者仅 FUZZY 时有值
    """
    exact_key = RouteKey.of(pickup, drop)
    rate = rate_data.lookup(exact_key)
    if rate is not None:
        return rate, MatchType.EXACT, None, None

    fuzzy_pick = find_best_match(pickup, rate_data.valid_pickups, threshold=threshold)
    fuzzy_drop = find_best_match(drop, rate_data.valid_drops, threshold=threshold)

    if fuzzy_pick is None or fuzzy_drop is None:
        logger.debug(f"Route '{exact_key}' unresolved: location not recognised")
        return original_rate, MatchType.NONE, None, None

    fuzzy_key = RouteKey(fuzzy_pick.match, fuzzy_drop.match)
    rate = rate_data.lookup(fuzzy_key)
    if rate is None:
        logger.debug(f"Route '{exact_key}' unresolved: '{fuzzy_key}' not in rate table")
        return original_rate, MatchType.NONE, None, None

    return rate, MatchType.FUZZY, fuzzy_pick.match, fuzzy_drop.match


def resolve_transaction(
    trip: TripRow,
    rate_data: RateData,
    threshold: float = MATCH_THRESHOLD
) -> Transaction:
    """
    解析交易行的费率并重新计算佣金

    参数:
        trip: 分段器输出的交易行
        rate_data: 费率数据
        threshold: 模糊匹配接受阈值

    返回:
        Transaction（new_comm = eff_wt × 新费率，diff = new_comm − 原佣金；原佣金取自 PDF，不重新计算）
    """
    new_rate, match_type, matched_pickup, matched_drop = resolve_rate(
        trip.pickup,
        trip.drop,
        trip.original_eff_rt,
        rate_data,
        threshold=threshold
    )
    new_comm = trip.eff_wt * new_rate

    return Transaction(
        truck=trip.truck,
        date=trip.date,
        pickup=trip.pickup,
        drop=trip.drop,
        do_number=trip.do_number,
        eff_wt=trip.eff_wt,
        original_eff_rt=trip.original_eff_rt,
        new_eff_rt=new_rate,
        original_comm=trip.original_comm,
        new_comm=new_comm,
        diff=new_comm - trip.original_comm,
        ot=trip.ot,
        match_type=match_type,
        matched_pickup=matched_pickup,
        matched_drop=matched_drop,
    )


def make_resolver(rate_data: RateData, threshold: float = MATCH_THRESHOLD):
    """绑定费率数据，返回供分段器使用的 TripRow → Transaction 函数"""
    def resolve(trip: TripRow) -> Transaction:
        return resolve_transaction(trip, rate_data, threshold=threshold)
    return resolve
