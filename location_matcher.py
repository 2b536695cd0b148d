"""
地点模糊匹配模块
把 PDF 中拼写不一致的地点名对应到 CSV 中的标准地点
"""
import re
import logging
from typing import Iterable, NamedTuple, Optional, Tuple

from rapidfuzz.distance import Levenshtein

logger = logging.getLogger(__name__)

# 得分必须严格大于该值才接受（0.55 本身被拒绝）
MATCH_THRESHOLD = 0.55

TIER_EXACT = "exact"
TIER_SUBSTRING = "substring"
TIER_TOKEN = "token"
TIER_EDIT = "levenshtein"

_NON_ALNUM = re.compile(r"[^A-Z0-9\s]")


class LocationMatch(NamedTuple):
    """被接受的匹配：候选地点、得分、命中的规则层级"""

    match: str
    score: float
    tier: str


def normalize_location(text: str) -> str:
    """转大写，去掉 A-Z / 0-9 / 空白以外的字符"""
    return _NON_ALNUM.sub("", text.upper())


def _significant_tokens(s: str):
    return [t for t in s.split() if len(t) > 2]


def _tokens_shared(t1: str, t2: str) -> bool:
    if t1 == t2:
        return True
    # 较短的一方长度 > 3 才允许包含匹配，避免短子串误命中
    return (len(t1) > 3 and t1 in t2) or (len(t2) > 3 and t2 in t1)


def score_locations(str1: str, str2: str) -> Tuple[float, str]:
    """
    计算两个地点名的相似度（0~1）。

    规则按顺序判定，第一个适用的规则即为最终得分：
        1. 规范化后完全相同 → 1.0
        2. 一方包含另一方 → 0.9
        3. 词重叠（只看长度 > 2 的词）→ 0.7 + 0.2 × 共享词数 / max(词数1, 词数2)
        4. 编辑距离兜底 → 1 − 距离 / max(长度1, 长度2)；两者都为空时为 0

    Args:
        str1: 目标地点
        str2: 候选地点

    Returns:
        (得分, 层级名)

    Example:
        ("VANCE-NIBONG", "NIBONG TEBAL") → (0.8, "token")
    """
    s1 = normalize_location(str1)
    s2 = normalize_location(str2)

    if s1 == s2:
        return 1.0, TIER_EXACT
    if s1 in s2 or s2 in s1:
        return 0.9, TIER_SUBSTRING

    tokens1 = _significant_tokens(s1)
    tokens2 = _significant_tokens(s2)

    shared = sum(1 for t1 in tokens1 if any(_tokens_shared(t1, t2) for t2 in tokens2))
    if shared > 0:
        return 0.7 + 0.2 * (shared / max(len(tokens1), len(tokens2))), TIER_TOKEN

    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 0.0, TIER_EDIT
    return 1 - Levenshtein.distance(s1, s2) / max_len, TIER_EDIT


def similarity_score(str1: str, str2: str) -> float:
    return score_locations(str1, str2)[0]


def find_best_match(
    target: str,
    candidates: Iterable[str],
    threshold: float = MATCH_THRESHOLD
) -> Optional[LocationMatch]:
    """
    在候选池中找最相似的地点。

    得分严格更高才替换，因此同分时保留先出现的候选。

    Args:
        target: PDF 中的地点名
        candidates: CSV 中的标准地点
        threshold: 接受阈值（得分必须 > threshold）

    Returns:
        LocationMatch；最佳得分不超过阈值时返回 None
    """
    best: Optional[LocationMatch] = None
    best_score = 0.0

    for candidate in candidates:
        score, tier = score_locations(target, candidate)
        if score > best_score:
            best_score = score
            best = LocationMatch(candidate, score, tier)

    if best is None or best.score <= threshold:
        logger.debug(f"No location match for '{target}' (best score {best_score:.2f})")
        return None

    logger.debug(f"Matched '{target}' -> '{best.match}' (score {best.score:.2f}, {best.tier})")
    return best
