# analysis/profitability_scorer.py

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from analysis.factors import ScoreFactor, Severity
from core.ledger import Holdings
from data.models import MarketSnapshot
from utils.constants import (
    LIQUIDITY_SCORE_CAP,
    LIQUIDITY_SCORE_OFFSET,
    PERFORMANCE_CAP,
    PERSONAL_PNL_CAP,
    PROFIT_BASE_SCORE,
    SMALL_CAP_THRESHOLDS,
)
from utils.helpers import clamp, format_percentage, price_change_percent, safe_divide

logger = logging.getLogger(__name__)


class ProfitLevel(Enum):
    """Profitability band"""
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    NEUTRAL = "NEUTRAL"
    POOR = "POOR"
    VERY_POOR = "VERY_POOR"


@dataclass(frozen=True)
class ProfitabilityAnalysis:
    """Profitability score (0-100, 50 is neutral)"""
    score: float
    level: ProfitLevel
    factors: Tuple[ScoreFactor, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'level': self.level.value,
            'factors': [f.to_dict() for f in self.factors],
        }


def personal_return_percent(holdings: Holdings, current_price: float) -> float:
    """Return on cost basis of the held quantity, in percent"""
    cost_basis = holdings.quantity * holdings.avg_price
    current_value = holdings.quantity * current_price
    return safe_divide(current_value - cost_basis, cost_basis) * 100


def analyze_profitability(market: MarketSnapshot, holdings: Optional[Holdings] = None) -> ProfitabilityAnalysis:
    """
    Blend 24h performance, liquidity premium, personal P&L and small-cap
    growth potential into one score starting from a neutral 50.
    """
    holdings = holdings or Holdings()
    factors: List[ScoreFactor] = []

    change = price_change_percent(market.current_price, market.change_24h)
    performance_score = clamp(change, -PERFORMANCE_CAP, PERFORMANCE_CAP)
    factors.append(_factor('24h Performance', format_percentage(change), performance_score))

    volume_ratio = safe_divide(market.volume_24h, market.market_cap) * 100
    liquidity_score = min(LIQUIDITY_SCORE_CAP, volume_ratio * 2) - LIQUIDITY_SCORE_OFFSET
    factors.append(_factor('Liquidity Ratio', f"{volume_ratio:.2f}%", liquidity_score))

    if holdings.quantity > 0:
        personal_return = personal_return_percent(holdings, market.current_price)
        personal_score = clamp(personal_return, -PERSONAL_PNL_CAP, PERSONAL_PNL_CAP)
        factors.append(_factor('Your P&L', format_percentage(personal_return), personal_score))

    growth_score = 0
    for ceiling, bonus in SMALL_CAP_THRESHOLDS:
        if market.market_cap < ceiling:
            growth_score = bonus
            break
    if growth_score > 0:
        factors.append(_factor('Growth Potential', 'Small Cap', growth_score))

    total = PROFIT_BASE_SCORE + sum(f.impact for f in factors)
    score = float(clamp(total, 0, 100))

    return ProfitabilityAnalysis(score=score, level=_level(score), factors=tuple(factors))


def _factor(metric: str, value: str, score: float) -> ScoreFactor:
    return ScoreFactor(
        severity=Severity.POSITIVE if score >= 0 else Severity.NEGATIVE,
        message=f"{metric}: {value}",
        impact=float(score),
        metric=metric,
        value=value,
    )


def _level(score: float) -> ProfitLevel:
    if score >= 80:
        return ProfitLevel.EXCELLENT
    if score >= 65:
        return ProfitLevel.GOOD
    if score >= 50:
        return ProfitLevel.NEUTRAL
    if score >= 35:
        return ProfitLevel.POOR
    return ProfitLevel.VERY_POOR
