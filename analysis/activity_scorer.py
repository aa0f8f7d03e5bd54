# analysis/activity_scorer.py

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from analysis.factors import ScoreFactor, Severity
from data.models import HolderSnapshot, MarketSnapshot
from utils.constants import ACTIVITY_MAX_SCORES
from utils.helpers import clamp, format_number, price_change_percent

logger = logging.getLogger(__name__)


class ActivityLevel(Enum):
    """Engagement band of an activity score"""
    VERY_HIGH = "VERY_HIGH"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    VERY_LOW = "VERY_LOW"


@dataclass(frozen=True)
class ActivityAnalysis:
    """Engagement score (0-100) built from four capped sub-scores"""
    score: float
    level: ActivityLevel
    factors: Tuple[ScoreFactor, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'level': self.level.value,
            'factors': [f.to_dict() for f in self.factors],
        }


def analyze_activity(market: MarketSnapshot, holders: Optional[HolderSnapshot]) -> ActivityAnalysis:
    """
    Score trading engagement from volume, market cap, holder count and
    24h price movement. Each sub-score is capped before summing.
    """
    caps = ACTIVITY_MAX_SCORES
    holder_count = holders.holder_count if holders else 0
    movement = abs(price_change_percent(market.current_price, market.change_24h))

    # Negative inputs are malformed data; they floor at 0
    volume_score = clamp(market.volume_24h / 10000 * 10, 0, caps['volume'])
    mcap_score = clamp(market.market_cap / 100000 * 5, 0, caps['market_cap'])
    holder_score = clamp(holder_count / 10 * 2, 0, caps['holders'])
    volatility_score = clamp(movement / 2, 0, caps['volatility'])

    factors = (
        _factor('Trading Volume', f"${format_number(market.volume_24h)}", volume_score, caps['volume']),
        _factor('Market Cap', f"${format_number(market.market_cap)}", mcap_score, caps['market_cap']),
        _factor('Holder Count', str(holder_count), holder_score, caps['holders']),
        _factor('Price Volatility', f"{movement:.2f}%", volatility_score, caps['volatility']),
    )

    score = float(min(100, volume_score + mcap_score + holder_score + volatility_score))
    return ActivityAnalysis(score=score, level=_level(score), factors=factors)


def _factor(metric: str, value: str, score: float, max_score: float) -> ScoreFactor:
    return ScoreFactor(
        severity=Severity.INFO,
        message=f"{metric}: {value}",
        impact=float(score),
        metric=metric,
        value=value,
        max_impact=float(max_score),
    )


def _level(score: float) -> ActivityLevel:
    if score >= 80:
        return ActivityLevel.VERY_HIGH
    if score >= 60:
        return ActivityLevel.HIGH
    if score >= 40:
        return ActivityLevel.MEDIUM
    if score >= 20:
        return ActivityLevel.LOW
    return ActivityLevel.VERY_LOW
