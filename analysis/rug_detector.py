# analysis/rug_detector.py

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from analysis.factors import ScoreFactor, Severity
from data.models import HolderSnapshot, MarketSnapshot
from utils.constants import SECURITY_RECOMMENDATIONS, SECURITY_THRESHOLDS
from utils.helpers import clamp, days_between, safe_divide, utc_now

logger = logging.getLogger(__name__)


class SecurityLevel(Enum):
    """Safety band of a security score (HIGH is safest)"""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class HolderAnalysis:
    """Holder distribution summary for display"""
    top_holder: float
    top10_holders: float
    pool_percentage: float
    total_holders: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'top_holder': self.top_holder,
            'top10_holders': self.top10_holders,
            'pool_percentage': self.pool_percentage,
            'total_holders': self.total_holders,
        }


@dataclass(frozen=True)
class SecurityAnalysis:
    """Rug-risk score (0-100, higher is safer) with its contributing factors"""
    score: float
    level: SecurityLevel
    recommendation: str
    factors: Tuple[ScoreFactor, ...] = field(default_factory=tuple)
    holder_analysis: Optional[HolderAnalysis] = None
    age_days: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'level': self.level.value,
            'recommendation': self.recommendation,
            'factors': [f.to_dict() for f in self.factors],
            'holder_analysis': self.holder_analysis.to_dict() if self.holder_analysis else None,
            'age_days': self.age_days,
        }


class RugDetector:
    """
    Rug pull risk scoring from holder concentration, pool liquidity,
    project age and volume anomalies.

    Every rule is evaluated against the raw snapshot fields and adds its
    impact to a running score that starts at 100; the total is clamped once
    at the end.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.thresholds = dict(SECURITY_THRESHOLDS)
        if config:
            self.thresholds.update(config.get('security_thresholds', {}))

    def analyze_security(
        self,
        market: Optional[MarketSnapshot],
        holders: Optional[HolderSnapshot],
        now: Optional[datetime] = None
    ) -> SecurityAnalysis:
        """
        Score the rug risk of a coin.

        Args:
            market: Current market snapshot
            holders: Holder snapshot (sorted by percentage descending)
            now: Reference time for the age rules (defaults to current UTC time)

        Returns:
            SecurityAnalysis; UNKNOWN with score 0 when holder data is absent
        """
        if market is None or holders is None:
            logger.warning("Security analysis skipped: holder data unavailable")
            return SecurityAnalysis(
                score=0.0,
                level=SecurityLevel.UNKNOWN,
                recommendation=SECURITY_RECOMMENDATIONS['UNKNOWN'],
            )

        now = now or utc_now()
        factors: List[ScoreFactor] = []

        top_holder = holders.holders[0].percentage if holders.holders else 0.0
        top10 = sum(h.percentage for h in holders.holders[:10])
        pool_percentage = safe_divide(holders.pool_coin_amount, holders.circulating_supply) * 100
        age_days = days_between(market.created_at, now) if market.created_at else None
        volume_ratio = safe_divide(market.volume_24h, market.market_cap) * 100

        self._check_top_holder(top_holder, factors)
        self._check_top10(top10, factors)
        self._check_liquidity(pool_percentage, factors)
        if age_days is not None:
            self._check_age(age_days, factors)
        self._check_volume(volume_ratio, factors)

        score = float(clamp(100 + sum(f.impact for f in factors), 0, 100))
        level = self._level(score)

        logger.debug(f"Security score for {market.symbol}: {score} ({level.value})")

        return SecurityAnalysis(
            score=score,
            level=level,
            recommendation=SECURITY_RECOMMENDATIONS[level.value],
            factors=tuple(factors),
            holder_analysis=HolderAnalysis(
                top_holder=top_holder,
                top10_holders=top10,
                pool_percentage=pool_percentage,
                total_holders=holders.holder_count,
            ),
            age_days=age_days,
        )

    def _check_top_holder(self, percentage: float, factors: List[ScoreFactor]) -> None:
        t = self.thresholds
        if percentage > t['top_holder_critical']:
            factors.append(ScoreFactor(
                Severity.CRITICAL,
                f"Extreme concentration: Top holder owns {percentage:.2f}%", -40))
        elif percentage > t['top_holder_high']:
            factors.append(ScoreFactor(
                Severity.HIGH,
                f"High concentration: Top holder owns {percentage:.2f}%", -25))
        elif percentage > t['top_holder_medium']:
            factors.append(ScoreFactor(
                Severity.MEDIUM,
                f"Moderate concentration: Top holder owns {percentage:.2f}%", -15))

    def _check_top10(self, percentage: float, factors: List[ScoreFactor]) -> None:
        t = self.thresholds
        if percentage > t['top10_critical']:
            factors.append(ScoreFactor(
                Severity.CRITICAL, f"Top 10 holders control {percentage:.2f}%", -30))
        elif percentage > t['top10_high']:
            factors.append(ScoreFactor(
                Severity.HIGH, f"Top 10 holders control {percentage:.2f}%", -20))

    def _check_liquidity(self, pool_percentage: float, factors: List[ScoreFactor]) -> None:
        t = self.thresholds
        if pool_percentage < t['pool_critical']:
            factors.append(ScoreFactor(
                Severity.CRITICAL, f"Very low liquidity: {pool_percentage:.3f}% in pool", -25))
        elif pool_percentage < t['pool_medium']:
            factors.append(ScoreFactor(
                Severity.MEDIUM, f"Low liquidity: {pool_percentage:.2f}% in pool", -15))

    def _check_age(self, age_days: float, factors: List[ScoreFactor]) -> None:
        t = self.thresholds
        if age_days < t['age_very_new_days']:
            factors.append(ScoreFactor(
                Severity.HIGH, f"Very new project ({age_days:.1f} days old)", -20))
        elif age_days < t['age_new_days']:
            factors.append(ScoreFactor(
                Severity.MEDIUM, f"New project ({age_days:.1f} days old)", -10))
        elif age_days > t['age_established_days']:
            factors.append(ScoreFactor(
                Severity.POSITIVE, f"Established project ({age_days:.0f} days old)", 5))

    def _check_volume(self, volume_ratio: float, factors: List[ScoreFactor]) -> None:
        t = self.thresholds
        if volume_ratio > t['volume_ratio_medium']:
            factors.append(ScoreFactor(
                Severity.MEDIUM, f"Extremely high volume ratio: {volume_ratio:.2f}%", -10))
        elif volume_ratio > t['volume_ratio_low']:
            factors.append(ScoreFactor(
                Severity.LOW, f"High volume ratio: {volume_ratio:.2f}%", -5))

    @staticmethod
    def _level(score: float) -> SecurityLevel:
        if score >= 80:
            return SecurityLevel.HIGH
        if score >= 60:
            return SecurityLevel.MEDIUM
        if score >= 40:
            return SecurityLevel.LOW
        return SecurityLevel.CRITICAL


_default_detector = RugDetector()


def analyze_security(
    market: Optional[MarketSnapshot],
    holders: Optional[HolderSnapshot],
    now: Optional[datetime] = None
) -> SecurityAnalysis:
    """Score rug risk with the default thresholds"""
    return _default_detector.analyze_security(market, holders, now)
