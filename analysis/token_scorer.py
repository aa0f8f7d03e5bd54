# analysis/token_scorer.py

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from analysis.activity_scorer import ActivityAnalysis, analyze_activity
from analysis.market_analyzer import MarketAnalyzer, TrendAnalysis
from analysis.profitability_scorer import ProfitabilityAnalysis, ProfitLevel, analyze_profitability
from analysis.rug_detector import RugDetector, SecurityAnalysis
from core.ledger import Holdings
from core.pnl_tracker import PositionPnL, compute_position
from data.models import HolderSnapshot, MarketSnapshot
from utils.constants import PROFIT_CLASSES, SCORE_CLASSES
from utils.helpers import days_between, normalize_symbol, price_change_percent, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenReport:
    """Everything known about one coin at one point in time"""
    symbol: str
    generated_at: datetime
    market: MarketSnapshot
    holders: Optional[HolderSnapshot]
    trend: TrendAnalysis
    security: SecurityAnalysis
    activity: ActivityAnalysis
    profitability: ProfitabilityAnalysis
    holdings: Holdings
    position: PositionPnL

    @property
    def price_change_percent(self) -> float:
        """24h change in percent of the previous price"""
        return price_change_percent(self.market.current_price, self.market.change_24h)

    @property
    def age_days(self) -> Optional[float]:
        if self.market.created_at is None:
            return None
        return days_between(self.market.created_at, self.generated_at)

    def to_dict(self) -> Dict[str, Any]:
        market = self.market
        return {
            'symbol': self.symbol,
            'generated_at': self.generated_at.isoformat(),
            'market': {
                'name': market.name,
                'current_price': market.current_price,
                'change_24h': market.change_24h,
                'price_change_percent': self.price_change_percent,
                'market_cap': market.market_cap,
                'volume_24h': market.volume_24h,
                'circulating_supply': market.circulating_supply,
                'pool_base_currency_amount': market.pool_base_currency_amount,
                'created_at': market.created_at.isoformat() if market.created_at else None,
                'creator_name': market.creator_name,
                'age_days': self.age_days,
            },
            'trend': self.trend.to_dict(),
            'security': self.security.to_dict(),
            'activity': self.activity.to_dict(),
            'profitability': self.profitability.to_dict(),
            'position': self.position.to_dict(),
        }


class TokenScorer:
    """
    Runs the four analyzers over one coin's snapshots and the user's ledger.

    Pure: the caller supplies the snapshots and the ledger, nothing is
    fetched or stored here.
    """

    def __init__(
        self,
        market_analyzer: Optional[MarketAnalyzer] = None,
        rug_detector: Optional[RugDetector] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        self.config = config or {}
        self.market_analyzer = market_analyzer or MarketAnalyzer(self.config)
        self.rug_detector = rug_detector or RugDetector(self.config)

    def build_report(
        self,
        symbol: str,
        market: MarketSnapshot,
        holders: Optional[HolderSnapshot],
        ledger,
        now: Optional[datetime] = None
    ) -> TokenReport:
        """
        Assemble the full report for a symbol.

        Args:
            symbol: Coin symbol (any case)
            market: Market snapshot including candles
            holders: Holder snapshot, or None if it could not be fetched
            ledger: Anything exposing `calculate_holdings(symbol)`
            now: Reference time (defaults to current UTC time)
        """
        symbol = normalize_symbol(symbol)
        now = now or utc_now()

        holdings = ledger.calculate_holdings(symbol)
        position = compute_position(holdings, market.current_price)

        trend = self.market_analyzer.analyze_trend(market.candles)
        security = self.rug_detector.analyze_security(market, holders, now=now)
        activity = analyze_activity(market, holders)
        profitability = analyze_profitability(market, holdings)

        logger.info(
            f"Report for {symbol}: trend={trend.trend.value} security={security.score:.0f} "
            f"activity={activity.score:.0f} profitability={profitability.score:.0f}"
        )

        return TokenReport(
            symbol=symbol,
            generated_at=now,
            market=market,
            holders=holders,
            trend=trend,
            security=security,
            activity=activity,
            profitability=profitability,
            holdings=holdings,
            position=position,
        )


def build_report(
    symbol: str,
    market: MarketSnapshot,
    holders: Optional[HolderSnapshot],
    ledger,
    now: Optional[datetime] = None
) -> TokenReport:
    """Build a report with default analyzer settings"""
    return TokenScorer().build_report(symbol, market, holders, ledger, now=now)


def score_class(score: float) -> str:
    """Display bucket for a 0-100 score"""
    for floor, name in SCORE_CLASSES:
        if score >= floor:
            return name
    return "critical"


def profit_class(level: ProfitLevel) -> str:
    return PROFIT_CLASSES[level.value]
