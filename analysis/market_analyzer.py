# analysis/market_analyzer.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence

import numpy as np

from data.models import Candle
from utils.constants import LONG_MA_PERIOD, MIN_CANDLES, SHORT_MA_PERIOD, TREND_ICONS, TREND_WINDOW
from utils.helpers import safe_divide

logger = logging.getLogger(__name__)


class TrendDirection(Enum):
    """Short-term price trend classification"""
    STRONG_UP = "STRONG_UP"
    UP = "UP"
    NEUTRAL = "NEUTRAL"
    DOWN = "DOWN"
    STRONG_DOWN = "STRONG_DOWN"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class TrendAnalysis:
    """Trend analysis results"""
    trend: TrendDirection
    change_percent: float
    confidence: float  # 0-100
    message: str
    volatility: float = 0.0  # std-dev of closes, % of mean
    momentum: float = 0.0  # short MA vs long MA, %
    candle_count: int = 0

    @property
    def icon(self) -> str:
        return TREND_ICONS.get(self.trend.value, TREND_ICONS['UNKNOWN'])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trend': self.trend.value,
            'change_percent': self.change_percent,
            'confidence': self.confidence,
            'message': self.message,
            'volatility': self.volatility,
            'momentum': self.momentum,
            'candle_count': self.candle_count,
        }


class MarketAnalyzer:
    """Classifies short-term trend and momentum from a candlestick series"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.min_candles = config.get('min_candles', MIN_CANDLES)
        self.window = max(config.get('window', TREND_WINDOW), self.min_candles)
        self.short_period = config.get('short_ma_period', SHORT_MA_PERIOD)
        self.long_period = config.get('long_ma_period', LONG_MA_PERIOD)

    def analyze_trend(self, candles: Optional[Sequence[Candle]]) -> TrendAnalysis:
        """
        Classify the trend of the most recent candles.

        Args:
            candles: Candlesticks ordered oldest to newest

        Returns:
            TrendAnalysis; UNKNOWN when fewer than `min_candles` are supplied
        """
        if not candles or len(candles) < self.min_candles:
            logger.warning(
                f"Insufficient data for trend analysis: {len(candles) if candles else 0} candles"
            )
            return TrendAnalysis(
                trend=TrendDirection.UNKNOWN,
                change_percent=0.0,
                confidence=0.0,
                message='Insufficient data',
                candle_count=len(candles) if candles else 0,
            )

        window = list(candles)[-self.window:]
        first_open = window[0].open
        last_close = window[-1].close
        change = safe_divide(last_close - first_open, first_open) * 100

        closes = np.array([c.close for c in window], dtype=float)
        volatility = self._volatility(closes)
        momentum = self._momentum(closes)

        trend, confidence, message = self._classify(change)

        return TrendAnalysis(
            trend=trend,
            change_percent=float(change),
            confidence=float(confidence),
            message=message,
            volatility=volatility,
            momentum=momentum,
            candle_count=len(window),
        )

    def _volatility(self, closes: np.ndarray) -> float:
        """Population standard deviation of closes as a percent of their mean"""
        mean = float(np.mean(closes))
        return safe_divide(float(np.std(closes)), mean) * 100

    def _momentum(self, closes: np.ndarray) -> float:
        short_ma = float(np.mean(closes[-self.short_period:]))
        long_ma = float(np.mean(closes[-self.long_period:]))
        return safe_divide(short_ma - long_ma, long_ma) * 100

    def _classify(self, change: float):
        """First matching band wins"""
        magnitude = abs(change)

        if change > 50:
            return (TrendDirection.STRONG_UP, min(95, 70 + magnitude / 2),
                    f"Strong bullish trend (+{change:.1f}%)")
        if change > 20:
            return (TrendDirection.UP, min(85, 60 + magnitude),
                    f"Bullish trend (+{change:.1f}%)")
        if change < -30:
            return (TrendDirection.STRONG_DOWN, min(90, 65 + magnitude / 2),
                    f"Strong bearish trend ({change:.1f}%)")
        if change < -10:
            return (TrendDirection.DOWN, min(80, 55 + magnitude),
                    f"Bearish trend ({change:.1f}%)")
        return (TrendDirection.NEUTRAL, 50, f"Sideways movement ({change:.1f}%)")


_default_analyzer = MarketAnalyzer()


def analyze_trend(candles: Optional[Sequence[Candle]]) -> TrendAnalysis:
    """Classify a candlestick series with the default thresholds"""
    return _default_analyzer.analyze_trend(candles)
