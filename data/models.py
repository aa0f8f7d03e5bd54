"""
Market data structures supplied by the data source.

Snapshots are plain frozen dataclasses so the analytics core can treat them as
values: the collector builds them, the analyzers only read them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Candle:
    """One candlestick; only open/close drive the trend analysis"""
    open: float
    close: float
    high: Optional[float] = None
    low: Optional[float] = None
    volume: Optional[float] = None
    time: Optional[datetime] = None


@dataclass(frozen=True)
class MarketSnapshot:
    """Current market state of one coin"""
    symbol: str
    name: str
    current_price: float
    change_24h: float  # absolute, not percent
    market_cap: float
    volume_24h: float
    circulating_supply: float
    pool_base_currency_amount: float
    created_at: Optional[datetime]
    creator_name: Optional[str] = None
    candles: Tuple[Candle, ...] = field(default_factory=tuple)

    @property
    def previous_price(self) -> float:
        """Price 24h ago"""
        return self.current_price - self.change_24h


@dataclass(frozen=True)
class Holder:
    """One wallet in the holder list"""
    address: str
    percentage: float
    quantity: Optional[float] = None
    rank: Optional[int] = None


@dataclass(frozen=True)
class HolderSnapshot:
    """Holder distribution, sorted by percentage descending"""
    holders: Tuple[Holder, ...]
    pool_coin_amount: float
    circulating_supply: float
    total_holders: Optional[int] = None

    @property
    def holder_count(self) -> int:
        """Number of holders returned by the data source"""
        return len(self.holders)
