# tests/conftest.py
"""
Global pytest configuration and fixtures
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.ledger import Ledger
from data.models import Candle, Holder, HolderSnapshot, MarketSnapshot
from data.storage.kv_store import MemoryStore

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_market(**overrides) -> MarketSnapshot:
    """Market snapshot with neutral defaults; override any field"""
    fields = dict(
        symbol="MOON",
        name="Moon Coin",
        current_price=1.0,
        change_24h=0.0,
        market_cap=5_000_000.0,
        volume_24h=500_000.0,
        circulating_supply=1_000_000.0,
        pool_base_currency_amount=50_000.0,
        created_at=NOW - timedelta(days=14),
        creator_name="alice",
        candles=(),
    )
    fields.update(overrides)
    return MarketSnapshot(**fields)


def make_holders(percentages: List[float], pool_coin_amount: float = 100_000.0,
                 circulating_supply: float = 1_000_000.0) -> HolderSnapshot:
    holders = tuple(
        Holder(address=f"user{i}", percentage=p, rank=i + 1)
        for i, p in enumerate(sorted(percentages, reverse=True))
    )
    return HolderSnapshot(
        holders=holders,
        pool_coin_amount=pool_coin_amount,
        circulating_supply=circulating_supply,
    )


def make_candles(closes: List[float], first_open: float = None) -> tuple:
    """Candles whose open is the previous close"""
    candles = []
    previous = closes[0] if first_open is None else first_open
    for i, close in enumerate(closes):
        candles.append(Candle(
            open=previous,
            close=close,
            time=NOW - timedelta(minutes=len(closes) - i),
        ))
        previous = close
    return tuple(candles)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def ledger(memory_store):
    """Ledger over an in-memory store"""
    return Ledger(memory_store)


@pytest.fixture
def market_factory():
    return make_market


@pytest.fixture
def holders_factory():
    return make_holders


@pytest.fixture
def candles_factory():
    return make_candles


@pytest.fixture
def market():
    return make_market()


@pytest.fixture
def holders():
    return make_holders([10.0, 8.0, 6.0, 5.0, 4.0, 3.0, 3.0, 2.0, 2.0, 1.0, 1.0, 1.0])


@pytest.fixture
def coin_payload():
    """Raw `/coin/{symbol}` response"""
    return {
        "coin": {
            "symbol": "moon",
            "name": "Moon Coin",
            "currentPrice": 1.25,
            "change24h": 0.25,
            "marketCap": 1_250_000,
            "volume24h": 80_000,
            "circulatingSupply": 1_000_000,
            "poolBaseCurrencyAmount": 40_000,
            "createdAt": "2025-05-01T00:00:00Z",
            "creatorName": "alice",
        },
        "candlestickData": [
            {"open": 1.0 + i * 0.01, "close": 1.01 + i * 0.01, "high": 1.02 + i * 0.01,
             "low": 0.99 + i * 0.01, "volume": 100, "time": 1748736000 + i * 60}
            for i in range(12)
        ],
    }


@pytest.fixture
def holders_payload():
    """Raw `/holders/{symbol}` response"""
    return {
        "holders": [
            {"userId": 2, "username": "bob", "percentage": 12.5, "quantity": 125_000, "rank": 2},
            {"userId": 1, "username": "alice", "percentage": 40.0, "quantity": 400_000, "rank": 1},
            {"userId": 3, "username": "carol", "percentage": 5.0, "quantity": 50_000, "rank": 3},
        ],
        "poolInfo": {"coinAmount": 30_000, "baseCurrencyAmount": 40_000},
        "circulatingSupply": 1_000_000,
        "totalHolders": 3,
    }
