"""
Data Normalizer - Converts raw RugPlay API payloads into typed snapshots
Ensures the analytics core only ever sees consistent, numeric data
"""

from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from data.models import Candle, Holder, HolderSnapshot, MarketSnapshot
from utils.errors import ValidationError
from utils.helpers import normalize_symbol, parse_timestamp, to_float


class DataNormalizer:
    """
    Normalizes coin, candlestick, holder and search payloads.

    Missing numeric fields become 0 rather than None so downstream arithmetic
    never sees nulls; a payload without the required top-level object raises
    ValidationError.
    """

    def normalize_market_snapshot(self, payload: Dict[str, Any]) -> MarketSnapshot:
        """
        Normalize a `/coin/{symbol}` response

        Args:
            payload: `{"coin": {...}, "candlestickData": [...]}`

        Returns:
            MarketSnapshot with candles ordered oldest to newest
        """
        if not isinstance(payload, dict):
            raise ValidationError("Coin payload must be a JSON object")

        coin = payload.get("coin")
        if not isinstance(coin, dict):
            raise ValidationError("Coin payload has no 'coin' object")

        candles = self.normalize_candles(payload.get("candlestickData") or [])
        return self.normalize_coin(coin, candles)

    def normalize_coin(self, coin: Dict[str, Any], candles: Iterable[Candle] = ()) -> MarketSnapshot:
        """Normalize a single coin object (also used for search results)"""
        raw_symbol = coin.get("symbol")
        if isinstance(raw_symbol, bool) or not isinstance(raw_symbol, (str, int)):
            raise ValidationError(f"Coin object has no usable symbol: {raw_symbol!r}")

        symbol = normalize_symbol(str(raw_symbol))
        if not symbol:
            raise ValidationError("Coin object has no symbol")

        created_at = parse_timestamp(coin.get("createdAt"))
        if created_at is None:
            logger.debug(f"Coin {symbol} has no usable createdAt")

        return MarketSnapshot(
            symbol=symbol,
            name=str(coin.get("name") or symbol),
            current_price=to_float(coin.get("currentPrice")),
            change_24h=to_float(coin.get("change24h")),
            market_cap=to_float(coin.get("marketCap")),
            volume_24h=to_float(coin.get("volume24h")),
            circulating_supply=to_float(coin.get("circulatingSupply")),
            pool_base_currency_amount=to_float(coin.get("poolBaseCurrencyAmount")),
            created_at=created_at,
            creator_name=coin.get("creatorName"),
            candles=tuple(candles),
        )

    def normalize_candles(self, raw_candles: Iterable[Dict[str, Any]]) -> List[Candle]:
        """Normalize candlesticks, dropping entries without open/close"""
        candles = []
        skipped = 0

        for raw in raw_candles:
            if not isinstance(raw, dict) or raw.get("open") is None or raw.get("close") is None:
                skipped += 1
                continue
            candles.append(Candle(
                open=to_float(raw.get("open")),
                close=to_float(raw.get("close")),
                high=to_float(raw["high"]) if raw.get("high") is not None else None,
                low=to_float(raw["low"]) if raw.get("low") is not None else None,
                volume=to_float(raw["volume"]) if raw.get("volume") is not None else None,
                time=parse_timestamp(raw.get("time")),
            ))

        if skipped:
            logger.warning(f"Skipped {skipped} malformed candlesticks")

        if all(c.time is not None for c in candles):
            candles.sort(key=lambda c: c.time)

        return candles

    def normalize_holder_snapshot(self, payload: Dict[str, Any]) -> HolderSnapshot:
        """
        Normalize a `/holders/{symbol}` response

        Args:
            payload: `{"holders": [...], "poolInfo": {"coinAmount": ...}, "circulatingSupply": ...}`

        Returns:
            HolderSnapshot with holders sorted by percentage descending
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("holders"), list):
            raise ValidationError("Holder payload has no 'holders' list")

        holders = [self._normalize_holder(raw) for raw in payload["holders"] if isinstance(raw, dict)]
        holders.sort(key=lambda h: h.percentage, reverse=True)

        pool_info = payload.get("poolInfo") or {}
        total = payload.get("totalHolders")

        return HolderSnapshot(
            holders=tuple(holders),
            pool_coin_amount=to_float(pool_info.get("coinAmount")),
            circulating_supply=to_float(payload.get("circulatingSupply")),
            total_holders=int(total) if isinstance(total, (int, float)) else None,
        )

    def normalize_search_results(self, payload: Dict[str, Any]) -> List[MarketSnapshot]:
        """Normalize a `/market?search=` response; bad entries are skipped"""
        if not isinstance(payload, dict):
            raise ValidationError("Search payload must be a JSON object")

        results = []
        for coin in payload.get("coins") or []:
            try:
                results.append(self.normalize_coin(coin))
            except (ValidationError, AttributeError) as e:
                logger.warning(f"Skipping search result: {e}")
        return results

    def _normalize_holder(self, raw: Dict[str, Any]) -> Holder:
        address = raw.get("address") or raw.get("username") or raw.get("userId") or ""
        rank: Optional[int] = raw.get("rank") if isinstance(raw.get("rank"), int) else None
        quantity = raw.get("quantity")
        return Holder(
            address=str(address),
            percentage=to_float(raw.get("percentage")),
            quantity=to_float(quantity) if quantity is not None else None,
            rank=rank,
        )
