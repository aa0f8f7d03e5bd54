"""
Personal PnL Tracker
Position and portfolio profit/loss from ledger holdings
Pure calculations: prices come from the caller, holdings from the ledger
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from core.ledger import Holdings
from utils.helpers import safe_divide

logger = logging.getLogger("PnLTracker")


@dataclass(frozen=True)
class PositionPnL:
    """Holdings of one symbol valued at a current price"""
    quantity: float = 0.0
    avg_price: float = 0.0
    cost_basis: float = 0.0
    current_value: float = 0.0
    pnl: float = 0.0
    pnl_percent: float = 0.0

    @property
    def has_position(self) -> bool:
        return self.quantity > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'quantity': self.quantity,
            'avg_price': self.avg_price,
            'cost_basis': self.cost_basis,
            'current_value': self.current_value,
            'pnl': self.pnl,
            'pnl_percent': self.pnl_percent,
        }


@dataclass(frozen=True)
class PortfolioRow:
    """One held symbol; value/PnL are None when no price was supplied"""
    symbol: str
    quantity: float
    avg_price: float
    cost_basis: float
    current_price: Optional[float] = None
    current_value: Optional[float] = None
    pnl: Optional[float] = None
    pnl_percent: Optional[float] = None


@dataclass(frozen=True)
class PortfolioSummary:
    """All held symbols plus totals"""
    rows: Tuple[PortfolioRow, ...] = field(default_factory=tuple)
    total_cost: float = 0.0
    total_value: Optional[float] = None
    total_pnl: Optional[float] = None

    @property
    def coins_held(self) -> int:
        return len(self.rows)


def compute_position(holdings: Holdings, current_price: float) -> PositionPnL:
    """
    Value holdings at `current_price`.

    PnL is quantity * (price - avg_price); percent is (price / avg_price - 1) * 100.
    Both are 0 when nothing is held or the average price is 0.
    """
    if holdings.quantity <= 0:
        return PositionPnL()

    cost_basis = holdings.quantity * holdings.avg_price
    current_value = holdings.quantity * current_price
    pnl = holdings.quantity * (current_price - holdings.avg_price) if holdings.avg_price else 0.0
    pnl_percent = (safe_divide(current_price, holdings.avg_price) - 1) * 100 if holdings.avg_price else 0.0

    return PositionPnL(
        quantity=holdings.quantity,
        avg_price=holdings.avg_price,
        cost_basis=cost_basis,
        current_value=current_value,
        pnl=pnl,
        pnl_percent=pnl_percent,
    )


def summarize_portfolio(ledger, prices: Optional[Mapping[str, float]] = None) -> PortfolioSummary:
    """
    Summarize every symbol with positive holdings.

    Args:
        ledger: Any object exposing `symbols()` and `calculate_holdings(symbol)`
        prices: Optional current price per symbol; totals of value and PnL
            cover only priced symbols and stay None if none are priced
    """
    prices = prices or {}
    rows = []
    total_cost = 0.0
    total_value = 0.0
    total_pnl = 0.0
    priced = 0

    for symbol in ledger.symbols():
        holdings = ledger.calculate_holdings(symbol)
        if holdings.quantity <= 0:
            continue

        total_cost += holdings.cost_basis
        price = prices.get(symbol)

        if price is None:
            rows.append(PortfolioRow(
                symbol=symbol,
                quantity=holdings.quantity,
                avg_price=holdings.avg_price,
                cost_basis=holdings.cost_basis,
            ))
            continue

        position = compute_position(holdings, price)
        priced += 1
        total_value += position.current_value
        total_pnl += position.pnl
        rows.append(PortfolioRow(
            symbol=symbol,
            quantity=holdings.quantity,
            avg_price=holdings.avg_price,
            cost_basis=holdings.cost_basis,
            current_price=price,
            current_value=position.current_value,
            pnl=position.pnl,
            pnl_percent=position.pnl_percent,
        ))

    logger.debug(f"Portfolio summary: {len(rows)} coins, cost {total_cost:.2f}")

    return PortfolioSummary(
        rows=tuple(rows),
        total_cost=total_cost,
        total_value=total_value if priced else None,
        total_pnl=total_pnl if priced else None,
    )
