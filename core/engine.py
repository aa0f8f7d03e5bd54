"""
Core Analyzer Engine - Coordinates data collection, the ledger and scoring
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional

from analysis.token_scorer import TokenReport, TokenScorer
from core.ledger import Ledger, Transaction, TransactionPage
from data.collectors.rugplay import RugplayCollector
from data.models import MarketSnapshot
from utils.constants import TRANSACTIONS_PER_PAGE
from utils.errors import NetworkError, ValidationError
from utils.helpers import normalize_symbol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyzerSession:
    """
    View state of one analyzer session.

    Every engine operation returns a new session; nothing is mutated in place.
    """
    current_symbol: Optional[str] = None
    report: Optional[TokenReport] = None
    transactions_page: int = 1
    last_error: Optional[str] = None


class AnalyzerEngine:
    """Fetches snapshots, keeps the report in step with the ledger"""

    def __init__(
        self,
        collector: RugplayCollector,
        ledger: Ledger,
        scorer: Optional[TokenScorer] = None,
        per_page: int = TRANSACTIONS_PER_PAGE
    ):
        self.collector = collector
        self.ledger = ledger
        self.scorer = scorer or TokenScorer()
        self.per_page = per_page

    async def analyze(self, session: AnalyzerSession, symbol: str) -> AnalyzerSession:
        """
        Fetch market and holder data for `symbol` and build its report.

        Raises:
            MissingCredentialError, NetworkError: the fetch failed
        """
        symbol = normalize_symbol(symbol)
        if not symbol:
            raise ValidationError("Symbol is required")

        logger.info(f"Analyzing {symbol}")
        market, holders = await self.collector.fetch_coin(symbol)
        report = self.scorer.build_report(symbol, market, holders, self.ledger)

        return replace(session, current_symbol=symbol, report=report, last_error=None)

    async def refresh(self, session: AnalyzerSession) -> AnalyzerSession:
        """
        Re-analyze the current symbol. Without one the session is returned
        unchanged; a network failure keeps the previous report and records
        the error.
        """
        if not session.current_symbol:
            return session

        try:
            return await self.analyze(session, session.current_symbol)
        except NetworkError as e:
            logger.warning(f"Refresh of {session.current_symbol} failed: {e}")
            return replace(session, last_error=str(e))

    def add_transaction(
        self,
        session: AnalyzerSession,
        quantity: float,
        price: float,
        date: Optional[datetime] = None
    ) -> AnalyzerSession:
        """Record a transaction for the current symbol and rescore it"""
        if not session.current_symbol:
            raise ValidationError("No coin selected")

        self.ledger.add_transaction(session.current_symbol, quantity, price, date=date)
        return self._rescore(session)

    def delete_transaction(self, session: AnalyzerSession, symbol: str, tx_id: str) -> AnalyzerSession:
        if not self.ledger.delete_transaction(symbol, tx_id):
            raise ValidationError(f"Transaction {tx_id} not found for {normalize_symbol(symbol)}")
        return self._rescore(session)

    def change_page(self, session: AnalyzerSession, page: int) -> AnalyzerSession:
        """Move the transaction list to `page` (clamped to the available pages)"""
        listing = self.ledger.transactions_page(page, per_page=self.per_page)
        return replace(session, transactions_page=listing.page)

    def current_page(self, session: AnalyzerSession) -> TransactionPage:
        return self.ledger.transactions_page(session.transactions_page, per_page=self.per_page)

    async def search(self, query: str) -> List[MarketSnapshot]:
        query = (query or '').strip()
        if not query:
            return []
        return await self.collector.search_markets(query)

    def _rescore(self, session: AnalyzerSession) -> AnalyzerSession:
        """Rebuild the report from the cached snapshots after a ledger change"""
        report = session.report
        if report is not None:
            report = self.scorer.build_report(report.symbol, report.market, report.holders, self.ledger)
        listing = self.ledger.transactions_page(session.transactions_page, per_page=self.per_page)
        return replace(session, report=report, transactions_page=listing.page)
