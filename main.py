#!/usr/bin/env python3
"""
RugPlay Market Analyzer - Command line front end

Commands:
- analyze: Fetch a coin and print trend, security, activity and profitability
- search: Search coins by name or symbol
- add / delete / holdings / transactions: Personal ledger
- export / import / clear: Ledger backup and reset
- set-key: Save the API key
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import orjson
from dotenv import load_dotenv

from analysis.token_scorer import TokenReport, profit_class, score_class
from config.settings import Settings, load_settings
from core.engine import AnalyzerEngine, AnalyzerSession
from core.ledger import Ledger
from core.pnl_tracker import summarize_portfolio
from data.collectors.rugplay import RugplayCollector
from data.storage.kv_store import create_store
from monitoring.logger import setup_logging
from security.secrets_manager import CredentialStore
from utils.constants import PROJECT_NAME, VERSION
from utils.errors import (
    ConfigurationError,
    MissingCredentialError,
    NetworkError,
    StorageError,
    ValidationError,
)
from utils.helpers import (
    format_number,
    format_number_with_commas,
    format_percentage,
    format_price,
    parse_timestamp,
    symbol_from_url,
)

logger = logging.getLogger("RugplayAnalyzer")

HANDLED_ERRORS = (
    ConfigurationError,
    MissingCredentialError,
    NetworkError,
    StorageError,
    ValidationError,
    OSError,
)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="rugplay-analyzer",
        description=f"{PROJECT_NAME} - coin risk analysis and personal ledger"
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {VERSION}")
    parser.add_argument('--config', default=None, help='Path to YAML configuration file')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    sub = parser.add_subparsers(dest='command', required=True)

    analyze = sub.add_parser('analyze', help='Analyze a coin')
    analyze.add_argument('symbol', help='Coin symbol or coin page URL')
    analyze.add_argument('--json', action='store_true', help='Print the report as JSON')

    search = sub.add_parser('search', help='Search coins')
    search.add_argument('query')

    add = sub.add_parser('add', help='Record a transaction (negative quantity for a sell)')
    add.add_argument('symbol')
    add.add_argument('quantity', type=float)
    add.add_argument('price', type=float)
    add.add_argument('--date', default=None, help='ISO-8601 date (defaults to now)')

    delete = sub.add_parser('delete', help='Delete a transaction')
    delete.add_argument('symbol')
    delete.add_argument('tx_id')

    holdings = sub.add_parser('holdings', help='Show current holdings')
    holdings.add_argument('--live', action='store_true', help='Fetch current prices for P&L')

    transactions = sub.add_parser('transactions', help='List transactions, newest first')
    transactions.add_argument('--page', type=int, default=1)

    export = sub.add_parser('export', help='Export the ledger as JSON')
    export.add_argument('file', nargs='?', default=None, help="Output path ('-' for stdout)")

    import_ = sub.add_parser('import', help='Replace the ledger with an exported file')
    import_.add_argument('file')

    clear = sub.add_parser('clear', help='Delete all ledger data')
    clear.add_argument('--yes', action='store_true', help='Confirm deletion')

    set_key = sub.add_parser('set-key', help='Save the API key')
    set_key.add_argument('key')

    return parser.parse_args(argv)


class AnalyzerApplication:
    """Wires settings, storage, credentials, ledger and collector together"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.store = create_store(
            settings.storage.backend,
            path=settings.storage.path,
            redis_url=settings.storage.redis_url
        )
        self.credentials = CredentialStore(self.store)
        self.ledger = Ledger(self.store)

    def create_collector(self) -> RugplayCollector:
        return RugplayCollector(self.settings.api.model_dump(), self.credentials)

    # ------------------------------------------------------------------ commands

    async def cmd_analyze(self, args) -> int:
        symbol = symbol_from_url(args.symbol) or args.symbol
        async with self.create_collector() as collector:
            engine = AnalyzerEngine(collector, self.ledger, per_page=self.settings.display.transactions_per_page)
            session = await engine.analyze(AnalyzerSession(), symbol)

        if args.json:
            print(orjson.dumps(session.report.to_dict(), option=orjson.OPT_INDENT_2).decode('utf-8'))
        else:
            print(render_report(session.report))
        return 0

    async def cmd_search(self, args) -> int:
        async with self.create_collector() as collector:
            engine = AnalyzerEngine(collector, self.ledger)
            results = await engine.search(args.query)

        if not results:
            print("No coins found")
            return 0
        for coin in results:
            print(
                f"{coin.symbol:<10} {coin.name:<24} ${format_price(coin.current_price):>14}  "
                f"mcap ${format_number(coin.market_cap)}"
            )
        return 0

    def cmd_add(self, args) -> int:
        date = None
        if args.date:
            date = parse_timestamp(args.date)
            if date is None:
                raise ValidationError(f"Invalid date: {args.date}")
        tx = self.ledger.add_transaction(args.symbol, args.quantity, args.price, date=date)
        print(f"Added {tx.type.value} {format_number_with_commas(tx.quantity)} @ ${format_price(tx.price)} (id {tx.id})")
        return 0

    def cmd_delete(self, args) -> int:
        if not self.ledger.delete_transaction(args.symbol, args.tx_id):
            raise ValidationError(f"Transaction {args.tx_id} not found for {args.symbol.upper()}")
        print(f"Deleted transaction {args.tx_id}")
        return 0

    async def cmd_holdings(self, args) -> int:
        prices = None
        if args.live:
            prices = {}
            async with self.create_collector() as collector:
                for symbol in self.ledger.symbols():
                    market = await collector.get_market_snapshot(symbol)
                    prices[symbol] = market.current_price

        summary = summarize_portfolio(self.ledger, prices)
        if not summary.rows:
            print("No holdings")
            return 0

        for row in summary.rows:
            line = (
                f"{row.symbol:<10} qty {format_number_with_commas(round(row.quantity, 6)):>16}  "
                f"avg ${format_price(row.avg_price):>12}  cost ${row.cost_basis:,.2f}"
            )
            if row.current_value is not None:
                line += f"  value ${row.current_value:,.2f}  P&L {format_percentage(row.pnl_percent)}"
            print(line)

        print(f"Total cost: ${summary.total_cost:,.2f}")
        if summary.total_value is not None:
            print(f"Total value: ${summary.total_value:,.2f}  P&L: ${summary.total_pnl:,.2f}")
        return 0

    def cmd_transactions(self, args) -> int:
        listing = self.ledger.transactions_page(args.page, per_page=self.settings.display.transactions_per_page)
        if not listing.total_items:
            print("No transactions")
            return 0

        for row in listing.items:
            tx = row.transaction
            print(
                f"{tx.date.strftime('%Y-%m-%d %H:%M')}  {row.symbol:<10} {tx.type.value.upper():<4} "
                f"{format_number_with_commas(tx.quantity):>14} @ ${format_price(tx.price):>12}  "
                f"${tx.total:,.2f}  {tx.id}"
            )
        print(f"Page {listing.page} of {listing.total_pages} ({listing.total_items} transactions)")
        return 0

    def cmd_export(self, args) -> int:
        text = self.ledger.export_json()
        if args.file == '-':
            print(text)
            return 0

        path = Path(args.file or Ledger.export_filename())
        path.write_text(text, encoding='utf-8')
        print(f"Exported ledger to {path}")
        return 0

    def cmd_import(self, args) -> int:
        text = Path(args.file).read_text(encoding='utf-8')
        self.ledger.import_json(text)
        print(f"Imported ledger from {args.file} ({len(self.ledger.symbols())} coins)")
        return 0

    def cmd_clear(self, args) -> int:
        if not args.yes:
            raise ValidationError("Refusing to clear the ledger without --yes")
        self.ledger.clear_all()
        print("Ledger cleared")
        return 0

    def cmd_set_key(self, args) -> int:
        self.credentials.save_api_key(args.key)
        print(f"API key saved ({self.credentials.masked()})")
        return 0

    async def run(self, args) -> int:
        handler = getattr(self, f"cmd_{args.command.replace('-', '_')}")
        result = handler(args)
        if asyncio.iscoroutine(result):
            result = await result
        return result


def render_report(report: TokenReport) -> str:
    """Plain-text report for the terminal"""
    market = report.market
    trend = report.trend
    security = report.security
    activity = report.activity
    profitability = report.profitability

    lines = [
        f"{market.name} ({report.symbol})",
        f"Price: ${format_price(market.current_price)} ({format_percentage(report.price_change_percent)} 24h)",
        f"Market cap: ${format_number(market.market_cap)}  Volume 24h: ${format_number(market.volume_24h)}",
    ]
    if report.age_days is not None:
        lines.append(f"Age: {report.age_days:.1f} days" + (f"  Creator: {market.creator_name}" if market.creator_name else ""))

    lines += [
        "",
        f"Trend: {trend.icon} {trend.message} (confidence {trend.confidence:.0f}%)",
        "",
        f"Security: {security.score:.0f}/100 [{score_class(security.score)}] {security.level.value}",
        f"  {security.recommendation}",
    ]
    lines += [f"  - {f.message} ({f.impact:+.0f})" for f in security.factors]
    if security.holder_analysis:
        h = security.holder_analysis
        lines.append(
            f"  Top holder {h.top_holder:.2f}%  Top 10 {h.top10_holders:.2f}%  "
            f"Pool {h.pool_percentage:.2f}%  Holders {h.total_holders}"
        )

    lines += ["", f"Activity: {activity.score:.0f}/100 [{score_class(activity.score)}] {activity.level.value}"]
    lines += [f"  - {f.message} ({f.impact:.1f}/{f.max_impact:.0f})" for f in activity.factors]

    lines += [
        "",
        f"Profitability: {profitability.score:.0f}/100 [{profit_class(profitability.level)}] {profitability.level.value}",
    ]
    lines += [f"  - {f.message} ({f.impact:+.1f})" for f in profitability.factors]

    position = report.position
    if position.has_position:
        lines += [
            "",
            f"Your position: {format_number_with_commas(round(position.quantity, 6))} @ avg ${format_price(position.avg_price)}",
            f"  Value ${position.current_value:,.2f}  P&L ${position.pnl:,.2f} ({format_percentage(position.pnl_percent)})",
        ]

    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    load_dotenv()
    args = parse_arguments(argv)

    try:
        settings = load_settings(args.config)
        if args.debug:
            settings.logging.level = 'DEBUG'
        setup_logging(settings.logging, color=settings.display.color)

        app = AnalyzerApplication(settings)
        return asyncio.run(app.run(args))
    except HANDLED_ERRORS as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
