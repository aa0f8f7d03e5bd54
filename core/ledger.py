"""
Transaction Ledger
Per-symbol buy/sell history with moving-average cost basis

The ledger is the only mutable shared resource in the analyzer. Every
read-modify-write (add, delete, import, clear) runs under one re-entrant lock
around load -> modify -> store, because the backing key-value store has no
transactions of its own.
"""

import logging
import math
import random
import string
import threading
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import orjson

from data.storage.kv_store import KeyValueStore
from utils.constants import EXPORT_FILENAME_TEMPLATE, PORTFOLIO_STORAGE_KEY, TRANSACTIONS_PER_PAGE
from utils.errors import MalformedImportError, StorageError, ValidationError
from utils.helpers import normalize_symbol, parse_timestamp, safe_divide, to_float, utc_now

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


class TransactionType(Enum):
    """Side of a ledger transaction"""
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class Transaction:
    """A single buy or sell; quantity is always an unsigned magnitude"""
    id: str
    quantity: float
    price: float
    date: datetime
    type: TransactionType

    @property
    def signed_quantity(self) -> float:
        return self.quantity if self.type is TransactionType.BUY else -self.quantity

    @property
    def total(self) -> float:
        return self.quantity * self.price

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'quantity': self.quantity,
            'price': self.price,
            'date': self.date.isoformat(),
            'type': self.type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """
        Parse a stored or imported transaction.

        Older exports store sells as negative quantities, sometimes without a
        `type`; both forms normalize to magnitude + explicit type.
        """
        if not isinstance(data, dict):
            raise MalformedImportError(f"Transaction must be an object, got {type(data).__name__}")

        raw_quantity = data.get('quantity')
        raw_price = data.get('price')
        if not _is_number(raw_quantity) or not _is_number(raw_price):
            raise MalformedImportError(f"Transaction {data.get('id')!r} has a non-numeric quantity or price")

        quantity = float(raw_quantity)
        price = float(raw_price)
        if quantity == 0:
            raise MalformedImportError(f"Transaction {data.get('id')!r} has zero quantity")
        if price < 0:
            raise MalformedImportError(f"Transaction {data.get('id')!r} has a negative price")

        raw_type = data.get('type')
        if raw_type is None:
            tx_type = TransactionType.BUY if quantity > 0 else TransactionType.SELL
        else:
            try:
                tx_type = TransactionType(str(raw_type).lower())
            except ValueError:
                raise MalformedImportError(f"Unknown transaction type {raw_type!r}") from None

        tx_date = parse_timestamp(data.get('date'))
        if tx_date is None:
            raise MalformedImportError(f"Transaction {data.get('id')!r} has an invalid date")

        tx_id = data.get('id')
        if tx_id is None or tx_id == '':
            raise MalformedImportError("Transaction has no id")

        return cls(
            id=str(tx_id),
            quantity=abs(quantity),
            price=price,
            date=tx_date,
            type=tx_type,
        )


@dataclass(frozen=True)
class LedgerEntry:
    """All transactions for one symbol, in insertion order"""
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)
    notes: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'transactions': [tx.to_dict() for tx in self.transactions],
            'notes': self.notes,
        }


@dataclass(frozen=True)
class Holdings:
    """Derived position: never stored, always recomputed from transactions"""
    quantity: float = 0.0
    avg_price: float = 0.0

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.avg_price


@dataclass(frozen=True)
class LedgerRow:
    """A transaction tagged with its symbol, for cross-symbol listings"""
    symbol: str
    transaction: Transaction


@dataclass(frozen=True)
class TransactionPage:
    """One page of the cross-symbol transaction listing"""
    items: Tuple[LedgerRow, ...]
    page: int
    total_pages: int
    total_items: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def calculate_holdings(transactions: Iterable[Transaction]) -> Holdings:
    """
    Moving-average cost basis over transactions in insertion order.

    A buy adds its cost and quantity. A sell removes quantity at the current
    average cost, so the average itself is unchanged by sells. Not FIFO/LIFO:
    reordering transactions can change the result.
    """
    total_quantity = 0.0
    total_cost = 0.0

    for tx in transactions:
        if tx.type is TransactionType.BUY:
            total_cost += tx.quantity * tx.price
            total_quantity += tx.quantity
        else:
            avg_cost = safe_divide(total_cost, total_quantity)
            total_cost -= tx.quantity * avg_cost
            total_quantity -= tx.quantity

    avg_price = total_cost / total_quantity if total_quantity > 0 else 0.0
    # Selling everything can leave float dust; treat it as flat
    if math.isclose(total_quantity, 0.0, abs_tol=1e-12):
        total_quantity, avg_price = 0.0, 0.0

    return Holdings(quantity=total_quantity, avg_price=avg_price)


def parse_snapshot(snapshot: Any) -> Dict[str, LedgerEntry]:
    """
    Validate a full ledger snapshot (symbol -> {transactions, notes}).

    Raises MalformedImportError on any structural problem; nothing is
    partially accepted.
    """
    if not isinstance(snapshot, dict):
        raise MalformedImportError("Ledger snapshot must be a JSON object keyed by symbol")

    entries: Dict[str, LedgerEntry] = {}
    seen_symbols = set()
    for raw_symbol, raw_entry in snapshot.items():
        symbol = normalize_symbol(str(raw_symbol))
        if not symbol:
            raise MalformedImportError("Ledger snapshot contains an empty symbol")
        if symbol in seen_symbols:
            raise MalformedImportError(f"Duplicate symbol {symbol} in ledger snapshot")
        seen_symbols.add(symbol)
        if not isinstance(raw_entry, dict) or not isinstance(raw_entry.get('transactions'), list):
            raise MalformedImportError(f"Entry for {symbol} has no transactions list")

        notes = raw_entry.get('notes') or ''
        if not isinstance(notes, str):
            raise MalformedImportError(f"Notes for {symbol} must be a string")

        transactions = tuple(Transaction.from_dict(tx) for tx in raw_entry['transactions'])
        seen = set()
        for tx in transactions:
            if tx.id in seen:
                raise MalformedImportError(f"Duplicate transaction id {tx.id} for {symbol}")
            seen.add(tx.id)

        if transactions:
            entries[symbol] = LedgerEntry(transactions=transactions, notes=notes)

    return entries


class Ledger:
    """
    Append-only per-symbol transaction ledger over a key-value store.

    Args:
        store: Backing key-value store
        on_change: Called with the affected symbol (None for bulk operations)
            after every successful mutation
        storage_key: Key of the ledger record in the store
    """

    def __init__(
        self,
        store: KeyValueStore,
        on_change: Optional[Callable[[Optional[str]], None]] = None,
        storage_key: str = PORTFOLIO_STORAGE_KEY
    ):
        self.store = store
        self.on_change = on_change
        self.storage_key = storage_key
        self._lock = threading.RLock()

    # ---------------------------------------------------------------- mutations

    def add_transaction(
        self,
        symbol: str,
        quantity: float,
        price: float,
        date: Optional[datetime] = None
    ) -> Transaction:
        """
        Append a transaction. Positive quantity is a buy, negative a sell.

        Returns:
            The stored Transaction
        """
        symbol = normalize_symbol(symbol)
        quantity = to_float(quantity, default=float('nan'))
        price = to_float(price, default=float('nan'))

        if not symbol:
            raise ValidationError("Symbol is required")
        if math.isnan(quantity) or quantity == 0:
            raise ValidationError("Quantity must be a non-zero number")
        if math.isnan(price) or price < 0:
            raise ValidationError("Price must be a non-negative number")

        tx_date = parse_timestamp(date) if date is not None else utc_now()
        if tx_date is None:
            raise ValidationError(f"Invalid transaction date: {date!r}")

        with self._lock:
            entries = self._load()
            entry = entries.get(symbol, LedgerEntry())
            existing_ids = {tx.id for tx in entry.transactions}

            tx = Transaction(
                id=self._generate_id(existing_ids),
                quantity=abs(quantity),
                price=price,
                date=tx_date,
                type=TransactionType.BUY if quantity > 0 else TransactionType.SELL,
            )
            entries[symbol] = LedgerEntry(transactions=entry.transactions + (tx,), notes=entry.notes)
            self._save(entries)

        logger.info(f"Added {tx.type.value} {tx.quantity} {symbol} @ {tx.price} ({tx.id})")
        self._notify(symbol)
        return tx

    def delete_transaction(self, symbol: str, transaction_id: str) -> bool:
        """
        Remove one transaction. Returns False if the symbol or id is unknown.
        Removing the last transaction removes the symbol entirely.
        """
        symbol = normalize_symbol(symbol)

        with self._lock:
            entries = self._load()
            entry = entries.get(symbol)
            if entry is None:
                logger.warning(f"No transactions found for {symbol}")
                return False

            remaining = tuple(tx for tx in entry.transactions if tx.id != str(transaction_id))
            if len(remaining) == len(entry.transactions):
                logger.warning(f"Transaction not found: {symbol} {transaction_id}")
                return False

            if remaining:
                entries[symbol] = LedgerEntry(transactions=remaining, notes=entry.notes)
            else:
                del entries[symbol]
                logger.info(f"No more transactions for {symbol}, removed entry")
            self._save(entries)

        logger.info(f"Deleted transaction {transaction_id} from {symbol}")
        self._notify(symbol)
        return True

    def set_notes(self, symbol: str, notes: str) -> bool:
        """Replace the free-text notes of an existing entry"""
        symbol = normalize_symbol(symbol)

        with self._lock:
            entries = self._load()
            entry = entries.get(symbol)
            if entry is None:
                return False
            entries[symbol] = LedgerEntry(transactions=entry.transactions, notes=notes or '')
            self._save(entries)

        self._notify(symbol)
        return True

    def import_all(self, snapshot: Any) -> None:
        """Overwrite the whole ledger; a malformed snapshot leaves it unchanged"""
        entries = parse_snapshot(snapshot)

        with self._lock:
            self._save(entries)

        logger.info(f"Imported ledger with {len(entries)} symbols")
        self._notify(None)

    def import_json(self, text: str) -> None:
        """Import a ledger exported by `export_json`"""
        try:
            snapshot = orjson.loads(text)
        except (orjson.JSONDecodeError, TypeError) as e:
            raise MalformedImportError(f"Invalid JSON format: {e}") from e
        self.import_all(snapshot)

    def clear_all(self) -> None:
        """Delete every entry"""
        with self._lock:
            self._save({})

        logger.info("Cleared ledger")
        self._notify(None)

    # ------------------------------------------------------------------ queries

    def calculate_holdings(self, symbol: str) -> Holdings:
        """Current holdings for a symbol; (0, 0) for unknown symbols"""
        entry = self.get_entry(symbol)
        if entry is None:
            return Holdings()
        return calculate_holdings(entry.transactions)

    def get_entry(self, symbol: str) -> Optional[LedgerEntry]:
        return self._load().get(normalize_symbol(symbol))

    def symbols(self) -> List[str]:
        return list(self._load().keys())

    def all_transactions(self) -> List[LedgerRow]:
        """Every transaction across symbols, newest first"""
        rows = [
            LedgerRow(symbol=symbol, transaction=tx)
            for symbol, entry in self._load().items()
            for tx in entry.transactions
        ]
        rows.sort(key=lambda row: row.transaction.date, reverse=True)
        return rows

    def transactions_page(self, page: int = 1, per_page: int = TRANSACTIONS_PER_PAGE) -> TransactionPage:
        """Paginate `all_transactions`; out-of-range pages are clamped"""
        if per_page < 1:
            raise ValidationError("per_page must be at least 1")

        rows = self.all_transactions()
        total_pages = math.ceil(len(rows) / per_page)
        page = min(max(1, page), max(1, total_pages))
        start = (page - 1) * per_page

        return TransactionPage(
            items=tuple(rows[start:start + per_page]),
            page=page,
            total_pages=total_pages,
            total_items=len(rows),
        )

    def export_all(self) -> Dict[str, Any]:
        """JSON-ready snapshot of the whole ledger"""
        return {symbol: entry.to_dict() for symbol, entry in self._load().items()}

    def export_json(self) -> str:
        return orjson.dumps(self.export_all(), option=orjson.OPT_INDENT_2).decode('utf-8')

    @staticmethod
    def export_filename(today: Optional[date] = None) -> str:
        today = today or utc_now().date()
        return EXPORT_FILENAME_TEMPLATE.format(date=today.isoformat())

    # ----------------------------------------------------------------- internal

    def _load(self) -> Dict[str, LedgerEntry]:
        raw = self.store.get(self.storage_key, {})
        if not raw:
            return {}
        try:
            return parse_snapshot(raw)
        except MalformedImportError as e:
            raise StorageError(f"Stored ledger is corrupt: {e}") from e

    def _save(self, entries: Dict[str, LedgerEntry]) -> None:
        self.store.set(self.storage_key, {s: e.to_dict() for s, e in entries.items()})

    def _notify(self, symbol: Optional[str]) -> None:
        if self.on_change is not None:
            self.on_change(symbol)

    @staticmethod
    def _generate_id(existing: set) -> str:
        """Millisecond timestamp plus a random base36 suffix, unique per symbol"""
        while True:
            suffix = ''.join(random.choices(_ID_ALPHABET, k=7))
            tx_id = f"{int(time.time() * 1000)}{suffix}"
            if tx_id not in existing:
                return tx_id


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
