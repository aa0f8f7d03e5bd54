# tests/unit/test_ledger.py
"""
Unit tests for the transaction ledger
"""
import pytest
from datetime import date, datetime, timedelta, timezone
from unittest.mock import Mock

from core.ledger import (
    Holdings,
    Ledger,
    Transaction,
    TransactionType,
    calculate_holdings,
    parse_snapshot,
)
from data.storage.kv_store import MemoryStore
from utils.constants import PORTFOLIO_STORAGE_KEY
from utils.errors import MalformedImportError, StorageError, ValidationError

T0 = datetime(2025, 5, 1, tzinfo=timezone.utc)


def _tx(tx_id, quantity, price, tx_type=TransactionType.BUY, offset=0):
    return Transaction(id=tx_id, quantity=quantity, price=price,
                       date=T0 + timedelta(hours=offset), type=tx_type)


@pytest.mark.unit
class TestCalculateHoldings:
    """Moving-average cost basis"""

    def test_empty(self):
        assert calculate_holdings([]) == Holdings(0.0, 0.0)

    def test_buys_only_weighted_average(self):
        holdings = calculate_holdings([_tx("a", 10, 2.0), _tx("b", 30, 4.0)])

        assert holdings.quantity == pytest.approx(40)
        assert holdings.avg_price == pytest.approx(140 / 40)

    def test_sell_keeps_average(self):
        holdings = calculate_holdings([
            _tx("a", 100, 1.0),
            _tx("b", 40, 2.0, TransactionType.SELL),
        ])

        assert holdings.quantity == pytest.approx(60)
        assert holdings.avg_price == pytest.approx(1.0)

    def test_selling_everything_is_flat(self):
        holdings = calculate_holdings([
            _tx("a", 0.1, 3.0),
            _tx("b", 0.2, 5.0),
            _tx("c", 0.3, 9.0, TransactionType.SELL),
        ])

        assert holdings.quantity == 0
        assert holdings.avg_price == 0

    def test_buy_after_flat_starts_fresh(self):
        holdings = calculate_holdings([
            _tx("a", 10, 1.0),
            _tx("b", 10, 5.0, TransactionType.SELL),
            _tx("c", 5, 3.0),
        ])

        assert holdings.quantity == pytest.approx(5)
        assert holdings.avg_price == pytest.approx(3.0)

    def test_order_matters(self):
        buy_low = _tx("a", 10, 1.0)
        buy_high = _tx("b", 10, 3.0)
        sell = _tx("c", 10, 2.0, TransactionType.SELL)

        first = calculate_holdings([buy_low, sell, buy_high])
        second = calculate_holdings([buy_low, buy_high, sell])

        assert first.avg_price == pytest.approx(3.0)
        assert second.avg_price == pytest.approx(2.0)

    def test_cost_basis(self):
        assert Holdings(quantity=60, avg_price=1.5).cost_basis == pytest.approx(90)


@pytest.mark.unit
class TestTransaction:
    """Transaction parsing and serialization"""

    def test_signed_quantity(self):
        assert _tx("a", 5, 1.0).signed_quantity == 5
        assert _tx("b", 5, 1.0, TransactionType.SELL).signed_quantity == -5

    def test_from_dict_legacy_negative_sell(self):
        tx = Transaction.from_dict({"id": "x1", "quantity": -40, "price": 2, "date": "2025-05-01T00:00:00Z"})

        assert tx.type is TransactionType.SELL
        assert tx.quantity == 40
        assert tx.date == T0

    def test_from_dict_explicit_type(self):
        tx = Transaction.from_dict({"id": "x2", "quantity": 7, "price": 1.5,
                                    "date": "2025-05-01T00:00:00+00:00", "type": "SELL"})

        assert tx.type is TransactionType.SELL
        assert tx.quantity == 7

    @pytest.mark.parametrize("data", [
        {"id": "a", "quantity": "ten", "price": 1, "date": "2025-05-01T00:00:00Z"},
        {"id": "a", "quantity": 0, "price": 1, "date": "2025-05-01T00:00:00Z"},
        {"id": "a", "quantity": 1, "price": -1, "date": "2025-05-01T00:00:00Z"},
        {"id": "a", "quantity": 1, "price": 1, "date": "not a date"},
        {"id": "a", "quantity": 1, "price": 1, "date": "2025-05-01T00:00:00Z", "type": "hold"},
        {"quantity": 1, "price": 1, "date": "2025-05-01T00:00:00Z"},
        {"id": "a", "quantity": True, "price": 1, "date": "2025-05-01T00:00:00Z"},
        ["not", "an", "object"],
    ])
    def test_from_dict_rejects_malformed(self, data):
        with pytest.raises(MalformedImportError):
            Transaction.from_dict(data)

    def test_to_dict_round_trip(self):
        tx = _tx("abc", 3, 2.5, TransactionType.SELL)
        assert Transaction.from_dict(tx.to_dict()) == tx


@pytest.mark.unit
class TestLedgerMutations:
    """Adding and deleting transactions"""

    def test_add_buy_and_sell(self, ledger):
        ledger.add_transaction("moon", 100, 1.0)
        sell = ledger.add_transaction("MOON", -40, 2.0)

        assert sell.type is TransactionType.SELL
        assert sell.quantity == 40
        assert ledger.calculate_holdings("MOON") == Holdings(quantity=60.0, avg_price=1.0)

    def test_symbol_is_uppercased(self, ledger):
        ledger.add_transaction("  moon ", 1, 1.0)
        assert ledger.symbols() == ["MOON"]

    def test_transaction_id_format(self, ledger):
        tx = ledger.add_transaction("MOON", 1, 1.0)

        assert len(tx.id) == 20
        assert tx.id[:13].isdigit()
        assert all(c.isdigit() or c.islower() for c in tx.id[13:])

    def test_ids_unique(self, ledger):
        ids = {ledger.add_transaction("MOON", 1, 1.0).id for _ in range(50)}
        assert len(ids) == 50

    @pytest.mark.parametrize("symbol,quantity,price", [
        ("", 1, 1.0),
        ("MOON", 0, 1.0),
        ("MOON", 1, -0.5),
        ("MOON", "abc", 1.0),
        ("MOON", 1, None),
    ])
    def test_add_rejects_invalid_input(self, ledger, symbol, quantity, price):
        with pytest.raises(ValidationError):
            ledger.add_transaction(symbol, quantity, price)
        assert ledger.symbols() == []

    def test_add_rejects_invalid_date(self, ledger):
        with pytest.raises(ValidationError):
            ledger.add_transaction("MOON", 1, 1.0, date="yesterday")

    def test_add_with_explicit_date(self, ledger):
        tx = ledger.add_transaction("MOON", 1, 1.0, date="2025-05-01T00:00:00Z")
        assert tx.date == T0

    def test_zero_price_allowed(self, ledger):
        ledger.add_transaction("MOON", 10, 0)
        assert ledger.calculate_holdings("MOON") == Holdings(quantity=10.0, avg_price=0.0)

    def test_delete_then_readd_restores_holdings(self, ledger):
        ledger.add_transaction("MOON", 100, 1.0)
        tx = ledger.add_transaction("MOON", 50, 3.0)
        before = ledger.calculate_holdings("MOON")

        assert ledger.delete_transaction("MOON", tx.id) is True
        assert ledger.calculate_holdings("MOON") == Holdings(quantity=100.0, avg_price=1.0)

        ledger.add_transaction("MOON", 50, 3.0)
        assert ledger.calculate_holdings("MOON") == before

    def test_delete_last_transaction_removes_symbol(self, ledger):
        tx = ledger.add_transaction("MOON", 1, 1.0)

        assert ledger.delete_transaction("moon", tx.id) is True
        assert ledger.symbols() == []
        assert ledger.get_entry("MOON") is None

    def test_delete_unknown_returns_false(self, ledger):
        tx = ledger.add_transaction("MOON", 1, 1.0)

        assert ledger.delete_transaction("SUN", tx.id) is False
        assert ledger.delete_transaction("MOON", "missing") is False
        assert len(ledger.get_entry("MOON").transactions) == 1

    def test_on_change_notified(self, memory_store):
        on_change = Mock()
        ledger = Ledger(memory_store, on_change=on_change)

        tx = ledger.add_transaction("moon", 1, 1.0)
        ledger.delete_transaction("MOON", tx.id)
        ledger.clear_all()

        assert [c.args for c in on_change.call_args_list] == [("MOON",), ("MOON",), (None,)]

    def test_failed_delete_does_not_notify(self, memory_store):
        on_change = Mock()
        ledger = Ledger(memory_store, on_change=on_change)

        ledger.delete_transaction("MOON", "nope")
        on_change.assert_not_called()

    def test_unknown_symbol_holdings(self, ledger):
        assert ledger.calculate_holdings("NONE") == Holdings(0.0, 0.0)

    def test_set_notes(self, ledger):
        ledger.add_transaction("MOON", 1, 1.0)

        assert ledger.set_notes("moon", "long term") is True
        assert ledger.get_entry("MOON").notes == "long term"
        assert ledger.set_notes("SUN", "x") is False

    def test_clear_all(self, ledger):
        ledger.add_transaction("MOON", 1, 1.0)
        ledger.add_transaction("SUN", 1, 1.0)

        ledger.clear_all()
        assert ledger.symbols() == []


@pytest.mark.unit
class TestLedgerExportImport:
    """Snapshot export and import"""

    def test_export_import_reproduces_holdings(self, ledger):
        ledger.add_transaction("MOON", 100, 1.0)
        ledger.add_transaction("MOON", -40, 2.0)
        ledger.add_transaction("SUN", 5, 10.0)
        expected = {s: ledger.calculate_holdings(s) for s in ledger.symbols()}

        other = Ledger(MemoryStore())
        other.import_all(ledger.export_all())

        assert {s: other.calculate_holdings(s) for s in other.symbols()} == expected

    def test_export_json_import_json(self, ledger):
        ledger.add_transaction("MOON", 3, 2.0)
        text = ledger.export_json()

        assert '\n  "MOON"' in text

        other = Ledger(MemoryStore())
        other.import_json(text)
        assert other.export_all() == ledger.export_all()

    def test_import_legacy_format(self, ledger):
        ledger.import_all({
            "moon": {
                "transactions": [
                    {"id": "1", "quantity": 100, "price": 1, "date": "2025-05-01T00:00:00Z"},
                    {"id": "2", "quantity": -40, "price": 2, "date": "2025-05-02T00:00:00Z"},
                ],
                "notes": "",
            }
        })

        assert ledger.calculate_holdings("MOON") == Holdings(quantity=60.0, avg_price=1.0)

    def test_import_overwrites(self, ledger):
        ledger.add_transaction("OLD", 1, 1.0)
        ledger.import_all({"NEW": {"transactions": [
            {"id": "1", "quantity": 1, "price": 1, "date": "2025-05-01T00:00:00Z", "type": "buy"},
        ]}})

        assert ledger.symbols() == ["NEW"]

    @pytest.mark.parametrize("snapshot", [
        [],
        "text",
        {"MOON": {"notes": "no transactions"}},
        {"MOON": {"transactions": [{"id": "1", "quantity": 0, "price": 1, "date": "2025-05-01"}]}},
        {"MOON": {"transactions": [
            {"id": "1", "quantity": 1, "price": 1, "date": "2025-05-01"},
            {"id": "1", "quantity": 2, "price": 1, "date": "2025-05-01"},
        ]}},
        {"moon": {"transactions": []}, "MOON": {"transactions": []}},
        {"MOON": {"transactions": [], "notes": 5}},
        {"MOON": {"transactions": [{"id": "1", "quantity": 1, "price": 1, "date": 1e20, "type": "buy"}]}},
        {"MOON": {"transactions": [{"id": "1", "quantity": 1, "price": 1, "date": -1e15, "type": "buy"}]}},
    ])
    def test_malformed_import_leaves_store_unchanged(self, ledger, snapshot):
        ledger.add_transaction("MOON", 1, 1.0)
        before = ledger.export_all()

        with pytest.raises(MalformedImportError):
            ledger.import_all(snapshot)

        assert ledger.export_all() == before

    def test_import_invalid_json(self, ledger):
        ledger.add_transaction("MOON", 1, 1.0)
        before = ledger.export_all()

        with pytest.raises(MalformedImportError):
            ledger.import_json("{not json")

        assert ledger.export_all() == before

    def test_empty_entries_dropped(self):
        assert parse_snapshot({"MOON": {"transactions": []}}) == {}

    def test_export_filename(self):
        assert Ledger.export_filename(date(2025, 6, 1)) == "rugplay_portfolio_2025-06-01.json"

    def test_corrupt_store_raises_storage_error(self):
        store = MemoryStore({PORTFOLIO_STORAGE_KEY: {"MOON": "garbage"}})

        with pytest.raises(StorageError):
            Ledger(store).calculate_holdings("MOON")


@pytest.mark.unit
class TestLedgerListing:
    """Cross-symbol listing and pagination"""

    def test_all_transactions_newest_first(self, ledger):
        ledger.add_transaction("MOON", 1, 1.0, date=T0)
        ledger.add_transaction("SUN", 1, 1.0, date=T0 + timedelta(days=2))
        ledger.add_transaction("MOON", 1, 1.0, date=T0 + timedelta(days=1))

        rows = ledger.all_transactions()

        assert [r.symbol for r in rows] == ["SUN", "MOON", "MOON"]
        assert rows[0].transaction.date > rows[1].transaction.date > rows[2].transaction.date

    def test_pagination(self, ledger):
        for i in range(20):
            ledger.add_transaction("MOON", 1, 1.0, date=T0 + timedelta(minutes=i))

        first = ledger.transactions_page(1)
        second = ledger.transactions_page(2)

        assert (first.page, first.total_pages, first.total_items) == (1, 2, 20)
        assert len(first.items) == 15
        assert len(second.items) == 5
        assert first.has_next and not first.has_previous
        assert second.has_previous and not second.has_next

    def test_page_is_clamped(self, ledger):
        for i in range(3):
            ledger.add_transaction("MOON", 1, 1.0)

        assert ledger.transactions_page(9).page == 1
        assert ledger.transactions_page(-3).page == 1

    def test_empty_ledger_page(self, ledger):
        listing = ledger.transactions_page(4)

        assert listing.page == 1
        assert listing.total_pages == 0
        assert listing.items == ()

    def test_per_page_must_be_positive(self, ledger):
        with pytest.raises(ValidationError):
            ledger.transactions_page(1, per_page=0)
