from datetime import date
from decimal import Decimal
from dataclasses import replace

from interest_ledger.core.consolidator import TransactionConsolidator
from tests.conftest import make_txn


def test_empty():
    assert TransactionConsolidator.consolidate([]) == []
    assert TransactionConsolidator.consolidate([[], []]) == []


def test_orders_newest_first():
    old = make_txn(10, date(2024, 1, 1))
    new = make_txn(20, date(2024, 6, 1))
    mid = make_txn(30, date(2024, 3, 1))

    result = TransactionConsolidator.consolidate([[old, new], [mid]])

    assert [t.date for t in result] == [date(2024, 6, 1), date(2024, 3, 1), date(2024, 1, 1)]


def test_last_record_per_hash_wins():
    first = make_txn(10, date(2024, 1, 1))
    # Same hash, different presentation detail
    second = replace(first, description="re-exported")

    result = TransactionConsolidator.consolidate([[first], [second]])

    assert len(result) == 1
    assert result[0].description == "re-exported"


def test_same_day_keeps_input_order():
    a = make_txn(10, date(2024, 1, 1), description="Interest A")
    b = make_txn(20, date(2024, 1, 1), description="Interest B")

    result = TransactionConsolidator.consolidate([[a, b]])

    assert [t.amount for t in result] == [Decimal("10.00"), Decimal("20.00")]
