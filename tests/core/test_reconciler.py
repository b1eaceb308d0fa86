"""
Tests for the FIFO donation waterfall.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from interest_ledger.common.models import FULLY_DONATED, NOT_DONATED, PARTIALLY_DONATED
from interest_ledger.core.reconciler import InterestReconciler, projection_status
from tests.conftest import make_donation, make_txn

D = Decimal
NOW = datetime(2024, 6, 1, 12, 0)


@pytest.fixture
def reconciler():
    return InterestReconciler()


def by_amount_and_state(projections):
    return [(p.amount, p.donated_amount, p.remaining_amount, p.status) for p in projections]


def test_fifo_ordering(reconciler):
    t1 = make_txn(100, date(2024, 1, 1))
    t2 = make_txn(50, date(2024, 2, 1))

    projections = reconciler.reconcile([t2, t1], [make_donation(120, date(2024, 3, 1))], now=NOW)

    assert by_amount_and_state(projections) == [
        (D("100.00"), D("100.00"), D("0.00"), FULLY_DONATED),
        (D("50.00"), D("20.00"), D("30.00"), PARTIALLY_DONATED),
    ]
    assert projections[0].transaction_hash == t1.transaction_hash
    assert projections[0].donation_at == date(2024, 3, 1)
    assert projections[0].updated_at == NOW


def test_pooled_donations_span_transactions(reconciler):
    txns = [make_txn(30, date(2024, 1, d)) for d in (1, 2, 3)]
    donations = [make_donation(50, date(2023, 12, 1)), make_donation(30, date(2025, 1, 1))]

    projections = reconciler.reconcile(txns, donations, now=NOW)

    assert by_amount_and_state(projections) == [
        (D("30.00"), D("30.00"), D("0.00"), FULLY_DONATED),
        (D("30.00"), D("30.00"), D("0.00"), FULLY_DONATED),
        (D("30.00"), D("20.00"), D("10.00"), PARTIALLY_DONATED),
    ]
    assert sum(p.donated_amount for p in projections) == D("80.00")
    # The second transaction drew on both donations; the later one is recorded
    assert projections[1].donation_at == date(2025, 1, 1)


def test_no_donations(reconciler):
    txns = [make_txn(12, date(2024, 1, 1)), make_txn(7.5, date(2024, 2, 1))]

    projections = reconciler.reconcile(txns, [], now=NOW)

    assert all(p.status == NOT_DONATED for p in projections)
    assert all(p.donated_amount == 0 for p in projections)
    assert all(p.donation_at is None for p in projections)


def test_donation_dated_after_covers_earlier_transaction(reconciler):
    txn = make_txn(40, date(2024, 1, 1))
    projections = reconciler.reconcile([txn], [make_donation(40, date(2024, 12, 31))], now=NOW)
    assert projections[0].status == FULLY_DONATED


def test_surplus_donation_is_not_over_allocated(reconciler):
    txn = make_txn(25, date(2024, 1, 1))
    projections = reconciler.reconcile([txn], [make_donation(1000)], now=NOW)

    assert projections[0].donated_amount == D("25.00")
    assert projections[0].remaining_amount == D("0.00")


def test_non_positive_donations_are_ignored(reconciler):
    txn = make_txn(25, date(2024, 1, 1))
    donations = [make_donation(0), make_donation(-10), make_donation(5)]

    projections = reconciler.reconcile([txn], donations, now=NOW)

    assert projections[0].donated_amount == D("5.00")
    assert projections[0].status == PARTIALLY_DONATED


def test_negative_transaction_absorbs_nothing(reconciler):
    reversal = make_txn(-15, date(2024, 1, 1), description="Interest reversal")
    later = make_txn(10, date(2024, 2, 1))

    projections = reconciler.reconcile([reversal, later], [make_donation(10)], now=NOW)

    assert projections[0].donated_amount == D("0.00")
    assert projections[0].remaining_amount == D("-15.00")
    assert projections[0].status == NOT_DONATED
    assert projections[1].status == FULLY_DONATED


def test_zero_amount_transaction_is_fully_donated(reconciler):
    projections = reconciler.reconcile([make_txn(0, date(2024, 1, 1))], [], now=NOW)
    assert projections[0].status == FULLY_DONATED


@pytest.mark.parametrize("donation_amounts", [
    [],
    [1],
    [0.01, 0.02, 0.03],
    [33.33, 33.33, 33.34],
    [10, 500],
    [99.99],
])
def test_amount_conservation(reconciler, donation_amounts):
    txns = [make_txn(a, date(2024, 1, i + 1)) for i, a in enumerate([12.34, 0.5, 45, 19.99, 7])]
    donations = [make_donation(a) for a in donation_amounts]

    projections = reconciler.reconcile(txns, donations, now=NOW)

    for p in projections:
        assert p.donated_amount + p.remaining_amount == p.amount
        assert p.remaining_amount >= 0
    total_given = sum((d.amount for d in donations), D("0"))
    assert sum(p.donated_amount for p in projections) == min(total_given, sum(t.amount for t in txns))


def test_projection_status():
    assert projection_status(D("0"), D("10")) == NOT_DONATED
    assert projection_status(D("5"), D("5")) == PARTIALLY_DONATED
    assert projection_status(D("10"), D("0")) == FULLY_DONATED


def test_pool_larger_than_interest_covers_everything(reconciler):
    txns = [make_txn(30, date(2024, 1, d)) for d in (1, 2, 3)]
    donations = [make_donation(50), make_donation(50)]

    projections = reconciler.reconcile(txns, donations, now=NOW)

    assert all(p.status == FULLY_DONATED for p in projections)
    assert sum(p.donated_amount for p in projections) == D("90.00")
