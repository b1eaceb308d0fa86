from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from interest_ledger.common.logging_config import get_logger
from interest_ledger.common.models import (
    Donation,
    InterestProjection,
    Transaction,
    FULLY_DONATED,
    NOT_DONATED,
    PARTIALLY_DONATED,
)

logger = get_logger(__name__)

ZERO = Decimal("0.00")


def projection_status(donated: Decimal, remaining: Decimal) -> str:
    if remaining == 0:
        return FULLY_DONATED
    if donated > 0 and remaining > 0:
        return PARTIALLY_DONATED
    return NOT_DONATED


class InterestReconciler:
    def reconcile(
        self,
        transactions: Sequence[Transaction],
        donations: Sequence[Donation],
        now: Optional[datetime] = None,
    ) -> List[InterestProjection]:
        """
        FIFO waterfall of the donation pool over the interest transactions.

        All donations form one pooled balance, consumed by the transactions
        oldest first. A donation can therefore cover a transaction dated
        before or after it; what matters is transaction order.

        Returns one projection row per transaction, in ascending date order.
        """
        now = now or datetime.now()

        # Stable sorts: same-day items keep the order the caller loaded them in
        ordered_txns = sorted(transactions, key=lambda t: t.date)
        pool = [d for d in sorted(donations, key=lambda d: d.date) if d.amount > 0]
        if len(pool) != len(donations):
            logger.warning("Ignoring non-positive donations.", ignored=len(donations) - len(pool))

        donation_idx = 0
        current_remaining = pool[0].amount if pool else ZERO

        projections = []
        for txn in ordered_txns:
            amount = txn.amount
            needed = amount
            covered = ZERO
            last_donation_date = None

            while needed > 0 and donation_idx < len(pool):
                take = min(needed, current_remaining)

                covered += take
                needed -= take
                current_remaining -= take
                last_donation_date = pool[donation_idx].date

                if current_remaining <= 0:
                    donation_idx += 1
                    if donation_idx < len(pool):
                        current_remaining = pool[donation_idx].amount

            remaining = amount - covered
            if remaining < 0 and amount >= 0:
                remaining = ZERO

            projections.append(InterestProjection(
                transaction_hash=txn.transaction_hash,
                amount=amount,
                donated_amount=covered,
                remaining_amount=remaining,
                status=projection_status(covered, remaining),
                donation_at=last_donation_date,
                updated_at=now,
                bank_id=txn.bank_id,
                transaction_id=txn.transaction_id,
                description=txn.description,
                transaction_date=txn.date,
            ))

        logger.debug(
            "Reconciliation computed.",
            tx_count=len(ordered_txns),
            donation_count=len(pool),
            donations_exhausted=donation_idx >= len(pool),
        )
        return projections
