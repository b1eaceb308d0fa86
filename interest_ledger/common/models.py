from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Literal

TransactionType = Literal['credit', 'debit']
ProjectionStatus = Literal['not_donated', 'partially_donated', 'fully_donated']

NOT_DONATED = 'not_donated'
PARTIALLY_DONATED = 'partially_donated'
FULLY_DONATED = 'fully_donated'
STATUSES = (NOT_DONATED, PARTIALLY_DONATED, FULLY_DONATED)


@dataclass(frozen=True)
class Transaction:
    """
    Canonical representation of one interest line item.
    Produced by the bank extractors, consumed by the consolidator,
    the store and the reconciler.
    """
    transaction_hash: str
    bank_id: str
    date: date
    description: Optional[str]
    amount: Decimal
    type: TransactionType
    balance: Decimal
    transaction_id: Optional[str] = None  # Bank-supplied reference, when the export has one

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Donation:
    amount: Decimal
    date: date


@dataclass
class InterestProjection:
    """Derived per-transaction donation state. Recomputed, never edited."""
    transaction_hash: str
    amount: Decimal
    donated_amount: Decimal
    remaining_amount: Decimal
    status: ProjectionStatus
    donation_at: Optional[date]
    updated_at: datetime
    bank_id: Optional[str] = None
    transaction_id: Optional[str] = None
    description: Optional[str] = None
    transaction_date: Optional[date] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class ProjectionPage:
    items: list = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_next_page: bool = False
