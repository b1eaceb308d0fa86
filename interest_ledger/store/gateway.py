"""
Projection Store Gateway

All reads and writes the ledger service performs against the relational
store. Transactions are inserted with conflict-skip on transaction_hash,
projections are upserted with conflict-merge on transaction_hash.
"""
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from interest_ledger.common.logging_config import get_logger
from interest_ledger.common.models import Donation, InterestProjection, ProjectionPage, Transaction
from .models import DonationRecord, InterestProjectionRecord, InterestTransactionRecord

logger = get_logger(__name__)

# Keeps multi-row INSERTs under SQLite's bound-parameter limit
CHUNK_SIZE = 500

PROJECTION_MERGE_FIELDS = (
    'donated_amount',
    'remaining_amount',
    'status',
    'updated_at',
    'donation_at',
    'description',
    'transaction_date',
    'transaction_id',
    'amount',
    'bank_id',
)


def _insert(session: Session, table):
    dialect = session.get_bind().dialect.name
    if dialect == 'postgresql':
        return postgresql.insert(table)
    if dialect == 'sqlite':
        return sqlite.insert(table)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported for dialect {dialect!r}")


def _chunks(items: Sequence, size: int = CHUNK_SIZE):
    for start in range(0, len(items), size):
        yield items[start:start + size]


def insert_transactions(session: Session, identity: str, transactions: Iterable[Transaction]) -> int:
    """
    Insert transactions, silently skipping hashes already stored.

    Returns:
        Number of rows actually inserted
    """
    rows = [
        {
            'user_id': identity,
            'bank_id': t.bank_id,
            'transaction_id': t.transaction_id,
            'transaction_hash': t.transaction_hash,
            'amount': t.amount,
            'balance': t.balance,
            'date': t.date,
            'type': t.type,
            'description': t.description,
        }
        for t in transactions
    ]
    if not rows:
        return 0

    hashes = list({r['transaction_hash'] for r in rows})
    existing = set()
    for chunk in _chunks(hashes):
        existing.update(session.scalars(
            select(InterestTransactionRecord.transaction_hash)
            .where(InterestTransactionRecord.transaction_hash.in_(chunk))
        ))

    for chunk in _chunks(rows):
        stmt = _insert(session, InterestTransactionRecord.__table__).values(chunk)
        session.execute(stmt.on_conflict_do_nothing(index_elements=['transaction_hash']))

    inserted = len(hashes) - len(existing)
    logger.debug("Transactions inserted.", identity=identity, submitted=len(rows), inserted=inserted)
    return inserted


def append_donation(session: Session, identity: str, amount: Decimal, on: date) -> Donation:
    session.add(DonationRecord(user_id=identity, amount=amount, date=on))
    return Donation(amount=amount, date=on)


def load_transactions(session: Session, identity: str) -> List[Transaction]:
    """All of an identity's transactions, oldest first."""
    records = session.scalars(
        select(InterestTransactionRecord)
        .where(InterestTransactionRecord.user_id == identity)
        .order_by(InterestTransactionRecord.date.asc(), InterestTransactionRecord.created_at.asc())
    )
    return [
        Transaction(
            transaction_hash=r.transaction_hash,
            bank_id=r.bank_id,
            date=r.date,
            description=r.description,
            amount=Decimal(r.amount),
            type=r.type,
            balance=Decimal(r.balance) if r.balance is not None else Decimal("0.00"),
            transaction_id=r.transaction_id,
        )
        for r in records
    ]


def load_donations(session: Session, identity: str) -> List[Donation]:
    """All of an identity's donations, oldest first."""
    records = session.scalars(
        select(DonationRecord)
        .where(DonationRecord.user_id == identity)
        .order_by(DonationRecord.date.asc(), DonationRecord.created_at.asc())
    )
    return [Donation(amount=Decimal(r.amount), date=r.date) for r in records]


def upsert_projections(session: Session, identity: str, projections: Iterable[InterestProjection]) -> int:
    """
    Insert new projection rows and overwrite the derived fields of existing
    ones, keyed on transaction_hash.
    """
    rows = [
        {
            'user_id': identity,
            'bank_id': p.bank_id,
            'transaction_hash': p.transaction_hash,
            'transaction_id': p.transaction_id,
            'amount': p.amount,
            'donated_amount': p.donated_amount,
            'remaining_amount': p.remaining_amount,
            'description': p.description,
            'transaction_date': p.transaction_date,
            'donation_at': p.donation_at,
            'status': p.status,
            'updated_at': p.updated_at,
        }
        for p in projections
    ]

    for chunk in _chunks(rows):
        stmt = _insert(session, InterestProjectionRecord.__table__).values(chunk)
        stmt = stmt.on_conflict_do_update(
            index_elements=['transaction_hash'],
            set_={name: stmt.excluded[name] for name in PROJECTION_MERGE_FIELDS},
        )
        session.execute(stmt)

    return len(rows)


def parse_cursor(cursor: Optional[str]):
    """'<YYYY-MM-DD>_<row id>' -> (date, id); anything malformed -> (None, None)."""
    if not cursor:
        return None, None
    parts = cursor.split('_', 1)
    if len(parts) != 2 or not parts[1]:
        return None, None
    try:
        return date.fromisoformat(parts[0]), parts[1]
    except ValueError:
        return None, None


def encode_cursor(transaction_date: date, row_id: str) -> str:
    return f"{transaction_date.isoformat()}_{row_id}"


def projection_to_dict(record: InterestProjectionRecord) -> dict:
    return {
        'id': record.id,
        'transaction_hash': record.transaction_hash,
        'transaction_id': record.transaction_id,
        'bank_id': record.bank_id,
        'amount': Decimal(record.amount),
        'donated_amount': Decimal(record.donated_amount),
        'remaining_amount': Decimal(record.remaining_amount),
        'description': record.description,
        'transaction_date': record.transaction_date,
        'donation_at': record.donation_at,
        'status': record.status,
        'updated_at': record.updated_at,
    }


def list_projections(
    session: Session,
    identity: str,
    cursor: Optional[str] = None,
    limit: int = 50,
    sort_direction: str = 'desc',
    status_filter: Optional[Sequence[str]] = None,
) -> ProjectionPage:
    """
    One page of projection rows, keyset-paginated on (transaction_date, id).

    Rows are ordered by date in ``sort_direction`` with a descending id
    tie-break; the cursor continues strictly after the last row returned.
    """
    table = InterestProjectionRecord
    conditions = [table.user_id == identity]

    if status_filter:
        conditions.append(table.status.in_(list(status_filter)))

    cursor_date, cursor_id = parse_cursor(cursor)
    if cursor_date is not None:
        past_date = table.transaction_date > cursor_date if sort_direction == 'asc' else table.transaction_date < cursor_date
        conditions.append(or_(
            past_date,
            and_(table.transaction_date == cursor_date, table.id < cursor_id),
        ))

    date_order = table.transaction_date.asc() if sort_direction == 'asc' else table.transaction_date.desc()
    records = list(session.scalars(
        select(table)
        .where(*conditions)
        .order_by(date_order, table.id.desc())
        .limit(limit + 1)
    ))

    has_next_page = len(records) > limit
    items = records[:limit]
    next_cursor = None
    if has_next_page and items:
        next_cursor = encode_cursor(items[-1].transaction_date, items[-1].id)

    return ProjectionPage(
        items=[projection_to_dict(r) for r in items],
        next_cursor=next_cursor,
        has_next_page=has_next_page,
    )


def totals(session: Session, identity: str) -> dict:
    """Sum of credit interest and of donations for an identity."""
    total_interest = session.scalar(
        select(func.coalesce(func.sum(InterestTransactionRecord.amount), 0))
        .where(InterestTransactionRecord.user_id == identity, InterestTransactionRecord.type == 'credit')
    )
    total_donated = session.scalar(
        select(func.coalesce(func.sum(DonationRecord.amount), 0))
        .where(DonationRecord.user_id == identity)
    )
    return {
        'total_interest': Decimal(str(total_interest or 0)).quantize(Decimal("0.01")),
        'total_donated': Decimal(str(total_donated or 0)).quantize(Decimal("0.01")),
    }
