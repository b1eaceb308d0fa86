"""
Ledger Service

The operations the outer surface calls: sync extracted transactions, add a
donation, reconcile, list the projection, dashboard totals.

Every operation requires a resolved identity. Reconciliation is serialized
per identity; different identities never wait on each other.
"""
import datetime as dt
import threading
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Sequence

import pydantic
from pydantic import BaseModel, Field, TypeAdapter

from interest_ledger.common.logging_config import get_logger
from interest_ledger.common.models import Donation, ProjectionPage, STATUSES, Transaction
from interest_ledger.parsing.registry import ExtractorRegistry, get_registry
from interest_ledger.store import gateway
from .exceptions import UnauthenticatedError, ValidationError
from .reconciler import InterestReconciler

logger = get_logger(__name__)

MAX_PAGE_LIMIT = 100

# Schedules fn(*args) to run later, e.g. fastapi.BackgroundTasks.add_task
Deferrer = Callable[..., Any]


class TransactionPayload(BaseModel):
    """Shape a transaction must have before it is persisted."""
    transaction_hash: str = Field(min_length=1)
    bank_id: str = Field(min_length=1)
    date: dt.date
    amount: Decimal
    balance: Decimal = Decimal("0.00")
    type: Literal['credit', 'debit'] = 'credit'
    description: Optional[str] = None
    transaction_id: Optional[str] = None

    def to_transaction(self) -> Transaction:
        return Transaction(
            transaction_hash=self.transaction_hash,
            bank_id=self.bank_id,
            date=self.date,
            description=self.description,
            amount=self.amount,
            type=self.type,
            balance=self.balance,
            transaction_id=self.transaction_id,
        )


class DonationPayload(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)


_transaction_batch = TypeAdapter(List[TransactionPayload])


def _format_issues(error: pydantic.ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in issue['loc'])}: {issue['msg']}"
        for issue in error.errors()
    ]


def validate_transactions(transactions: Iterable) -> List[Transaction]:
    """
    Validate a batch as a whole. Accepts Transaction objects or plain dicts.

    Raises:
        ValidationError: one aggregated message for every invalid field
    """
    raw = [t.to_dict() if isinstance(t, Transaction) else t for t in transactions]
    try:
        payloads = _transaction_batch.validate_python(raw)
    except pydantic.ValidationError as e:
        issues = _format_issues(e)
        raise ValidationError(f"Validation error: {', '.join(issues)}", issues) from e
    return [p.to_transaction() for p in payloads]


class LedgerService:
    def __init__(
        self,
        session_factory,
        registry: Optional[ExtractorRegistry] = None,
        reconciler: Optional[InterestReconciler] = None,
        today: Callable[[], date] = date.today,
        page_limit: int = MAX_PAGE_LIMIT,
    ):
        """
        Args:
            session_factory: SQLAlchemy sessionmaker bound to the store
            registry: Used to format descriptions for listings
            reconciler: FIFO engine (default InterestReconciler)
            today: Clock for donation dates
            page_limit: Upper bound for list_projections ``limit``
        """
        self.session_factory = session_factory
        self.registry = registry or get_registry()
        self.reconciler = reconciler or InterestReconciler()
        self.today = today
        self.page_limit = page_limit

        # identity -> [lock, holders and waiters]
        self._locks: Dict[str, list] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_identity(identity: Optional[str]) -> str:
        if not identity or not str(identity).strip():
            raise UnauthenticatedError()
        return str(identity)

    @contextmanager
    def _identity_lock(self, identity: str):
        """Holds the identity's lock; the table entry is dropped once nobody uses it."""
        with self._locks_guard:
            entry = self._locks.get(identity)
            if entry is None:
                entry = self._locks[identity] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[identity]

    @contextmanager
    def _session(self):
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _after_write(self, identity: str, defer: Optional[Deferrer]):
        if defer is None:
            self.reconcile(identity)
        else:
            defer(self.reconcile, identity)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def sync_transactions(self, identity: Optional[str], transactions: Iterable, defer: Optional[Deferrer] = None) -> int:
        """
        Persist a reviewed batch. Already-known hashes are skipped, so
        syncing the same statement twice is a no-op.

        Returns:
            Number of newly stored transactions
        """
        identity = self._require_identity(identity)
        validated = validate_transactions(transactions)
        if not validated:
            raise ValidationError("No transactions to sync")

        with self._session() as session:
            inserted = gateway.insert_transactions(session, identity, validated)

        logger.info("Transactions synced.", identity=identity, submitted=len(validated), inserted=inserted)
        self._after_write(identity, defer)
        return inserted

    def add_donation(self, identity: Optional[str], amount, defer: Optional[Deferrer] = None) -> Donation:
        """
        Record a donation dated today and trigger reconciliation.

        Raises:
            ValidationError: amount is not a positive number
        """
        identity = self._require_identity(identity)
        try:
            payload = DonationPayload(amount=amount)
        except pydantic.ValidationError as e:
            raise ValidationError("Invalid amount", _format_issues(e)) from e

        with self._session() as session:
            donation = gateway.append_donation(session, identity, payload.amount, self.today())

        logger.info("Donation added.", identity=identity, amount=donation.amount, date=donation.date)
        self._after_write(identity, defer)
        return donation

    def reconcile(self, identity: Optional[str]) -> int:
        """
        Recompute and upsert the whole projection for one identity.

        Returns:
            Number of projection rows written
        """
        identity = self._require_identity(identity)

        with self._identity_lock(identity):
            with self._session() as session:
                transactions = gateway.load_transactions(session, identity)
                if not transactions:
                    logger.debug("Nothing to reconcile.", identity=identity)
                    return 0

                donations = gateway.load_donations(session, identity)
                projections = self.reconciler.reconcile(transactions, donations, now=datetime.now())
                written = gateway.upsert_projections(session, identity, projections)

        logger.info(
            "Reconciliation finished.",
            identity=identity,
            rows=written,
            donations=len(donations),
        )
        return written

    def list_projections(
        self,
        identity: Optional[str],
        cursor: Optional[str] = None,
        limit: int = 50,
        sort_direction: str = 'desc',
        status_filter: Optional[Sequence[str]] = None,
    ) -> ProjectionPage:
        identity = self._require_identity(identity)

        if sort_direction not in ('asc', 'desc'):
            raise ValidationError(f"Invalid sort direction: {sort_direction}")
        unknown = [s for s in (status_filter or []) if s not in STATUSES]
        if unknown:
            raise ValidationError(f"Unknown status filter: {', '.join(unknown)}")
        limit = max(1, min(int(limit), self.page_limit))

        with self._session() as session:
            page = gateway.list_projections(session, identity, cursor, limit, sort_direction, status_filter)

        for item in page.items:
            item['description'] = self.registry.format_description(item['bank_id'], item['description'])
        return page

    def dashboard_stats(self, identity: Optional[str]) -> dict:
        identity = self._require_identity(identity)
        with self._session() as session:
            return gateway.totals(session, identity)
