"""
Transaction fingerprinting.

The hash is the only deduplication key: the same logical row parsed from a
CSV, XLSX or PDF export of one statement must produce the same digest.
"""
import hashlib
from datetime import date
from decimal import Decimal
from typing import Optional

from .normalizers import TWO_PLACES


def _canonical_amount(value) -> str:
    if value is None:
        value = Decimal("0")
    return str(Decimal(value).quantize(TWO_PLACES))


def canonical_hash_input(
    txn_date: date,
    description: Optional[str],
    amount: Decimal,
    balance: Decimal,
    identity: str,
    transaction_id: Optional[str] = None,
) -> str:
    """Pipe-delimited canonical form: date|description|amount|balance|identity|transaction_id."""
    return "|".join([
        txn_date.isoformat(),
        description or "",
        _canonical_amount(amount),
        _canonical_amount(balance),
        identity or "",
        transaction_id or "",
    ])


def transaction_hash(
    txn_date: date,
    description: Optional[str],
    amount: Decimal,
    balance: Decimal,
    identity: str,
    transaction_id: Optional[str] = None,
) -> str:
    """SHA-256 hex digest of the canonical form. Uses the raw description."""
    raw = canonical_hash_input(txn_date, description, amount, balance, identity, transaction_id)
    return hashlib.sha256(raw.encode('utf-8')).hexdigest()
