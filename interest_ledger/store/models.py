"""
ORM tables for the interest ledger.

interest_transaction and donation hold the append-only facts;
interest_projection holds the recomputed donation state, one row per
transaction.
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Numeric, String, Text

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class InterestTransactionRecord(Base):
    __tablename__ = "interest_transaction"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    bank_id = Column(String, nullable=False, index=True)

    # Bank reference number, when the export carries one
    transaction_id = Column(String, nullable=True)
    # Identity-salted fingerprint; the deduplication key
    transaction_hash = Column(String(64), nullable=False, unique=True)

    amount = Column(Numeric(12, 2), nullable=False)
    balance = Column(Numeric(12, 2), nullable=True)
    date = Column(Date, nullable=False, index=True)
    type = Column(String(6), nullable=False, default="credit")
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)


class DonationRecord(Base):
    __tablename__ = "donation"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.now)


class InterestProjectionRecord(Base):
    __tablename__ = "interest_projection"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    bank_id = Column(String, nullable=True, index=True)

    transaction_hash = Column(
        String(64),
        ForeignKey("interest_transaction.transaction_hash", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    transaction_id = Column(String, nullable=True)

    amount = Column(Numeric(12, 2), nullable=False)
    donated_amount = Column(Numeric(12, 2), nullable=False)
    remaining_amount = Column(Numeric(12, 2), nullable=False)

    description = Column(Text, nullable=True)
    transaction_date = Column(Date, nullable=False)
    donation_at = Column(Date, nullable=True)

    status = Column(String(20), nullable=False, index=True)

    updated_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index("projection_date_idx", "transaction_date"),
    )
