"""
Base Class for Bank Extractors

Every extractor answers two questions about an artifact:
- detect(): is this one of my statements?
- extract(): which interest credits does it contain?

extract() is a template method: subclasses only turn the artifact into
StatementRow records; filtering, sign handling and hashing live here.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Pattern

from interest_ledger.common.logging_config import get_logger
from interest_ledger.common.models import Transaction
from .artifact import StatementArtifact
from .config.layout import ColumnLayout
from .exceptions import HeaderNotFoundError
from .hashing import transaction_hash
from .normalizers import ZERO

logger = get_logger(__name__)


@dataclass
class StatementRow:
    """One candidate line item, already normalized, before interest filtering."""
    date: date
    description: str
    amount: Decimal
    balance: Decimal
    transaction_id: Optional[str] = None


class BaseExtractor(ABC):
    """
    Abstract Base Class for all bank statement extractors.

    Subclasses set ``bank_id``, ``bank_name`` and ``interest_pattern``,
    and implement ``detect`` and ``parse_rows``.
    """
    bank_id: str = ''
    bank_name: str = 'Unknown Bank'
    interest_pattern: Pattern = re.compile(r"interest", re.IGNORECASE)
    # Kotak and IDFC PDFs only ever list interest as deposits
    credit_only: bool = False

    @abstractmethod
    def detect(self, artifact: StatementArtifact) -> bool:
        """
        Returns True if this extractor can handle the given artifact.
        """
        raise NotImplementedError

    @abstractmethod
    def parse_rows(self, artifact: StatementArtifact) -> Iterable[StatementRow]:
        """
        Yields every well-formed row below the header. Malformed rows are
        skipped here; a missing header raises HeaderNotFoundError.
        """
        raise NotImplementedError

    def extract(self, artifact: StatementArtifact, identity: str) -> List[Transaction]:
        """
        Main entry point. Returns the interest transactions in statement order.

        Args:
            artifact: The uploaded statement
            identity: Owner of the statement; salts the transaction hash
        """
        transactions = []
        seen = 0
        for row in self.parse_rows(artifact):
            seen += 1
            if not self.is_interest(row.description):
                continue
            transactions.append(self.build_transaction(row, identity))

        logger.info(
            f"{self.bank_name}: extracted interest transactions.",
            bank_id=self.bank_id,
            filename=artifact.filename,
            rows=seen,
            tx_count=len(transactions),
        )
        return transactions

    def is_interest(self, description: Optional[str]) -> bool:
        if not description:
            return False
        normalized = re.sub(r"\s+", " ", description).strip()
        return bool(self.interest_pattern.search(normalized))

    def build_transaction(self, row: StatementRow, identity: str) -> Transaction:
        amount = row.amount
        balance = row.balance if row.balance is not None else ZERO
        if self.credit_only:
            txn_type = 'credit'
        else:
            txn_type = 'credit' if amount >= 0 else 'debit'

        return Transaction(
            transaction_hash=transaction_hash(
                row.date, row.description, amount, balance, identity, row.transaction_id
            ),
            bank_id=self.bank_id,
            date=row.date,
            description=row.description,
            amount=amount,
            type=txn_type,
            balance=balance,
            transaction_id=row.transaction_id,
        )

    def format_description(self, description: Optional[str]) -> Optional[str]:
        """Presentation-time rewrite of a raw description. Identity by default."""
        return description

    def header_not_found(self, artifact: StatementArtifact, missing) -> HeaderNotFoundError:
        logger.warning(
            f"{self.bank_name}: transaction header not found.",
            bank_id=self.bank_id,
            filename=artifact.filename,
            missing=list(missing),
        )
        return HeaderNotFoundError(
            self.bank_name,
            missing,
            filename=artifact.filename,
            bank_id=self.bank_id,
            sample_text=artifact.sample(),
        )

    def iter_layout_rows(self, artifact: StatementArtifact, rows: List[list], layout: ColumnLayout):
        """
        Shared driver for header-mapped exports (CSV and spreadsheets).
        Yields one converted record dict per data row.
        """
        header_idx = layout.find_header(rows)
        if header_idx is None:
            raise self.header_not_found(artifact, layout.header_markers)

        mapping, missing = layout.map_columns(rows[header_idx])
        if missing:
            raise self.header_not_found(artifact, missing)

        for row in rows[header_idx + 1:]:
            if not row or all(cell is None or str(cell).strip() == "" for cell in row):
                continue
            yield layout.read_row(row, mapping)

    @staticmethod
    def lines(text: str) -> List[str]:
        return re.split(r"\r\n|\n|\r", text)
