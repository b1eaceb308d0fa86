import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from interest_ledger.common.logging_config import get_logger
from ..base import BaseExtractor, StatementRow
from ..config.layout import ColumnDef, ColumnLayout
from ..normalizers import parse_amount_or_zero, parse_date, is_blank

logger = get_logger(__name__)


def _text(value) -> Optional[str]:
    return None if is_blank(value) else str(value)


SBI_LAYOUT = ColumnLayout(
    header_markers=["debit", "credit"],
    columns=[
        ColumnDef("date", "Date", parse_date, exact=True),
        ColumnDef("details", "Details", _text, exact=True),
        ColumnDef("debit", "Debit", parse_amount_or_zero, exact=True),
        ColumnDef("credit", "Credit", parse_amount_or_zero, exact=True),
        ColumnDef("balance", "Balance", parse_amount_or_zero, exact=True),
    ],
)


@dataclass
class SBIRow:
    date: date
    details: str
    debit: Decimal
    credit: Decimal
    balance: Decimal

    @classmethod
    def from_record(cls, record: dict) -> Optional["SBIRow"]:
        if record['date'] is None or not record['details']:
            return None
        if any(record[k] is None for k in ('debit', 'credit', 'balance')):
            return None
        return cls(**record)


class SBIExtractor(BaseExtractor):
    """
    State Bank of India account statement, XLSX export.

    The "Details" cell wraps across lines inside the spreadsheet, which
    is why the interest phrase is matched after whitespace is collapsed
    (the export renders it as "INTERES T CREDIT").
    """
    bank_id = 'in-sbi'
    bank_name = 'State Bank of India'
    interest_pattern = re.compile(r"interes\s?t\s+credit", re.IGNORECASE)

    def detect(self, artifact) -> bool:
        if not artifact.is_spreadsheet:
            return False
        text = artifact.text
        return "State Bank of India" in text or "SBIN" in text

    def parse_rows(self, artifact):
        for record in self.iter_layout_rows(artifact, artifact.rows, SBI_LAYOUT):
            row = SBIRow.from_record(record)
            if row is None:
                logger.debug("Skipping malformed SBI row.", filename=artifact.filename)
                continue

            yield StatementRow(
                date=row.date,
                description=row.details,
                amount=row.credit - row.debit,
                balance=row.balance,
            )
