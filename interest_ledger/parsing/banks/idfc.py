import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from interest_ledger.common.logging_config import get_logger
from ..base import BaseExtractor, StatementRow
from ..config.layout import ColumnDef, ColumnLayout
from ..normalizers import parse_amount, parse_amount_or_zero, parse_date, is_blank

logger = get_logger(__name__)

INTEREST_DESCRIPTION = "monthly savings interest credit"

# The amount line follows the date line within this many physical lines
AMOUNT_LOOKAHEAD = 4

# "31-Aug-2025 31-Aug-2025 MONTHLY SAVINGS INTEREST CREDIT"
DATE_LINE_PATTERN = re.compile(
    r"^\s*(\d{2}-\w{3}-\d{4})\s+\d{2}-\w{3}-\d{4}\s+(MONTHLY SAVINGS INTEREST CREDIT)\s*$",
    re.IGNORECASE,
)
# "### 49.00 41,918.20" (markdown renderings) or "49.00 41,918.20"
AMOUNT_LINE_PATTERN = re.compile(r"^\s*(?:#+\s+)?([\d,]+\.\d{2})\s+([\d,]+\.\d{2})\s*$")


def _text(value) -> Optional[str]:
    return None if is_blank(value) else str(value)


IDFC_LAYOUT = ColumnLayout(
    header_markers=["transaction date", "particulars"],
    columns=[
        ColumnDef("transaction_date", "Transaction Date", parse_date, exact=True),
        ColumnDef("particulars", "Particulars", _text, exact=True),
        ColumnDef("debit", "Debit", parse_amount_or_zero, exact=True),
        ColumnDef("credit", "Credit", parse_amount_or_zero, exact=True),
        ColumnDef("balance", "Balance", parse_amount_or_zero, exact=True),
    ],
)


@dataclass
class IDFCRow:
    transaction_date: date
    particulars: str
    debit: Decimal
    credit: Decimal
    balance: Decimal

    @classmethod
    def from_record(cls, record: dict) -> Optional["IDFCRow"]:
        if record['transaction_date'] is None or not record['particulars']:
            return None
        if any(record[k] is None for k in ('debit', 'credit', 'balance')):
            return None
        return cls(**record)


class IDFCExtractor(BaseExtractor):
    """
    IDFC First Bank savings statement, PDF or XLSX.

    One registry entry, two row strategies:
    - XLSX: header-mapped columns (Transaction Date, Particulars, Debit,
      Credit, Balance), amount = credit - debit.
    - PDF: the date and description sit on one line, the amount and
      balance on a following line a few lines further down.
    """
    bank_id = 'in-idfc'
    bank_name = 'IDFC First Bank'
    interest_pattern = re.compile(re.escape(INTEREST_DESCRIPTION), re.IGNORECASE)

    def detect(self, artifact) -> bool:
        if not (artifact.is_pdf or artifact.is_spreadsheet):
            return False
        text = artifact.text
        return "IDFC FIRST" in text.upper() or "IDFB" in text

    def parse_rows(self, artifact):
        if artifact.is_pdf:
            return self._parse_pdf(artifact)
        return self._parse_spreadsheet(artifact)

    def _parse_spreadsheet(self, artifact):
        for record in self.iter_layout_rows(artifact, artifact.rows, IDFC_LAYOUT):
            row = IDFCRow.from_record(record)
            if row is None:
                logger.debug("Skipping malformed IDFC row.", filename=artifact.filename)
                continue

            yield StatementRow(
                date=row.transaction_date,
                description=row.particulars,
                amount=row.credit - row.debit,
                balance=row.balance,
            )

    def _parse_pdf(self, artifact):
        lines = self.lines(artifact.pdf_text)

        header_idx = next(
            (i for i, line in enumerate(lines)
             if "transaction date" in line.lower() and "particulars" in line.lower()),
            None,
        )
        if header_idx is None:
            raise self.header_not_found(artifact, ["Transaction Date", "Particulars"])

        i = header_idx + 1
        while i < len(lines):
            line = lines[i]
            m = DATE_LINE_PATTERN.match(line) if self.interest_pattern.search(line) else None
            if not m:
                i += 1
                continue

            date_s, description = m.groups()
            amount_match = None
            amount_idx = None
            for j in range(i + 1, min(i + 1 + AMOUNT_LOOKAHEAD, len(lines))):
                candidate = lines[j]
                if not candidate.strip():
                    continue
                amount_match = AMOUNT_LINE_PATTERN.match(candidate)
                if amount_match:
                    amount_idx = j
                    break

            if amount_match is None:
                logger.debug("No amount line found after interest line.", line=line.strip())
                i += 1
                continue

            txn_date = parse_date(date_s)
            amount = parse_amount(amount_match.group(1))
            balance = parse_amount(amount_match.group(2))
            # Resume after the amount line either way
            i = amount_idx + 1
            if txn_date is None or amount is None or balance is None:
                continue

            yield StatementRow(
                date=txn_date,
                description=description.strip(),
                amount=amount,
                balance=balance,
            )
