import csv
import io
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

import pandas as pd

from interest_ledger.common.logging_config import get_logger
from ..base import BaseExtractor, StatementRow
from ..config.layout import ColumnDef, ColumnLayout
from ..normalizers import parse_amount_or_zero, parse_date, is_blank

logger = get_logger(__name__)

INTEREST_RANGE_PATTERN = re.compile(
    r"int\.\s*\.?pd[:\s]*([0-9]{2}-[0-9]{2}-[0-9]{4})\s*(?:to|-)\s*([0-9]{2}-[0-9]{2}-[0-9]{4})",
    re.IGNORECASE,
)


def _text(value) -> Optional[str]:
    return None if is_blank(value) else str(value).strip()


def _human_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def format_pnb_description(description: Optional[str]) -> Optional[str]:
    """
    Rewrites PNB's interest-period shorthand into a sentence:

        "Int.Pd:01-01-2024 to 31-03-2024"
        -> "Interest received from the bank from January 1, 2024 to March 31, 2024"

    Anything else comes back untouched.
    """
    if not description:
        return description

    m = INTEREST_RANGE_PATTERN.search(description)
    if m:
        start, end = parse_date(m.group(1)), parse_date(m.group(2))
        if start and end:
            return f"Interest received from the bank from {_human_date(start)} to {_human_date(end)}"

    return description


PNB_LAYOUT = ColumnLayout(
    header_markers=["Txn No.", "Txn Date"],
    columns=[
        ColumnDef("txn_no", "Txn No.", _text, exact=True),
        ColumnDef("txn_date", "Txn Date", parse_date, exact=True),
        ColumnDef("description", "Description", _text, exact=True),
        ColumnDef("dr_amount", "Dr Amount", parse_amount_or_zero, exact=True),
        ColumnDef("cr_amount", "Cr Amount", parse_amount_or_zero, exact=True),
        ColumnDef("balance", "Balance", parse_amount_or_zero, exact=True),
    ],
)


@dataclass
class PNBRow:
    txn_no: Optional[str]
    txn_date: date
    description: str
    dr_amount: Decimal
    cr_amount: Decimal
    balance: Decimal

    @classmethod
    def from_record(cls, record: dict) -> Optional["PNBRow"]:
        if record['txn_date'] is None:
            return None
        if record['dr_amount'] is None or record['cr_amount'] is None or record['balance'] is None:
            return None
        return cls(
            txn_no=record['txn_no'],
            txn_date=record['txn_date'],
            description=record['description'] or "",
            dr_amount=record['dr_amount'],
            cr_amount=record['cr_amount'],
            balance=record['balance'],
        )


class PNBExtractor(BaseExtractor):
    """
    Punjab National Bank account statement, CSV export.

    A few lines of account details precede the table; the table starts at
    the line carrying both "Txn No." and "Txn Date". Interest postings read
    like "Int.Pd:01-01-2024 to 31-03-2024".
    """
    bank_id = 'in-pnb'
    bank_name = 'Punjab National Bank'
    interest_pattern = re.compile(r"int\.pd|interest", re.IGNORECASE)

    def detect(self, artifact) -> bool:
        if not artifact.is_text:
            return False
        text = artifact.decoded_text
        return any("Txn No." in line and "Txn Date" in line for line in self.lines(text))

    def _table(self, artifact) -> list:
        lines = self.lines(artifact.decoded_text)
        header_idx = next(
            (i for i, line in enumerate(lines) if "Txn No." in line and "Txn Date" in line),
            None,
        )
        if header_idx is None:
            raise self.header_not_found(artifact, PNB_LAYOUT.header_markers)

        table = [line for line in lines[header_idx:] if line.strip()]
        # rows may be wider than the header (trailing commas)
        width = max(len(fields) for fields in csv.reader(table))
        df = pd.read_csv(
            io.StringIO("\n".join(table)),
            header=None,
            names=range(width),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
        return df.values.tolist()

    def parse_rows(self, artifact):
        for record in self.iter_layout_rows(artifact, self._table(artifact), PNB_LAYOUT):
            row = PNBRow.from_record(record)
            if row is None:
                logger.debug("Skipping malformed PNB row.", filename=artifact.filename)
                continue

            yield StatementRow(
                date=row.txn_date,
                description=row.description,
                amount=row.cr_amount - row.dr_amount,
                balance=row.balance,
                transaction_id=row.txn_no,
            )

    def format_description(self, description):
        return format_pnb_description(description)
