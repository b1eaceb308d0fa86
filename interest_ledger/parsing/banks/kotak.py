import re

from interest_ledger.common.logging_config import get_logger
from ..base import BaseExtractor, StatementRow
from ..normalizers import parse_amount, parse_date

logger = get_logger(__name__)

HEADER_MARKERS = ("date", "balance")

# " 131 31 Mar 2025 Int.Pd:6347718530:01-01-2025 to 31-03-2025 12.00 2,704.39"
# Group 1: Serial, Group 2: Date, Group 3: Description, Group 4: Amount, Group 5: Balance
TRANSACTION_LINE_PATTERN = re.compile(
    r"^\s*(\d+)\s+(\d{1,2}\s+\w{3}\s+\d{4})\s+"
    r"(Int\.Pd:[^\s]+(?:\s+to\s+\d{2}-\d{2}-\d{4})?)\s+"
    r"([\d,]+\.\d{2})\s+([\d,]+\.\d{2})\s*$",
    re.IGNORECASE,
)


class KotakExtractor(BaseExtractor):
    """
    Kotak Mahindra Bank savings statement, PDF.

    Each transaction fits on one physical line: serial number, date,
    description, amount, running balance. Interest shows up as
    "Int.Pd:<account>:<from> to <to>" and is always a deposit.
    """
    bank_id = 'in-kotak'
    bank_name = 'Kotak Mahindra Bank'
    interest_pattern = re.compile(r"Int\.Pd:", re.IGNORECASE)
    credit_only = True

    def detect(self, artifact) -> bool:
        if not artifact.is_pdf:
            return False
        text = artifact.pdf_text
        return "Kotak Mahindra" in text or "KKBK" in text

    def parse_rows(self, artifact):
        lines = self.lines(artifact.pdf_text)

        header_idx = next(
            (i for i, line in enumerate(lines) if all(m in line.lower() for m in HEADER_MARKERS)),
            None,
        )
        if header_idx is None:
            raise self.header_not_found(artifact, ["Date", "Balance"])

        for line in lines[header_idx + 1:]:
            if not self.interest_pattern.search(line):
                continue

            m = TRANSACTION_LINE_PATTERN.match(line)
            if not m:
                logger.debug("Interest-looking line did not match the row pattern.", line=line.strip())
                continue

            _, date_s, description, amount_s, balance_s = m.groups()
            txn_date = parse_date(date_s)
            amount = parse_amount(amount_s)
            balance = parse_amount(balance_s)
            if txn_date is None or amount is None or balance is None:
                continue

            yield StatementRow(
                date=txn_date,
                description=description.strip(),
                amount=amount,
                balance=balance,
            )
