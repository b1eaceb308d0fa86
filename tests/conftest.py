"""
Shared fixtures: in-memory store, service, statement builders.
"""
import io
import os
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from openpyxl import Workbook
from sqlalchemy.pool import StaticPool

# Keep the API module from writing logs/app.log during the test run
os.environ.setdefault("LOG_FILE", "")

from interest_ledger.common.models import Donation, Transaction
from interest_ledger.core.service import LedgerService
from interest_ledger.parsing.artifact import StatementArtifact
from interest_ledger.parsing.hashing import transaction_hash
from interest_ledger.parsing.registry import ExtractorRegistry
from interest_ledger.store.database import init_db, make_engine, make_session_factory

USER = "user-1"


# ============================================================================
# STORE
# ============================================================================

@pytest.fixture
def engine():
    engine = make_engine("sqlite:///:memory:", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def registry():
    return ExtractorRegistry()


@pytest.fixture
def service(session_factory, registry):
    return LedgerService(session_factory, registry=registry, today=lambda: date(2024, 6, 1))


# ============================================================================
# DOMAIN BUILDERS
# ============================================================================

def make_txn(amount, on, description="Int.Pd:01-01-2024 to 31-03-2024", bank_id="in-pnb", identity=USER, balance="0"):
    amount = Decimal(str(amount)).quantize(Decimal("0.01"))
    balance = Decimal(str(balance)).quantize(Decimal("0.01"))
    return Transaction(
        transaction_hash=transaction_hash(on, description, amount, balance, identity),
        bank_id=bank_id,
        date=on,
        description=description,
        amount=amount,
        type='credit' if amount >= 0 else 'debit',
        balance=balance,
    )


def make_donation(amount, on=date(2024, 3, 1)):
    return Donation(amount=Decimal(str(amount)).quantize(Decimal("0.01")), date=on)


# ============================================================================
# ARTIFACT BUILDERS
# ============================================================================

PNB_CSV = """Account Statement
Account Number,0123456789
Customer Name,A SAMPLE
Txn No.,Txn Date,Description,Branch Name,Cheque No.,Dr Amount,Cr Amount,Balance,Remarks
S1001,15-01-2024,Int.Pd:01-01-2024 to 31-03-2024,MAIN,,,500.00,10500.00,
S1002,20-01-2024,UPI/CR/Grocery refund,MAIN,,,120.00,10620.00,
S1003,22-01-2024,ATM WDL,MAIN,,2000.00,,8620.00,
"""


def pnb_artifact(text=PNB_CSV, filename="pnb.csv"):
    return StatementArtifact(filename, text, "text/csv")


def xlsx_bytes(rows):
    """Builds a one-sheet workbook in memory."""
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def xlsx_artifact(rows, filename="statement.xlsx"):
    return StatementArtifact(
        filename,
        xlsx_bytes(rows),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


def mock_pdf(*pages):
    """pdfplumber.open() stand-in whose pages return the given texts."""
    pdf = MagicMock()
    pdf.pages = []
    for text in pages:
        page = MagicMock()
        page.extract_text.return_value = text
        pdf.pages.append(page)

    context = MagicMock()
    context.__enter__.return_value = pdf
    context.__exit__.return_value = None
    return context


def pdf_artifact(filename="statement.pdf"):
    return StatementArtifact(filename, b"%PDF-1.4 fake", "application/pdf")
