from datetime import date
from decimal import Decimal

from interest_ledger.parsing.hashing import canonical_hash_input, transaction_hash


def test_canonical_form_field_order():
    raw = canonical_hash_input(
        date(2024, 1, 15), "Int.Pd:01-01-2024 to 31-03-2024", Decimal("500"), Decimal("10500.5"), "user-1", "S1001"
    )
    assert raw == "2024-01-15|Int.Pd:01-01-2024 to 31-03-2024|500.00|10500.50|user-1|S1001"


def test_missing_optional_fields_are_empty():
    raw = canonical_hash_input(date(2024, 1, 15), None, Decimal("1"), None, "user-1")
    assert raw == "2024-01-15||1.00|0.00|user-1|"


def test_hash_is_sha256_hex():
    digest = transaction_hash(date(2024, 1, 15), "x", Decimal("1.00"), Decimal("2.00"), "user-1")
    assert len(digest) == 64
    int(digest, 16)


def test_same_logical_row_hashes_identically_across_encodings():
    # An XLSX cell yields 500 as int, a CSV yields "500.00" parsed to Decimal
    a = transaction_hash(date(2024, 1, 15), "INT CREDIT", Decimal("500"), Decimal("1000"), "user-1")
    b = transaction_hash(date(2024, 1, 15), "INT CREDIT", Decimal("500.00"), Decimal("1000.00"), "user-1")
    assert a == b


def test_identity_salts_the_hash():
    args = (date(2024, 1, 15), "INT CREDIT", Decimal("500"), Decimal("1000"))
    assert transaction_hash(*args, "user-1") != transaction_hash(*args, "user-2")


def test_transaction_id_participates():
    args = (date(2024, 1, 15), "INT CREDIT", Decimal("500"), Decimal("1000"), "user-1")
    assert transaction_hash(*args, "S1") != transaction_hash(*args, "S2")
