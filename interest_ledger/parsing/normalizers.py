"""
Amount and Date Normalizers

Shared by every bank extractor. All functions return None for input they
cannot make sense of; callers treat None as "skip this record".
"""
import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

# Trailing balance markers such as "12,345.67 Cr." or "10.00 DR"
_BALANCE_SUFFIX = re.compile(r"\s*\b(cr|dr)\.?\s*$", re.IGNORECASE)
_CURRENCY_MARKERS = re.compile(r"(₹|rs\.?|inr)", re.IGNORECASE)
_NUMBER = re.compile(r"^[+-]?\d+(\.\d+)?$")

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'sept': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

_NUMERIC_DATE = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$")
_NAMED_MONTH_DATE = re.compile(r"^(\d{1,2})[-\s/]+([A-Za-z]{3,9})[-\s/,]+(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T\s].*)?$")


def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def parse_amount(value) -> Optional[Decimal]:
    """
    Parses an Indian-locale amount string to a two-place Decimal.

    Examples:
        "1,23,456.78"   -> Decimal("123456.78")
        "-500"          -> Decimal("-500.00")
        "2,704.39 Cr."  -> Decimal("2704.39")
        "abc"           -> None
    """
    if is_blank(value) or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        if math.isinf(value):
            return None
        # str() keeps the shortest repr, so 0.1 stays 0.1 rather than its binary expansion
        number = Decimal(str(value))
    else:
        text = _BALANCE_SUFFIX.sub("", str(value))
        text = _CURRENCY_MARKERS.sub("", text)
        text = text.replace(",", "").replace(" ", "").strip()
        if not _NUMBER.match(text):
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None

    if not number.is_finite():
        return None
    return number.quantize(TWO_PLACES)


def parse_amount_or_zero(value) -> Optional[Decimal]:
    """Like parse_amount, but an empty cell means zero (debit/credit columns)."""
    if is_blank(value):
        return ZERO
    return parse_amount(value)


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value) -> Optional[date]:
    """
    Parses the date encodings found in statement exports:
    DD-MM-YYYY, DD/MM/YYYY, DD-Mon-YYYY, DD Mon YYYY, YYYY-MM-DD,
    and native spreadsheet cells (datetime/date/Timestamp).
    """
    if is_blank(value):
        return None

    # pandas.Timestamp is a datetime subclass; NaT is the one value unequal to itself
    if isinstance(value, datetime):
        if value != value:
            return None
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()

    m = _NUMERIC_DATE.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        return _safe_date(year, month, day)

    m = _NAMED_MONTH_DATE.match(text)
    if m:
        day_s, month_s, year_s = m.groups()
        month = MONTHS.get(month_s[:4].lower()) or MONTHS.get(month_s[:3].lower())
        if not month:
            return None
        return _safe_date(int(year_s), month, int(day_s))

    m = _ISO_DATE.match(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        return _safe_date(year, month, day)

    return None


def normalize_text(value) -> str:
    """Collapses line breaks and runs of whitespace, lowercases."""
    if is_blank(value):
        return ""
    return re.sub(r"\s+", " ", str(value)).strip().lower()
