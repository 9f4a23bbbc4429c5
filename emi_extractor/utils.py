import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from dateutil import parser as dateparser

TWO_PLACES = Decimal("0.01")

DateValue = Union[date, str]

_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_amount_safe(raw_value) -> Optional[Decimal]:
    """Parse currency-like strings to Decimal. Returns None if not parseable."""
    if raw_value is None:
        return None
    if isinstance(raw_value, Decimal):
        return raw_value
    if isinstance(raw_value, (int, float)):
        return Decimal(str(raw_value))
    s = str(raw_value).strip()
    if not s or s.lower() in {"nan", "none", "-"}:
        return None
    cleaned = re.sub(r"[\s,₹$]", "", s)
    cleaned = re.sub(r"(?i)^(?:rs\.?|inr)", "", cleaned)

    is_negative = False
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = cleaned[1:-1]
        is_negative = True
    elif cleaned.upper().endswith("CR") or cleaned.upper().endswith("DR"):
        cleaned = cleaned[:-2]

    if cleaned.startswith("-"):
        cleaned = cleaned[1:]
        is_negative = True

    if cleaned in {"", "."}:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return -value if is_negative else value


def parse_date_flexible(raw_value) -> Optional[DateValue]:
    """Try multiple statement date formats.

    Returns a ``date`` when the value is recognizable, the stripped raw
    string when it is not, and None for empty input.
    """
    if raw_value is None:
        return None
    if isinstance(raw_value, datetime):
        return raw_value.date()
    if isinstance(raw_value, date):
        return raw_value
    s = str(raw_value).strip()
    if not s:
        return None
    fmts = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d %b %Y", "%d %B %Y", "%d %b, %Y", "%d-%b-%Y")
    for fmt in fmts:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    # Last attempt: let dateutil work it out, statements are day-first.
    # Missing fields would be filled from the defaults, so a value that
    # parses differently under two defaults is only a partial date.
    try:
        first = dateparser.parse(s, dayfirst=True, default=_FILL_DEFAULTS[0])
        second = dateparser.parse(s, dayfirst=True, default=_FILL_DEFAULTS[1])
    except (ValueError, OverflowError):
        return s
    if first != second:
        return s
    return first.date()


def date_sort_key(value: Optional[DateValue]) -> str:
    """Sort key that orders real dates chronologically and raw strings lexically."""
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def days_between(a: Optional[DateValue], b: Optional[DateValue]) -> Optional[int]:
    """Absolute day gap, or None when either side is not a real date."""
    if not isinstance(a, date) or not isinstance(b, date):
        return None
    return abs((a - b).days)


def format_date(value: Optional[DateValue]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return str(value)


def money(value) -> float:
    """Round to paise (half up) for output documents."""
    if isinstance(value, float):
        value = Decimal(str(value))
    return float(Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))
