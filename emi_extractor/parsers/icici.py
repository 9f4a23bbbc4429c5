"""ICICI Bank credit card statement layout.

Columns are Date | SerNo | Transaction Details | Reward Points |
Intl.# amount | Amount (in `). Long descriptions wrap, so one
transaction can span several physical lines:

    29/12/2025 12597931313 UPI-572921828289-RAJA THI YAGARAJAN
    IN
    0 25.00

Lines are merged back into one logical line before field extraction.
"""
import re
import logging
from typing import List, Optional

from ..models import Transaction
from .base import LayoutRule, build_transaction

logger = logging.getLogger(__name__)

# Date followed by a serial number of at least 8 digits opens a transaction
TRANSACTION_START = re.compile(r"^\d{2}/\d{2}/\d{4}\s+\d{8,}")

ICICI_LINE_PATTERN = re.compile(
    r"^(\d{2}/\d{2}/\d{4})\s+(\d{8,})\s+(.+?)\s+([\d,]+\.\d{2})\s*(CR)?\s*$",
    re.IGNORECASE,
)

# Reward points and an optional international amount trail the description
TRAILING_COLUMNS = re.compile(r"^(.+?)\s+(-?\d+)(?:\s+[\d,]+\.\d{2})?\s*$")


def combine_multi_line_transactions(raw_text: str) -> List[str]:
    """Join continuation lines onto the transaction line they belong to."""
    combined_lines = []
    current_transaction = ""

    for line in (raw_text or "").splitlines():
        line = line.strip()
        if TRANSACTION_START.match(line):
            if current_transaction:
                combined_lines.append(current_transaction)
            current_transaction = line
        elif current_transaction and line:
            current_transaction += " " + line

    if current_transaction:
        combined_lines.append(current_transaction)

    return combined_lines


def parse_icici_line(line: str) -> Optional[Transaction]:
    match = ICICI_LINE_PATTERN.match(line.strip())
    if not match:
        return None
    date_str, _serial, middle, amount_str, cr_flag = match.groups()

    description = middle.strip()
    columns = TRAILING_COLUMNS.match(description)
    if columns:
        description = columns.group(1).strip()

    return build_transaction(date_str, description, amount_str, is_credit=bool(cr_flag))


ICICI_LAYOUT = LayoutRule(
    name='icici',
    bank='ICICI Bank',
    prepare_lines=combine_multi_line_transactions,
    parse_line=parse_icici_line,
)
