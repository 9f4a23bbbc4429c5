"""RBL Bank credit card statement layout.

One transaction per physical line:
    26 Dec 2025 PAYMENT RECEIVED - BBPS 5,099.00
"""
import re
import logging
from typing import Optional

from ..models import Transaction
from .base import MONTHS, LayoutRule, build_transaction, split_lines

logger = logging.getLogger(__name__)

RBL_LINE_PATTERN = re.compile(
    rf"^(\d{{1,2}}\s+{MONTHS}\s+\d{{4}})\s+(.+?)\s+([\d,]+\.\d{{2}})\s*(?:CR|DR)?\s*$",
    re.IGNORECASE,
)

CREDIT_PATTERN = re.compile(r"payment.*received|refund|reversal", re.IGNORECASE)


def parse_rbl_line(line: str) -> Optional[Transaction]:
    match = RBL_LINE_PATTERN.match(line.strip())
    if not match:
        return None
    date_str, desc, amount_str = match.groups()
    return build_transaction(date_str, desc, amount_str, is_credit=bool(CREDIT_PATTERN.search(desc)))


RBL_LAYOUT = LayoutRule(
    name='rbl',
    bank='RBL Bank',
    prepare_lines=split_lines,
    parse_line=parse_rbl_line,
)
