"""Generic fallback patterns for statements no bank layout recognized.

Only used when the bank specific layouts found nothing, so lines are
never counted twice.
"""
import re
import logging
from typing import List

from ..models import Transaction
from .base import MONTHS, build_transaction, split_lines

logger = logging.getLogger(__name__)

GENERIC_PATTERNS = [
    # DD/MM/YYYY Description Amount [CR|DR]
    re.compile(r"(\d{2}/\d{2}/\d{4})\s+(.+?)\s+([\d,]+\.\d{2})\s*(CR|DR)?", re.IGNORECASE),
    # DD MMM YYYY Description Amount
    re.compile(rf"(\d{{1,2}}\s+{MONTHS}\s+\d{{4}})\s+(.+?)\s+([\d,]+\.\d{{2}})()", re.IGNORECASE),
]

MIN_DESCRIPTION_LENGTH = 5


def parse_generic_lines(raw_text: str, debug: bool = False) -> List[Transaction]:
    """Scan every line with each generic pattern in turn."""
    transactions = []
    lines = split_lines(raw_text)

    for pattern in GENERIC_PATTERNS:
        for line in lines:
            for match in pattern.finditer(line):
                date_str, desc, amount_str, flag = match.groups()
                if len(desc.strip()) <= MIN_DESCRIPTION_LENGTH:
                    continue
                tx = build_transaction(date_str, desc, amount_str,
                                       is_credit=(flag or '').upper() == 'CR')
                if tx:
                    transactions.append(tx)

    if debug:
        logger.info(f"GENERIC PARSER: Extracted {len(transactions)} transactions")
    return transactions
