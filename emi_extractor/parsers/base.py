"""Building blocks shared by the statement layout rules."""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..models import CREDIT, DEBIT, Transaction
from ..utils import parse_amount_safe, parse_date_flexible

MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"

# Column names that leak into rows when a table header is read as data.
# "Amount" only counts as a column name when it closes the cell or is
# followed by its unit, so "Principal Amount Amortization" rows survive.
HEADER_PATTERN = re.compile(
    r"\bdescription\b|\btransaction\s+details\b|\bamount\s*(?:\(|₹|`|$)",
    re.IGNORECASE,
)


def split_lines(raw_text: str) -> List[str]:
    return [line.strip() for line in (raw_text or "").splitlines()]


@dataclass(frozen=True)
class LayoutRule:
    """A named statement layout.

    ``prepare_lines`` turns raw statement text into logical lines and
    ``parse_line`` turns one logical line into a Transaction (or None).
    """
    name: str
    bank: Optional[str]
    prepare_lines: Callable[[str], List[str]]
    parse_line: Callable[[str], Optional[Transaction]]

    def parse(self, raw_text: str):
        """Yield ``(line, transaction_or_None)`` for every logical line."""
        for line in self.prepare_lines(raw_text):
            if not line:
                continue
            yield line, self.parse_line(line)


def is_header_description(description: str) -> bool:
    return bool(HEADER_PATTERN.search(description))


def build_transaction(date_str: str, description: str, amount_str: str, is_credit: bool) -> Optional[Transaction]:
    """Common post-processing: amount parsing, zero and header rows dropped."""
    amount = parse_amount_safe(amount_str)
    if amount is None or amount == 0:
        return None
    description = re.sub(r'\s+', ' ', description).strip()
    if not description or is_header_description(description):
        return None
    return Transaction(
        date=parse_date_flexible(date_str),
        description=description,
        amount=amount,
        type=CREDIT if is_credit else DEBIT,
    )
