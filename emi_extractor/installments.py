"""Installment reconstruction from statement transactions.

Card issuers post each EMI installment as separate lines:

    Principal Amount Amortization - <4/6>MERCHANT NAME
    Interest Amount Amortization - <4/6>MERCHANT NAME
    IGST-VPS2533309... (no merchant, no installment token)

The principal and interest lines are merged into one InstallmentRecord
per (date, merchant, installment/total); the tax line is attached to the
nearest open record posted on the same date.
"""
import re
import logging
from typing import Dict, List, NamedTuple, Optional

from .models import InstallmentKey, InstallmentRecord, Transaction

logger = logging.getLogger(__name__)

PRINCIPAL = "principal"
INTEREST = "interest"
GST = "gst"

INTEREST_MARKER = "INTEREST AMOUNT AMORTIZATION"
PRINCIPAL_MARKER = "PRINCIPAL AMOUNT AMORTIZATION"

# <4/6>MERCHANT: 4th installment of 6
INSTALLMENT_TOKEN = re.compile(r"<\s*(\d+)\s*/\s*(\d+)\s*>\s*(.+)")
TAX_PATTERN = re.compile(r"\b[ICS]?GST\b", re.IGNORECASE)


class InstallmentLine(NamedTuple):
    """What a single description says about an installment."""
    component: Optional[str]
    merchant: Optional[str] = None
    installment: Optional[int] = None
    total: Optional[int] = None


NOT_AN_INSTALLMENT = InstallmentLine(None)


def parse_installment_description(description: str) -> InstallmentLine:
    """Classify a description as principal, interest, tax or unrelated."""
    desc = (description or "").upper()

    for marker, component in ((INTEREST_MARKER, INTEREST), (PRINCIPAL_MARKER, PRINCIPAL)):
        if marker in desc:
            match = INSTALLMENT_TOKEN.search(description)
            if match:
                merchant = re.sub(r"\s+", " ", match.group(3)).strip()
                installment, total = int(match.group(1)), int(match.group(2))
                if merchant and installment > 0 and total > 0:
                    return InstallmentLine(component, merchant, installment, total)

    if TAX_PATTERN.search(desc):
        return InstallmentLine(GST)

    return NOT_AN_INSTALLMENT


class InstallmentExtractor:
    """Builds InstallmentRecords for one statement in a single forward pass."""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.records: Dict[InstallmentKey, InstallmentRecord] = {}
        self.orphans_dropped = 0

    def extract(self, transactions: List[Transaction]) -> List[InstallmentRecord]:
        for index, tx in enumerate(transactions):
            parsed = parse_installment_description(tx.description)
            if parsed.component in (PRINCIPAL, INTEREST):
                self._add_component(index, tx, parsed)
            elif parsed.component == GST:
                self._assign_orphan_charge(index, tx)

        if self.debug:
            logger.info(f"Built {len(self.records)} installment record(s), "
                        f"dropped {self.orphans_dropped} unassigned tax line(s)")
        return list(self.records.values())

    def _add_component(self, index: int, tx: Transaction, parsed: InstallmentLine) -> None:
        key = InstallmentKey(tx.date, parsed.merchant, parsed.installment, parsed.total)
        record = self.records.get(key)
        if record is None:
            record = InstallmentRecord(
                date=tx.date,
                merchant=parsed.merchant,
                installment_number=parsed.installment,
                total_installments=parsed.total,
                order=len(self.records),
            )
            self.records[key] = record

        record.tx_index = index
        # Some statements split one component across several lines
        if parsed.component == INTEREST:
            record.interest += tx.amount
        else:
            record.principal += tx.amount

    def _assign_orphan_charge(self, index: int, tx: Transaction) -> None:
        """Attach a tax line to the closest same-day record without GST."""
        candidates = [r for r in self.records.values() if r.date == tx.date and r.gst == 0]
        if not candidates:
            self.orphans_dropped += 1
            if self.debug:
                logger.debug(f"No open installment on {tx.date} for tax line '{tx.description}'")
            return

        nearest = min(candidates, key=lambda r: (abs(r.tx_index - index), r.order))
        nearest.gst = tx.amount


def extract_installments(transactions: List[Transaction], debug: bool = False) -> List[InstallmentRecord]:
    """Installment records of one statement, in creation order."""
    extractor = InstallmentExtractor(debug=debug)
    return extractor.extract(transactions)
