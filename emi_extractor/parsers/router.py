"""Statement parser router.

Runs the bank layout rules suggested by detection, in registry order,
and falls back to the generic patterns only when no bank layout
produced a transaction.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..models import StatementExtraction, Transaction
from .base import LayoutRule
from .detect import BankLayoutDetector
from .generic import parse_generic_lines
from .icici import ICICI_LAYOUT
from .rbl import RBL_LAYOUT

logger = logging.getLogger(__name__)


class StatementParserRouter:
    """Selects and runs layout rules for one statement's text."""

    def __init__(self, debug: bool = False, detector: Optional[BankLayoutDetector] = None):
        self.debug = debug
        self.detector = detector or BankLayoutDetector()
        # Priority order; new layouts are appended here
        self.layout_registry: Dict[str, LayoutRule] = {
            RBL_LAYOUT.name: RBL_LAYOUT,
            ICICI_LAYOUT.name: ICICI_LAYOUT,
        }

    def parse_transactions(self, raw_text: str, filename: str = "",
                           bank_name: Optional[str] = None) -> Tuple[List[Transaction], Dict[str, Any]]:
        """
        Parse the transactions of one statement.

        Args:
            raw_text: Text already extracted from the statement
            filename: Statement filename, used as a bank hint
            bank_name: Optional explicit bank selection

        Returns:
            Tuple of (transactions, parsing_info)
        """
        parsing_info = {
            'layouts_hinted': [],
            'layouts_used': [],
            'bank': None,
            'fallback_used': False,
            'unmatched_lines': 0,
            'duplicates_removed': 0,
        }

        hint = self.detector.detect(filename, raw_text, bank_name)
        parsing_info['layouts_hinted'] = list(hint.layouts)
        parsing_info['bank'] = hint.bank

        # Without a hint every bank layout is tried; their patterns do not overlap
        layout_names = hint.layouts or list(self.layout_registry)
        if self.debug:
            logger.info(f"Layouts for '{filename}': {layout_names} (features: {hint.features})")

        transactions = []
        for name in layout_names:
            rule = self.layout_registry.get(name)
            if rule is None:
                logger.warning(f"Layout {name} not found in registry")
                continue
            found = self._apply_layout(rule, raw_text, parsing_info)
            if found:
                parsing_info['layouts_used'].append(rule.name)
                transactions.extend(found)

        # A single productive layout names the bank when the hints could not
        if parsing_info['bank'] is None and len(parsing_info['layouts_used']) == 1:
            parsing_info['bank'] = self.layout_registry[parsing_info['layouts_used'][0]].bank

        if not transactions:
            if self.debug:
                logger.info("No bank layout matched, trying generic patterns")
            transactions = parse_generic_lines(raw_text, debug=self.debug)
            parsing_info['fallback_used'] = True
            if transactions:
                parsing_info['layouts_used'].append('generic')

        unique_transactions = remove_duplicates(transactions)
        parsing_info['duplicates_removed'] = len(transactions) - len(unique_transactions)
        parsing_info['transaction_count'] = len(unique_transactions)
        return unique_transactions, parsing_info

    def _apply_layout(self, rule: LayoutRule, raw_text: str, parsing_info: Dict[str, Any]) -> List[Transaction]:
        transactions = []
        for line, transaction in rule.parse(raw_text):
            if transaction is None:
                parsing_info['unmatched_lines'] += 1
                if self.debug:
                    logger.debug(f"{rule.name.upper()} PARSER: no match for line: {line[:80]}")
                continue
            transactions.append(transaction)
        if self.debug:
            logger.info(f"{rule.name.upper()} PARSER: Extracted {len(transactions)} transactions")
        return transactions


def remove_duplicates(transactions: List[Transaction]) -> List[Transaction]:
    """Drop exact repeats of (date, amount, description), keeping the first."""
    seen = set()
    unique_transactions = []
    for transaction in transactions:
        key = transaction.dedup_key
        if key not in seen:
            seen.add(key)
            unique_transactions.append(transaction)
    return unique_transactions


def parse_statement_text(raw_text: str, filename: str = "", bank_name: Optional[str] = None,
                         debug: bool = False) -> StatementExtraction:
    """
    Convenience function: parse one statement's text into a StatementExtraction.
    """
    router = StatementParserRouter(debug=debug)
    transactions, parsing_info = router.parse_transactions(raw_text, filename, bank_name)
    logger.info(f"Extracted {len(transactions)} transaction(s) from {filename or 'statement'} "
                f"using {parsing_info['layouts_used'] or ['no layout']}")
    return StatementExtraction(
        filename=filename,
        transactions=transactions,
        bank=parsing_info['bank'],
        layouts=parsing_info['layouts_used'],
    )
