"""Bank layout and card detection for credit card statements.

Statements are identified from two weak signals: naming conventions of
the statement file (masked card numbers) and bank markers in the text.
"""
import os
import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .. import config
from ..models import CardIdentity, UNKNOWN_CARD

logger = logging.getLogger(__name__)

# 6529XXXXXXXX7003_Dec2025.pdf
BIN_MASK_PATTERN = re.compile(r"(\d{4})[Xx*]{4,}(\d{4})")
# xxxx-xxxx-xx-xxxx89_Dec2025.pdf
FULL_MASK_PATTERN = re.compile(r"x{4}(\d{2,4})_", re.IGNORECASE)


@dataclass
class LayoutHint:
    """Layouts suggested for one statement."""
    layouts: List[str]
    bank: Optional[str]
    features: List[str]


class BankLayoutDetector:
    """Suggests which bank layouts to try for a statement."""

    def __init__(self, card_banks: Optional[Dict[str, str]] = None):
        self.card_banks = dict(config.CARD_BANKS if card_banks is None else card_banks)
        icici_bins = [prefix for prefix, bank in self.card_banks.items() if 'icici' in bank.lower()]
        self.layouts = {
            'rbl': {
                'bank': 'RBL Bank',
                'filename': [r'x{4}-x{4}'],
                'content': [r'rbl\s+bank'],
            },
            'icici': {
                'bank': 'ICICI Bank',
                'filename': [re.escape(prefix) for prefix in icici_bins],
                'content': [r'icici\s+bank'],
            },
        }

    def detect(self, filename: str = "", text: str = "", bank_name: Optional[str] = None) -> LayoutHint:
        """Return the layouts hinted by filename, text and an optional explicit bank name."""
        if bank_name:
            layout = self._normalize_bank_name(bank_name)
            if layout in self.layouts:
                return LayoutHint([layout], self.layouts[layout]['bank'], [f"user_selected_{layout}"])

        name = os.path.basename(filename or "").lower()
        # Only the statement header matters for bank markers
        head = (text or "")[:5000].lower()

        layouts = []
        features = []
        for layout_key, rules in self.layouts.items():
            matched = False
            for pattern in rules['filename']:
                if re.search(pattern, name):
                    features.append(f"filename_match_{layout_key}")
                    matched = True
                    break
            for pattern in rules['content']:
                if re.search(pattern, head):
                    features.append(f"content_match_{layout_key}")
                    matched = True
                    break
            if matched:
                layouts.append(layout_key)

        bank = self.layouts[layouts[0]]['bank'] if len(layouts) == 1 else None
        return LayoutHint(layouts, bank, features)

    def _normalize_bank_name(self, bank_name: str) -> str:
        bank_lower = bank_name.lower()
        if 'rbl' in bank_lower or 'ratnakar' in bank_lower:
            return 'rbl'
        if 'icici' in bank_lower:
            return 'icici'
        return bank_lower.split()[0] if bank_lower.split() else ''

    def card_identity(self, filename: str) -> CardIdentity:
        """Infer the card's bank and last digits from the statement filename."""
        name = os.path.basename(filename or "")

        match = BIN_MASK_PATTERN.search(name)
        if match:
            bin_prefix, last4 = match.groups()
            return CardIdentity(bank=self.card_banks.get(bin_prefix, UNKNOWN_CARD.bank), last4=last4)

        match = FULL_MASK_PATTERN.search(name)
        if match:
            return CardIdentity(bank='RBL Bank', last4=match.group(1))

        for prefix, bank in self.card_banks.items():
            if prefix in name:
                return CardIdentity(bank=bank, last4=UNKNOWN_CARD.last4)

        logger.debug(f"No card identity convention matched filename '{name}'")
        return UNKNOWN_CARD


def extract_card_identity(filename: str) -> CardIdentity:
    detector = BankLayoutDetector()
    return detector.card_identity(filename)
