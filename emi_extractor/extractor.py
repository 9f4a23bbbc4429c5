"""High-level orchestrator for EMI extraction.

Ties the stages together: statement text -> transactions (parsers),
transactions -> installment records (installments), records -> plans
(plans), plans -> enriched plans (analysis).
"""
import os
import json
import logging
from typing import Any, Dict, List, Optional

from . import analysis, exporters
from .exceptions import InvalidExtractionError, MissingExtractionError
from .installments import extract_installments
from .models import EMIPlan, StatementExtraction
from .parsers.detect import BankLayoutDetector
from .parsers.router import parse_statement_text
from .plans import EMIPlanAssembler, sort_by_amount_financed

logger = logging.getLogger(__name__)

PARSE_HINT = "extract_emis.py parse"
EMIS_HINT = "extract_emis.py emis"


class EMIExtractor:
    """Reconstructs EMI plans from a sequence of statement extractions.

    Statements must be added in the order they should be read; plan
    assembly depends on it.
    """

    def __init__(self, min_gap_days: Optional[int] = None, debug: bool = False,
                 detector: Optional[BankLayoutDetector] = None):
        self.debug = debug
        self.detector = detector or BankLayoutDetector()
        self.assembler = EMIPlanAssembler(min_gap_days=min_gap_days, debug=debug)

    def add_statement(self, extraction: StatementExtraction) -> int:
        """Fold one statement's installments into the plans; returns the record count."""
        card = self.detector.card_identity(extraction.filename)
        records = extract_installments(extraction.transactions, debug=self.debug)
        self.assembler.add_all(records, card)
        logger.info(f"Processed {extraction.filename}: {len(records)} installment record(s) "
                    f"for card {card.bank} *{card.last4}")
        return len(records)

    def extract_all(self, extractions: List[StatementExtraction]) -> List[EMIPlan]:
        for extraction in extractions:
            self.add_statement(extraction)
        return self.plans()

    def plans(self) -> List[EMIPlan]:
        """Finalized plans, largest amount financed first."""
        return sort_by_amount_financed(self.assembler.finalized_plans())

    def build_document(self) -> Dict[str, Any]:
        return exporters.build_plans_document(self.plans())


def parse_statement_files(paths: List[str], bank_name: Optional[str] = None,
                          debug: bool = False) -> Dict[str, Any]:
    """Parse already-extracted statement text files into an extraction document."""
    extractions = []
    for path in paths:
        if not os.path.exists(path):
            raise MissingExtractionError(path, "pdftotext -layout <statement.pdf>")
        with open(path, "r", encoding="utf-8") as f:
            raw_text = f.read()
        extraction = parse_statement_text(raw_text, filename=os.path.basename(path),
                                          bank_name=bank_name, debug=debug)
        extractions.append(extraction)

    return {
        'method': 'statement text layouts',
        'totalStatements': len(extractions),
        'totalTransactions': sum(len(e.transactions) for e in extractions),
        'extractions': [e.to_dict() for e in extractions],
    }


def _read_document(input_path: str, list_key: str, hint: str) -> List[Any]:
    if not os.path.exists(input_path):
        raise MissingExtractionError(input_path, hint)
    try:
        data = exporters.read_json(input_path)
    except json.JSONDecodeError as e:
        raise InvalidExtractionError(f"{input_path} is not valid JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get(list_key), list):
        raise InvalidExtractionError(f"{input_path} has no '{list_key}' list")
    return data[list_key]


def load_extractions(input_path: str) -> List[StatementExtraction]:
    """Read an extraction document, preserving statement order."""
    items = _read_document(input_path, 'extractions', PARSE_HINT)
    return [StatementExtraction.from_dict(item) for item in items if isinstance(item, dict)]


def load_plans(input_path: str) -> List[Dict[str, Any]]:
    return _read_document(input_path, 'emiPlans', EMIS_HINT)


def extract_emi_document(input_path: str, min_gap_days: Optional[int] = None,
                         debug: bool = False) -> Dict[str, Any]:
    extractor = EMIExtractor(min_gap_days=min_gap_days, debug=debug)
    extractor.extract_all(load_extractions(input_path))
    return extractor.build_document()


def enrich_emi_document(input_path: str) -> Dict[str, Any]:
    summary, enriched = analysis.enrich_plans(load_plans(input_path))
    return {'summary': summary, 'emiPlans': enriched}
