"""emi_extractor: credit card statement parsing and EMI plan reconstruction.

This package provides:
- EMIExtractor: Main orchestrator from statement extractions to plans
- parsers: Bank layout rules turning statement text into transactions
- installments: Principal/interest/GST reconstruction per installment
- plans: Plan assembly and finalization
- analysis: Derived metrics for finalized plans
- exporters: JSON, Excel and XML output plus console summaries
"""

__all__ = [
    "EMIExtractor",
    "analysis",
    "exporters",
    "installments",
    "parsers",
    "plans",
]

from .extractor import EMIExtractor
