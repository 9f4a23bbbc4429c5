"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal

from emi_extractor.models import CardIdentity, InstallmentRecord, Transaction


ICICI_FILENAME = "6529XXXXXXXX7003_Jan2026.txt"
RBL_FILENAME = "xxxx-xxxx-xx-xxxx89_Dec2025.txt"


@pytest.fixture
def rbl_statement_text() -> str:
    """RBL Bank statement text, one transaction per line"""
    return "\n".join([
        "RBL Bank Credit Card Statement",
        "Date Description Amount ₹",
        "26 Dec 2025 PAYMENT RECEIVED - BBPS 5,099.00",
        "27 Dec 2025 SWIGGY BANGALORE 1,234.50",
        "28 Dec 2025 REFUND FLIPKART 300.00 CR",
        "29 Dec 2025 ZERO VALUE ADJUSTMENT 0.00",
        "Total Amount Due 5,000.00",
    ])


@pytest.fixture
def icici_statement_text() -> str:
    """ICICI Bank statement text with a wrapped description and one EMI installment"""
    return "\n".join([
        "ICICI Bank Credit Card Statement",
        "Date SerNo. Transaction Details Reward Points Intl.# amount Amount (in`)",
        "05/01/2026 12597931301 Principal Amount Amortization - <1/6>AMAZON 0 3,000.00",
        "05/01/2026 12597931302 Interest Amount Amortization - <1/6>AMAZON 0 250.00",
        "05/01/2026 12597931303 IGST-VPS2533309 0 45.00",
        "29/12/2025 12597931313 UPI-572921828289-RAJA THI YAGARAJAN",
        "IN",
        "0 25.00",
        "02/01/2026 12597931320 BBPS PAYMENT RECEIVED 0 5,000.00 CR",
    ])


@pytest.fixture
def card() -> CardIdentity:
    """ICICI card ending 7003"""
    return CardIdentity(bank="ICICI Bank", last4="7003")


@pytest.fixture
def make_record():
    """Factory for installment records"""
    def _make(installment_number, when, merchant="AMAZON", total=6,
              principal="1000", interest="100", gst="18", order=0):
        return InstallmentRecord(
            date=when,
            merchant=merchant,
            installment_number=installment_number,
            total_installments=total,
            principal=Decimal(principal),
            interest=Decimal(interest),
            gst=Decimal(gst),
            order=order,
        )
    return _make


@pytest.fixture
def make_transaction():
    """Factory for debit transactions"""
    def _make(description, amount, when=date(2026, 1, 5)):
        return Transaction(date=when, description=description, amount=Decimal(amount))
    return _make
