"""Data structures shared by the parsing, installment and plan stages."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, NamedTuple, Optional

from .utils import DateValue, date_sort_key, format_date, money, parse_amount_safe, parse_date_flexible

DEBIT = "debit"
CREDIT = "credit"

ACTIVE = "active"
COMPLETED = "completed"

ZERO = Decimal("0")


@dataclass(frozen=True)
class Transaction:
    """One statement line item."""
    date: DateValue
    description: str
    amount: Decimal
    type: str = DEBIT

    @property
    def dedup_key(self):
        return (self.date, self.amount, self.description)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": format_date(self.date),
            "description": self.description,
            "amount": money(self.amount),
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["Transaction"]:
        """Build from an extraction document entry; None if date or amount is missing."""
        date_value = parse_date_flexible(data.get("date"))
        amount = parse_amount_safe(data.get("amount"))
        if date_value is None or amount is None:
            return None
        tx_type = CREDIT if str(data.get("type", DEBIT)).lower() == CREDIT else DEBIT
        return cls(date=date_value, description=str(data.get("description") or "").strip(),
                   amount=amount, type=tx_type)


@dataclass(frozen=True)
class CardIdentity:
    bank: str
    last4: str


UNKNOWN_CARD = CardIdentity(bank="Unknown Bank", last4="****")


@dataclass
class StatementExtraction:
    """Transactions recovered from one statement file."""
    filename: str
    transactions: List[Transaction] = field(default_factory=list)
    bank: Optional[str] = None
    layouts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "bank": self.bank,
            "layouts": list(self.layouts),
            "transactions": [t.to_dict() for t in self.transactions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatementExtraction":
        transactions = []
        for raw in data.get("transactions") or []:
            tx = Transaction.from_dict(raw)
            if tx is not None:
                transactions.append(tx)
        return cls(filename=str(data.get("filename") or ""), transactions=transactions,
                   bank=data.get("bank"), layouts=list(data.get("layouts") or []))


@dataclass
class InstallmentRecord:
    """Principal, interest and GST of one installment charge.

    ``tx_index`` is the position (within its statement) of the latest
    transaction merged into the record; ``order`` is the creation sequence.
    Both are ordering keys for orphan GST assignment.
    """
    date: DateValue
    merchant: str
    installment_number: int
    total_installments: int
    principal: Decimal = ZERO
    interest: Decimal = ZERO
    gst: Decimal = ZERO
    tx_index: int = 0
    order: int = 0

    @property
    def total_amount(self) -> Decimal:
        return self.principal + self.interest + self.gst

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": format_date(self.date),
            "installment_number": self.installment_number,
            "total_installments": self.total_installments,
            "principal": money(self.principal),
            "interest": money(self.interest),
            "gst": money(self.gst),
            "total_amount": money(self.total_amount),
        }


class InstallmentKey(NamedTuple):
    date: DateValue
    merchant: str
    installment_number: int
    total_installments: int


class PlanKey(NamedTuple):
    card_last4: str
    merchant: str
    total_installments: int
    sequence_index: int

    @property
    def plan_id(self) -> str:
        return f"{self.card_last4}_{self.merchant}_{self.total_installments}_{self.sequence_index}"


@dataclass
class EMIPlan:
    """Installments of one financed purchase."""
    merchant: str
    card: CardIdentity
    total_installments: int
    sequence_index: int = 1
    installments: List[InstallmentRecord] = field(default_factory=list)
    installments_paid: int = 0
    remaining_installments: int = 0
    amount_financed: Decimal = ZERO
    total_interest: Decimal = ZERO
    total_gst: Decimal = ZERO
    total_amount: Decimal = ZERO
    monthly_emi: Decimal = ZERO
    status: str = ACTIVE
    first_installment_date: Optional[DateValue] = None
    last_installment_date: Optional[DateValue] = None

    def __post_init__(self):
        self.remaining_installments = self.total_installments

    @property
    def key(self) -> PlanKey:
        return PlanKey(self.card.last4, self.merchant, self.total_installments, self.sequence_index)

    @property
    def max_installment_seen(self) -> int:
        return max((r.installment_number for r in self.installments), default=0)

    @property
    def latest_date(self) -> Optional[DateValue]:
        return self.installments[-1].date if self.installments else None

    def add_installment(self, record: InstallmentRecord) -> None:
        self.installments.append(record)
        # sorted() is stable, so same-day records keep arrival order
        self.installments.sort(key=lambda r: date_sort_key(r.date))
        self.installments_paid = self.max_installment_seen
        self.remaining_installments = max(0, self.total_installments - self.installments_paid)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_id": self.key.plan_id,
            "merchant": self.merchant,
            "card_last4": self.card.last4,
            "card_bank": self.card.bank,
            "total_installments": self.total_installments,
            "sequence_index": self.sequence_index,
            "amount_financed": money(self.amount_financed),
            "total_interest": money(self.total_interest),
            "total_gst": money(self.total_gst),
            "total_amount": money(self.total_amount),
            "monthly_emi": money(self.monthly_emi),
            "installments_paid": self.installments_paid,
            "remaining_installments": self.remaining_installments,
            "status": self.status,
            "first_installment_date": format_date(self.first_installment_date),
            "last_installment_date": format_date(self.last_installment_date),
            "installments": [r.to_dict() for r in self.installments],
        }
