"""EMI plan assembly and finalization.

Installment records are grouped into plans keyed by
(card last4, merchant, tenure, sequence index). The same merchant and
tenure can legitimately belong to two unrelated purchases, so a record
only joins an existing plan when it continues that plan's installment
sequence and arrives at least one billing gap after the plan's latest
installment; otherwise it opens a new plan with the next sequence index.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from . import config
from .models import ACTIVE, COMPLETED, CardIdentity, EMIPlan, InstallmentRecord, PlanKey, ZERO
from .utils import days_between

logger = logging.getLogger(__name__)


class EMIPlanAssembler:
    """Sequential reduction of installment records into plans.

    Records must be added in statement order, then in-statement order;
    plan identity depends on it.
    """

    def __init__(self, min_gap_days: Optional[int] = None, debug: bool = False):
        self.min_gap_days = config.MIN_PLAN_GAP_DAYS if min_gap_days is None else min_gap_days
        self.debug = debug
        self.plans: Dict[PlanKey, EMIPlan] = {}
        self._plans_by_prefix: Dict[Tuple[str, str, int], List[EMIPlan]] = {}

    def add(self, record: InstallmentRecord, card: CardIdentity) -> EMIPlan:
        """Place one record into an existing or new plan and return that plan."""
        prefix = (card.last4, record.merchant, record.total_installments)
        candidates = self._plans_by_prefix.setdefault(prefix, [])

        plan = next((p for p in candidates if self._can_append(p, record)), None)
        if plan is None:
            plan = EMIPlan(
                merchant=record.merchant,
                card=card,
                total_installments=record.total_installments,
                sequence_index=len(candidates) + 1,
            )
            candidates.append(plan)
            self.plans[plan.key] = plan
            if self.debug:
                logger.info(f"Opened plan {plan.key.plan_id} at installment "
                            f"{record.installment_number}/{record.total_installments}")

        plan.add_installment(record)
        return plan

    def add_all(self, records: List[InstallmentRecord], card: CardIdentity) -> None:
        for record in records:
            self.add(record, card)

    def _can_append(self, plan: EMIPlan, record: InstallmentRecord) -> bool:
        if record.installment_number <= plan.max_installment_seen:
            return False
        if not plan.installments:
            return True
        gap = days_between(plan.latest_date, record.date)
        # An unparseable date gives no evidence the installments are a month apart
        if gap is None:
            return False
        return gap >= self.min_gap_days

    def finalized_plans(self) -> List[EMIPlan]:
        """All plans in creation order, with totals and status computed."""
        return [finalize_plan(plan) for plan in self.plans.values()]


def finalize_plan(plan: EMIPlan) -> EMIPlan:
    """Compute totals, observed monthly EMI, status and date range of a plan."""
    installments = plan.installments
    plan.amount_financed = sum((r.principal for r in installments), ZERO)
    plan.total_interest = sum((r.interest for r in installments), ZERO)
    plan.total_gst = sum((r.gst for r in installments), ZERO)
    plan.total_amount = plan.amount_financed + plan.total_interest + plan.total_gst

    # Average over observed installments only; earlier statements may be missing
    if installments:
        plan.monthly_emi = sum((r.total_amount for r in installments), ZERO) / Decimal(len(installments))
    else:
        plan.monthly_emi = ZERO

    plan.installments_paid = plan.max_installment_seen
    plan.remaining_installments = max(0, plan.total_installments - plan.installments_paid)
    plan.status = COMPLETED if plan.remaining_installments == 0 else ACTIVE

    plan.first_installment_date = installments[0].date if installments else None
    plan.last_installment_date = installments[-1].date if installments else None
    return plan


def sort_by_amount_financed(plans: List[EMIPlan]) -> List[EMIPlan]:
    """Largest financed amount first; ties keep creation order."""
    return sorted(plans, key=lambda p: p.amount_financed, reverse=True)
