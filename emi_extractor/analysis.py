"""Analysis module: derived metrics for finalized EMI plans.

Everything here is a pure function of a plan document entry (the dict
produced by ``EMIPlan.to_dict``): effective interest rate, completion,
estimated completion date, a priority-to-close score and cost ratios.
"""
import re
import logging
from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from fuzzywuzzy import fuzz

from .models import COMPLETED
from .utils import format_date, money, parse_date_flexible

logger = logging.getLogger(__name__)

# Checked in order; the first category with a matching keyword wins
MERCHANT_CATEGORIES = [
    ('Shopping', 'E-commerce Purchase', ['amazon', 'flipkart', 'myntra']),
    ('Travel', 'Flight/Hotel Booking', ['makemytrip', 'goibibo', 'indigo', 'airasia']),
    ('Electronics', 'Mobile/Gadget Purchase', ['apple', 'samsung', 'oneplus', 'mi']),
    ('Finance', 'Loan/EMI', ['bajaj', 'hdfc', 'icici']),
    ('Food & Groceries', 'Food Delivery', ['swiggy', 'zomato', 'blinkit']),
    ('Entertainment', 'Subscription', ['netflix', 'prime', 'hotstar', 'spotify']),
]
DEFAULT_CATEGORY = ('Others', 'General Purchase')

# partial_ratio of 90 still demands an exact substring for short keywords
CATEGORY_MATCH_THRESHOLD = 90

HIGH_PRIORITY_SCORE = 60
MEDIUM_PRIORITY_SCORE = 40


def _round_int(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clean_merchant(merchant: str) -> str:
    """Strip legal suffixes and punctuation from a statement merchant name."""
    cleaned = merchant or ""
    for pattern in (r'\bPVT\s+LT\b', r'\bPRIVATE\s+LIMITED\b', r'\bLIMITED\b', r'\bIND\*\b',
                    r'\bINDIA\b', r'\bCOM\s*$'):
        cleaned = re.sub(pattern, '', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'[*,.()]', '', cleaned)
    return re.sub(r'\s{2,}', ' ', cleaned).strip()


def categorize_emi(merchant: str) -> Tuple[str, str]:
    merchant_lower = (merchant or "").lower()
    if not merchant_lower:
        return DEFAULT_CATEGORY
    for category, purpose, keywords in MERCHANT_CATEGORIES:
        for keyword in keywords:
            # partial_ratio also scores a merchant that is only a fragment of the keyword
            if len(keyword) > len(merchant_lower):
                continue
            if fuzz.partial_ratio(keyword, merchant_lower) >= CATEGORY_MATCH_THRESHOLD:
                return category, purpose
    return DEFAULT_CATEGORY


def calculate_effective_rate(plan: Dict[str, Any]) -> float:
    """Approximate annual rate: (interest / principal) / (tenure in years) * 100."""
    interest = plan.get('total_interest', 0) or 0
    financed = plan.get('amount_financed', 0) or 0
    tenure = plan.get('total_installments', 0) or 0
    if interest == 0 or financed == 0 or tenure == 0:
        return 0.0
    years = tenure / 12
    return money(interest / financed / years * 100)


def calculate_completion(plan: Dict[str, Any]) -> int:
    tenure = plan.get('total_installments', 0) or 0
    if tenure == 0:
        return 0
    return _round_int(plan.get('installments_paid', 0) / tenure * 100)


def estimate_completion_date(plan: Dict[str, Any]) -> Optional[str]:
    """Last installment date plus the remaining months, for active plans."""
    remaining = plan.get('remaining_installments', 0)
    if plan.get('status') == COMPLETED or not remaining:
        return None
    last_date = parse_date_flexible(plan.get('last_installment_date'))
    if last_date is None or isinstance(last_date, str):
        return None
    return format_date(last_date + relativedelta(months=remaining))


def calculate_priority(plan: Dict[str, Any], effective_rate: float) -> int:
    """Higher score means the plan is a better candidate to close early."""
    score = 0

    if effective_rate > 15:
        score += 40
    elif effective_rate > 10:
        score += 30
    elif effective_rate > 5:
        score += 20
    elif effective_rate > 0:
        score += 10

    completion = calculate_completion(plan)
    if completion > 80:
        score += 30
    elif completion > 60:
        score += 20
    elif completion > 40:
        score += 10

    remaining = plan.get('remaining_installments', 0)
    if remaining <= 2:
        score += 20
    elif remaining <= 4:
        score += 10

    if plan.get('monthly_emi', 0) > 5000:
        score += 10

    return score


def analyze_costs(plan: Dict[str, Any]) -> Dict[str, float]:
    total_cost = plan.get('total_amount', 0) or 0

    def ratio(part):
        return money((part or 0) / total_cost * 100) if total_cost else 0.0

    return {
        'total_cost': money(total_cost),
        'principal_ratio': ratio(plan.get('amount_financed')),
        'interest_ratio': ratio(plan.get('total_interest')),
        'gst_ratio': ratio(plan.get('total_gst')),
        'monthly_burden': money(plan.get('monthly_emi', 0)),
        'remaining_cost': money(plan.get('monthly_emi', 0) * plan.get('remaining_installments', 0)),
    }


def generate_recommendations(enriched: Dict[str, Any]) -> List[str]:
    recs = []

    if enriched['status'] == COMPLETED:
        recs.append('EMI completed')
        return recs

    rate = enriched['effective_interest_rate']
    if rate > 15:
        recs.append(f"High interest rate ({rate:.2f}%) - consider prepayment")
    if enriched['completion_percentage'] > 80:
        recs.append(f"Almost done ({enriched['completion_percentage']}%) - complete it soon")
    if enriched['remaining_installments'] <= 2:
        recs.append('Only a few installments left - easy to close')
    if enriched['monthly_emi'] > 10000:
        recs.append('High monthly burden - consider as closure priority')

    if rate == 0:
        recs.append('Zero interest EMI - no rush to prepay')
    elif rate < 5:
        recs.append('Low interest rate - prepayment not urgent')

    if enriched['priority_score'] >= HIGH_PRIORITY_SCORE:
        recs.append('High priority for closure')
    elif enriched['priority_score'] >= MEDIUM_PRIORITY_SCORE:
        recs.append('Medium priority for closure')
    else:
        recs.append('Low priority - can continue as scheduled')

    if enriched.get('estimated_completion_date'):
        recs.append(f"Estimated completion: {enriched['estimated_completion_date']}")

    return recs


def enrich_plan(plan: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of the plan with the derived metrics added."""
    merchant_clean = clean_merchant(plan.get('merchant', ''))
    category, purpose = categorize_emi(merchant_clean)
    effective_rate = calculate_effective_rate(plan)

    financed = plan.get('amount_financed', 0) or 0
    total = plan.get('total_amount', 0) or 0

    enriched = dict(plan)
    enriched.update({
        'merchant_clean': merchant_clean,
        'category': category,
        'purpose': purpose,
        'effective_interest_rate': effective_rate,
        'interest_percentage': money(plan.get('total_interest', 0) / financed * 100) if financed else 0.0,
        'gst_percentage': money(plan.get('total_gst', 0) / total * 100) if total else 0.0,
        'payment_status': ('Fully Paid' if plan.get('status') == COMPLETED
                           else f"{plan.get('installments_paid')}/{plan.get('total_installments')} Paid"),
        'completion_percentage': calculate_completion(plan),
        'estimated_completion_date': estimate_completion_date(plan),
        'priority_score': calculate_priority(plan, effective_rate),
        'cost_analysis': analyze_costs(plan),
    })
    enriched['recommendations'] = generate_recommendations(enriched)
    return enriched


def summarize_enriched(enriched: List[Dict[str, Any]]) -> Dict[str, Any]:
    active = [e for e in enriched if e['status'] != COMPLETED]
    rated = [e['effective_interest_rate'] for e in enriched if e['effective_interest_rate'] > 0]
    return {
        'totalPlans': len(enriched),
        'activePlans': len(active),
        'completedPlans': len(enriched) - len(active),
        'totalMonthlyBurden': money(sum(e['monthly_emi'] for e in active)),
        'totalRemainingCost': money(sum(e['cost_analysis']['remaining_cost'] for e in active)),
        'averageInterestRate': money(sum(rated) / len(rated)) if rated else 0.0,
        'categoryBreakdown': dict(Counter(e['category'] for e in enriched)),
        'highPriorityClosures': sum(1 for e in active if e['priority_score'] >= HIGH_PRIORITY_SCORE),
    }


def enrich_plans(plans: List[Dict[str, Any]]) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """Enrich every plan; plans come back sorted by priority score, highest first."""
    logger.info(f"Enriching {len(plans)} EMI plan(s)...")
    enriched = sorted((enrich_plan(plan) for plan in plans), key=lambda e: e['priority_score'], reverse=True)
    return summarize_enriched(enriched), enriched
