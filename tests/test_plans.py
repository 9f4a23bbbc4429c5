"""Unit tests for EMI plan assembly and finalization"""

from datetime import date
from decimal import Decimal

from emi_extractor.models import ACTIVE, COMPLETED, CardIdentity
from emi_extractor.plans import EMIPlanAssembler, finalize_plan, sort_by_amount_financed


def _plan_ids(assembler):
    return [key.plan_id for key in assembler.plans]


def test_consecutive_installments_join_one_plan(card, make_record):
    """Test monthly installments of one purchase form one plan"""
    assembler = EMIPlanAssembler()
    for number, month in ((1, 1), (2, 2), (3, 3)):
        assembler.add(make_record(number, date(2026, month, 5)), card)

    assert _plan_ids(assembler) == ["7003_AMAZON_6_1"]
    plan = assembler.plans[next(iter(assembler.plans))]
    assert [r.installment_number for r in plan.installments] == [1, 2, 3]
    assert plan.installments_paid == 3
    assert plan.remaining_installments == 3


def test_concurrent_purchases_split_into_two_plans(card, make_record):
    """Test a second purchase of the same merchant and tenure opens its own plan"""
    assembler = EMIPlanAssembler()
    first = [(1, date(2026, 1, 5)), (2, date(2026, 2, 5)), (3, date(2026, 3, 5)),
             (4, date(2026, 4, 5)), (5, date(2026, 5, 5)), (6, date(2026, 6, 5))]
    second = [(1, date(2026, 3, 10)), (2, date(2026, 4, 10)), (3, date(2026, 5, 10)),
              (4, date(2026, 6, 10)), (5, date(2026, 7, 10)), (6, date(2026, 8, 10))]

    # Statement order: each month's statement carries both purchases
    arrivals = sorted([(d, n, "3000") for n, d in first] + [(d, n, "1500") for n, d in second])
    for when, number, principal in arrivals:
        assembler.add(make_record(number, when, principal=principal), card)

    assert _plan_ids(assembler) == ["7003_AMAZON_6_1", "7003_AMAZON_6_2"]
    plans = assembler.finalized_plans()
    for plan in plans:
        assert [r.installment_number for r in plan.installments] == [1, 2, 3, 4, 5, 6]
        assert plan.status == COMPLETED
    assert plans[0].amount_financed == Decimal("18000")
    assert plans[1].amount_financed == Decimal("9000")


def test_same_number_opens_new_plan(card, make_record):
    """Test an installment number already seen never joins the plan"""
    assembler = EMIPlanAssembler()
    assembler.add(make_record(2, date(2026, 1, 5)), card)
    plan = assembler.add(make_record(2, date(2026, 2, 5)), card)

    assert plan.key.plan_id == "7003_AMAZON_6_2"


def test_gap_below_threshold_opens_new_plan(card, make_record):
    """Test installments closer than the minimum gap belong to different plans"""
    assembler = EMIPlanAssembler(min_gap_days=20)
    assembler.add(make_record(1, date(2026, 1, 5)), card)
    plan = assembler.add(make_record(2, date(2026, 1, 24)), card)

    assert plan.sequence_index == 2


def test_gap_threshold_is_inclusive_and_configurable(card, make_record):
    """Test exactly min_gap_days apart still continues the plan"""
    assembler = EMIPlanAssembler(min_gap_days=10)
    assembler.add(make_record(1, date(2026, 1, 5)), card)
    plan = assembler.add(make_record(2, date(2026, 1, 15)), card)

    assert plan.sequence_index == 1


def test_unparseable_date_opens_new_plan(card, make_record):
    """Test a raw date string gives no gap and cannot continue a plan"""
    assembler = EMIPlanAssembler()
    assembler.add(make_record(1, date(2026, 1, 5)), card)
    plan = assembler.add(make_record(2, "Statement Feb"), card)

    assert plan.sequence_index == 2


def test_plans_are_scoped_by_card_and_tenure(make_record, card):
    """Test card last4 and tenure are part of the plan key"""
    other_card = CardIdentity(bank="RBL Bank", last4="89")
    assembler = EMIPlanAssembler()
    assembler.add(make_record(1, date(2026, 1, 5)), card)
    assembler.add(make_record(1, date(2026, 1, 5)), other_card)
    assembler.add(make_record(1, date(2026, 1, 5), total=12), card)

    assert _plan_ids(assembler) == ["7003_AMAZON_6_1", "89_AMAZON_6_1", "7003_AMAZON_12_1"]


def test_completion_transition(card, make_record):
    """Test the status flips once the last installment arrives"""
    assembler = EMIPlanAssembler()
    for number in range(1, 6):
        assembler.add(make_record(number, date(2026, number, 5)), card)

    plan = assembler.finalized_plans()[0]
    assert plan.status == ACTIVE
    assert plan.remaining_installments == 1

    assembler.add(make_record(6, date(2026, 6, 5)), card)
    plan = assembler.finalized_plans()[0]
    assert plan.status == COMPLETED
    assert plan.remaining_installments == 0
    assert plan.installments_paid == 6


def test_finalize_totals_and_dates(card, make_record):
    """Test sums, observed monthly EMI and the date range"""
    assembler = EMIPlanAssembler()
    assembler.add(make_record(3, date(2026, 3, 5), principal="1000", interest="100", gst="18"), card)
    assembler.add(make_record(4, date(2026, 4, 5), principal="1000", interest="80", gst="14.40"), card)

    plan = finalize_plan(assembler.plans[next(iter(assembler.plans))])
    assert plan.amount_financed == Decimal("2000")
    assert plan.total_interest == Decimal("180")
    assert plan.total_gst == Decimal("32.40")
    assert plan.total_amount == Decimal("2212.40")
    assert plan.monthly_emi == Decimal("1106.20")
    assert plan.installments_paid == 4
    assert plan.remaining_installments == 2
    assert plan.first_installment_date == date(2026, 3, 5)
    assert plan.last_installment_date == date(2026, 4, 5)


def test_remaining_never_negative(card, make_record):
    """Test an installment number above the tenure clamps remaining at zero"""
    assembler = EMIPlanAssembler()
    assembler.add(make_record(7, date(2026, 1, 5)), card)

    plan = assembler.finalized_plans()[0]
    assert plan.remaining_installments == 0
    assert plan.status == COMPLETED


def test_sort_by_amount_financed_is_stable(card, make_record):
    """Test larger plans first and ties in creation order"""
    assembler = EMIPlanAssembler()
    assembler.add(make_record(1, date(2026, 1, 5), merchant="A", principal="100"), card)
    assembler.add(make_record(1, date(2026, 1, 5), merchant="B", principal="500"), card)
    assembler.add(make_record(1, date(2026, 1, 5), merchant="C", principal="100"), card)

    plans = sort_by_amount_financed(assembler.finalized_plans())
    assert [p.merchant for p in plans] == ["B", "A", "C"]


def test_assembly_is_deterministic(card, make_record):
    """Test the same input gives identical plan documents"""
    def build():
        assembler = EMIPlanAssembler()
        for number in range(1, 4):
            assembler.add(make_record(number, date(2026, number, 5)), card)
            assembler.add(make_record(number, date(2026, number, 8), merchant="APPLE", total=12), card)
        return [p.to_dict() for p in sort_by_amount_financed(assembler.finalized_plans())]

    assert build() == build()
