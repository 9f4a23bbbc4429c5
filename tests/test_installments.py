"""Unit tests for installment reconstruction"""

from datetime import date
from decimal import Decimal

from emi_extractor.installments import (
    GST,
    INTEREST,
    PRINCIPAL,
    InstallmentExtractor,
    extract_installments,
    parse_installment_description,
)


def test_parse_principal_line():
    """Test the installment token is read from a principal line"""
    parsed = parse_installment_description("Principal Amount Amortization - <4/6>AMAZON PAY INDIA")

    assert parsed.component == PRINCIPAL
    assert parsed.merchant == "AMAZON PAY INDIA"
    assert parsed.installment == 4
    assert parsed.total == 6


def test_parse_interest_line_tolerates_spaces_in_token():
    """Test whitespace inside the token"""
    parsed = parse_installment_description("Interest Amount Amortization - < 2 / 12 > NETFLIX")

    assert parsed.component == INTEREST
    assert (parsed.merchant, parsed.installment, parsed.total) == ("NETFLIX", 2, 12)


def test_parse_tax_lines():
    """Test IGST/CGST/SGST/GST lines are tax components"""
    for description in ("IGST-VPS2533309", "CGST @9%", "SGST-ABC", "GST ON EMI"):
        assert parse_installment_description(description).component == GST


def test_parse_unrelated_lines():
    """Test lines that only contain tax letters inside a word are ignored"""
    assert parse_installment_description("SWIGGY BANGALORE").component is None
    assert parse_installment_description("LOGSTASH CLOUD").component is None
    # Marker without a token is not an installment
    assert parse_installment_description("Principal Amount Amortization - AMAZON").component is None


def test_principal_and_interest_merge(make_transaction):
    """Test principal and interest of one installment become one record"""
    records = extract_installments([
        make_transaction("Principal Amount Amortization - <2/6>NETFLIX", "500"),
        make_transaction("Interest Amount Amortization - <2/6>NETFLIX", "45"),
    ])

    assert len(records) == 1
    record = records[0]
    assert record.principal == Decimal("500")
    assert record.interest == Decimal("45")
    assert record.total_amount == Decimal("545")


def test_split_components_accumulate(make_transaction):
    """Test repeated principal lines for one installment add up"""
    records = extract_installments([
        make_transaction("Principal Amount Amortization - <3/6>APPLE", "700"),
        make_transaction("Principal Amount Amortization - <3/6>APPLE", "300"),
    ])

    assert len(records) == 1
    assert records[0].principal == Decimal("1000")


def test_different_dates_are_different_records(make_transaction):
    """Test the record key includes the date"""
    records = extract_installments([
        make_transaction("Principal Amount Amortization - <2/6>NETFLIX", "500", when=date(2026, 1, 5)),
        make_transaction("Principal Amount Amortization - <2/6>NETFLIX", "500", when=date(2026, 2, 5)),
    ])

    assert len(records) == 2


def test_orphan_gst_assigned_then_dropped(make_transaction):
    """Test one tax line fills the open record and a second one is dropped"""
    extractor = InstallmentExtractor()
    records = extractor.extract([
        make_transaction("Principal Amount Amortization - <1/6>AMAZON", "1000"),
        make_transaction("IGST-VPS2533309", "18"),
        make_transaction("IGST-VPS2533310", "18"),
    ])

    assert len(records) == 1
    assert records[0].gst == Decimal("18")
    assert extractor.orphans_dropped == 1


def test_orphan_gst_requires_same_date(make_transaction):
    """Test a tax line on another date is not attached"""
    extractor = InstallmentExtractor()
    records = extractor.extract([
        make_transaction("Principal Amount Amortization - <1/6>AMAZON", "1000", when=date(2026, 1, 5)),
        make_transaction("IGST-VPS2533309", "18", when=date(2026, 1, 6)),
    ])

    assert records[0].gst == 0
    assert extractor.orphans_dropped == 1


def test_orphan_gst_before_any_record_is_dropped(make_transaction):
    """Test a tax line that precedes every installment line"""
    extractor = InstallmentExtractor()
    records = extractor.extract([
        make_transaction("IGST-VPS2533309", "18"),
        make_transaction("Principal Amount Amortization - <1/6>AMAZON", "1000"),
    ])

    assert records[0].gst == 0
    assert extractor.orphans_dropped == 1


def test_orphan_gst_goes_to_nearest_record(make_transaction):
    """Test the tax line joins the record whose latest line is closest"""
    records = extract_installments([
        make_transaction("Principal Amount Amortization - <1/6>AMAZON", "1000"),
        make_transaction("Interest Amount Amortization - <1/6>AMAZON", "100"),
        make_transaction("Principal Amount Amortization - <3/12>APPLE", "5000"),
        make_transaction("Interest Amount Amortization - <3/12>APPLE", "400"),
        make_transaction("IGST-VPS2533309", "72"),
        make_transaction("IGST-VPS2533310", "18"),
    ])

    amazon, apple = records
    assert apple.gst == Decimal("72")
    assert amazon.gst == Decimal("18")


def test_orphan_gst_only_sees_records_already_built(make_transaction):
    """Test a tax line cannot attach to an installment posted after it"""
    records = extract_installments([
        make_transaction("Principal Amount Amortization - <1/6>AMAZON", "1000"),
        make_transaction("IGST-VPS2533309", "18"),
        make_transaction("Principal Amount Amortization - <2/6>FLIPKART", "2000"),
    ])

    amazon, flipkart = records
    assert amazon.gst == Decimal("18")
    assert flipkart.gst == 0


def test_record_total_is_sum_of_components(make_transaction):
    """Test every record total equals principal + interest + gst"""
    records = extract_installments([
        make_transaction("Principal Amount Amortization - <1/6>AMAZON", "1000.10"),
        make_transaction("Interest Amount Amortization - <1/6>AMAZON", "100.05"),
        make_transaction("IGST-VPS2533309", "18.01"),
        make_transaction("SWIGGY BANGALORE", "450"),
    ])

    for record in records:
        assert record.total_amount == record.principal + record.interest + record.gst
    assert records[0].to_dict()['total_amount'] == 1118.16
