"""
Test Card Builder - one course instance + resolved revenue → one card
"""

from citc_dashboard.transformation.cards import (
    UNKNOWN_CATEGORY,
    build_card,
    get_instance_identifier,
    select_revenue,
)
from citc_dashboard.transformation.invoices import enrolment_revenue
from citc_dashboard.transformation.schemas import RevenueInfo, RevenueMode


def test_forklift_scenario(forklift_instance, forklift_enrolments):
    """8 enrolments at 1795 each, enrolment mode → revenue 14360"""
    revenue = RevenueInfo(
        enrolments=forklift_enrolments,
        enrolment_revenue=enrolment_revenue(forklift_enrolments),
    )

    card = build_card(forklift_instance, revenue, RevenueMode.ENROLMENT)

    assert card.model_dump(by_alias=True) == {
        "instanceID": "12345",
        "trainingCategory": "Forklift",
        "startDate": "2024-04-22",
        "endDate": "2024-04-26",
        "numbers": 8,
        "capacity": 10,
        "revenue": 14360,
    }
    print(f"✅ Forklift card: {card}")


def test_instance_without_identifier_yields_no_card():
    revenue = RevenueInfo(enrolments=[], enrolment_revenue=0)
    assert build_card({"TRAININGCATEGORY": "Dogging"}, revenue, RevenueMode.ENROLMENT) is None
    assert build_card({"INSTANCEID": "  "}, revenue, RevenueMode.ENROLMENT) is None


def test_identifier_variants_and_numeric_ids():
    assert get_instance_identifier({"instanceID": "A1"}) == "A1"
    assert get_instance_identifier({"ID": 987}) == "987"
    assert get_instance_identifier({"InstanceId": 55.0}) == "55"
    assert get_instance_identifier({"INSTANCEID": None, "id": "x"}) == "x"
    assert get_instance_identifier({}) is None


def test_defaults_when_fields_missing():
    revenue = RevenueInfo(enrolments=[{}, {}, {}], enrolment_revenue=0)
    card = build_card({"ID": 1}, revenue, RevenueMode.ENROLMENT)

    assert card.training_category == UNKNOWN_CATEGORY
    assert card.start_date is None
    assert card.end_date is None
    assert card.capacity is None
    assert card.revenue == 0
    # No explicit count on the instance: fall back to the enrolments fetched
    assert card.numbers == 3


def test_explicit_count_beats_enrolment_count():
    revenue = RevenueInfo(enrolments=[{}], enrolment_revenue=0)
    card = build_card({"ID": 1, "TOTALENROLLED": "6"}, revenue, RevenueMode.ENROLMENT)
    assert card.numbers == 6


def test_select_revenue_by_mode():
    with_invoices = RevenueInfo(enrolment_revenue=100, invoice_revenue=250)
    without_invoices = RevenueInfo(enrolment_revenue=100, invoice_revenue=None)

    assert select_revenue(with_invoices, RevenueMode.INVOICE) == 250
    assert select_revenue(with_invoices, RevenueMode.ENROLMENT) == 100
    assert select_revenue(without_invoices, RevenueMode.INVOICE) == 100
