"""Unit tests for scholarship tier and fee structure validation."""

from decimal import Decimal

import pytest

from app.fee_engine.schemas import FeeStructureInput, ScholarshipInput
from app.fee_engine.validation import (
    errors_to_dict,
    find_scholarship_for_score,
    ranges_overlap,
    validate_fee_structure,
    validate_scholarships,
)


def tier(name: str, start, end, amount, id=None) -> ScholarshipInput:
    return ScholarshipInput(
        id=id,
        name=name,
        start_percentage=Decimal(str(start)),
        end_percentage=Decimal(str(end)),
        amount_percentage=Decimal(str(amount)),
    )


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ((0, 50), (51, 100), False),
        ((0, 50), (50, 100), True),  # closed intervals share the boundary
        ((40, 100), (0, 50), True),
        ((10, 20), (0, 100), True),
        ((0, 49.99), (50, 100), False),
    ],
)
def test_ranges_overlap_is_symmetric(a, b, expected) -> None:
    first, second = tier("A", *a, 10), tier("B", *b, 10)
    assert ranges_overlap(first, second) is expected
    assert ranges_overlap(second, first) is expected


def test_partition_validates_cleanly() -> None:
    tiers = [tier("Bronze", 0, 49.99, 5), tier("Silver", 50, 79.99, 10), tier("Gold", 80, 100, 20)]
    assert validate_scholarships(tiers) == []


def test_adjacent_tiers_then_overlap_reports_one_error() -> None:
    tiers = [tier("Merit", 0, 50, 10), tier("Excellence", 51, 100, 20)]
    assert validate_scholarships(tiers) == []

    tiers[1] = tier("Excellence", 40, 100, 20)
    errors = validate_scholarships(tiers)
    assert len(errors) == 1
    assert errors[0].field == "scholarship_overlap"
    assert '"Merit"' in errors[0].message
    assert '"Excellence"' in errors[0].message
    assert errors[0].message.endswith("Scholarship ranges cannot overlap.")


def test_first_conflict_only_per_tier() -> None:
    """A tier overlapping two others reports its first conflict; the other pair is still reported once."""
    tiers = [tier("Wide", 0, 100, 10), tier("Low", 0, 40, 10), tier("High", 60, 100, 10)]
    errors = [e for e in validate_scholarships(tiers) if e.field == "scholarship_overlap"]
    assert len(errors) == 2
    assert '"Wide"' in errors[0].message and '"Low"' in errors[0].message
    assert '"High"' in errors[1].message and '"Wide"' in errors[1].message


def test_per_record_errors() -> None:
    errors = validate_scholarships([tier("  ", 60, 50, 0)])
    fields = errors_to_dict(errors)
    assert fields["scholarship-0-name"] == "Scholarship name is required"
    assert fields["scholarship-0-amount"] == "Amount percentage must be greater than 0"
    assert fields["scholarship-0-range"] == "Start percentage must be less than end percentage"

    errors = validate_scholarships([tier("Too much", 0, 10, 101)])
    assert errors_to_dict(errors) == {"scholarship-0-amount": "Amount percentage cannot exceed 100%"}


def test_empty_list_only_fails_when_required() -> None:
    assert validate_scholarships([]) == []
    errors = validate_scholarships([], require_at_least_one=True)
    assert [e.field for e in errors] == ["scholarships"]


def test_find_scholarship_for_score() -> None:
    tiers = [tier("Merit", 0, 50, 10, id="a"), tier("Excellence", 80, 100, 20, id="b")]
    assert find_scholarship_for_score(tiers, Decimal("85")).id == "b"
    assert find_scholarship_for_score(tiers, Decimal("50")).id == "a"
    assert find_scholarship_for_score(tiers, Decimal("65")) is None
    assert find_scholarship_for_score(tiers, None) is None


def test_fee_structure_ranges() -> None:
    data = FeeStructureInput(
        admission_fee=Decimal("-1"),
        total_program_fee=Decimal("0"),
        number_of_semesters=13,
        instalments_per_semester=0,
        one_shot_discount_percentage=Decimal("101"),
    )
    fields = errors_to_dict(validate_fee_structure(data))
    assert set(fields) == {
        "admission_fee",
        "total_program_fee",
        "number_of_semesters",
        "instalments_per_semester",
        "one_shot_discount_percentage",
    }


def test_fee_structure_plan_dates() -> None:
    data = FeeStructureInput(
        admission_fee=Decimal("50000"),
        total_program_fee=Decimal("500000"),
        number_of_semesters=2,
        instalments_per_semester=2,
        one_shot_dates={"one-shot": "2025-02-01"},
        sem_wise_dates={"semester-1-instalment-0": "2025-02-01", "semester-1-instalment-1": "2025-03-01"},
        instalment_wise_dates={"semester-3-instalment-0": "2025-09-01", "semester-2-instalment-1": "soon"},
    )
    fields = errors_to_dict(validate_fee_structure(data))
    assert set(fields) == {
        "sem_wise_dates.semester-1-instalment-1",
        "instalment_wise_dates.semester-3-instalment-0",
        "instalment_wise_dates.semester-2-instalment-1",
    }
    assert fields["instalment_wise_dates.semester-2-instalment-1"] == "'soon' is not a valid ISO date"
