"""Field validation for fee structures and scholarship tiers. Returns error lists; never raises."""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .dates import ONE_SHOT_KEY, parse_instalment_key, to_date
from .gst import to_decimal
from .schemas import FeeStructureInput, ScholarshipInput, ValidationError

MAX_SEMESTERS = 12
MAX_INSTALMENTS_PER_SEMESTER = 12


def ranges_overlap(a: ScholarshipInput, b: ScholarshipInput) -> bool:
    """Closed-interval overlap of two score ranges. Symmetric in its arguments."""
    return a.start_percentage <= b.end_percentage and b.start_percentage <= a.end_percentage


def _overlap_message(a: ScholarshipInput, b: ScholarshipInput) -> str:
    return (
        f'Overlapping scholarships detected: "{a.name}" '
        f"({a.start_percentage}%-{a.end_percentage}%) overlaps with "
        f'"{b.name}" ({b.start_percentage}%-{b.end_percentage}%). '
        "Scholarship ranges cannot overlap."
    )


def find_overlaps(scholarships: Sequence[ScholarshipInput]) -> List[Tuple[int, int]]:
    """
    Index pairs (i, j) of conflicting tiers.

    Only the first conflict found for a scholarship is reported, and a pair
    already reported from the other side is not repeated.
    """
    reported: Set[frozenset] = set()
    pairs: List[Tuple[int, int]] = []
    for i, current in enumerate(scholarships):
        for j, other in enumerate(scholarships):
            if i == j or not ranges_overlap(current, other):
                continue
            pair = frozenset((i, j))
            if pair not in reported:
                reported.add(pair)
                pairs.append((i, j))
            break
    return pairs


def validate_single_scholarship(scholarship: ScholarshipInput, index: int) -> List[ValidationError]:
    errors: List[ValidationError] = []
    if not (scholarship.name or "").strip():
        errors.append(ValidationError(field=f"scholarship-{index}-name", message="Scholarship name is required"))
    if scholarship.amount_percentage <= 0:
        errors.append(
            ValidationError(field=f"scholarship-{index}-amount", message="Amount percentage must be greater than 0")
        )
    elif scholarship.amount_percentage > 100:
        errors.append(
            ValidationError(field=f"scholarship-{index}-amount", message="Amount percentage cannot exceed 100%")
        )
    if scholarship.start_percentage >= scholarship.end_percentage:
        errors.append(
            ValidationError(
                field=f"scholarship-{index}-range",
                message="Start percentage must be less than end percentage",
            )
        )
    return errors


def validate_scholarships(
    scholarships: Sequence[ScholarshipInput],
    require_at_least_one: bool = False,
) -> List[ValidationError]:
    """Overlap check across tiers plus per-tier field checks."""
    if not scholarships:
        if require_at_least_one:
            return [ValidationError(field="scholarships", message="At least one scholarship is required")]
        return []

    errors = [
        ValidationError(field="scholarship_overlap", message=_overlap_message(scholarships[i], scholarships[j]))
        for i, j in find_overlaps(scholarships)
    ]
    for index, scholarship in enumerate(scholarships):
        errors.extend(validate_single_scholarship(scholarship, index))
    return errors


def validate_fee_structure(data: FeeStructureInput) -> List[ValidationError]:
    errors: List[ValidationError] = []
    if to_decimal(data.admission_fee) < 0:
        errors.append(ValidationError(field="admission_fee", message="Admission fee cannot be negative"))
    if to_decimal(data.total_program_fee) <= 0:
        errors.append(ValidationError(field="total_program_fee", message="Total program fee must be greater than 0"))
    if not 1 <= data.number_of_semesters <= MAX_SEMESTERS:
        errors.append(
            ValidationError(
                field="number_of_semesters",
                message=f"Number of semesters must be between 1 and {MAX_SEMESTERS}",
            )
        )
    if not 1 <= data.instalments_per_semester <= MAX_INSTALMENTS_PER_SEMESTER:
        errors.append(
            ValidationError(
                field="instalments_per_semester",
                message=f"Instalments per semester must be between 1 and {MAX_INSTALMENTS_PER_SEMESTER}",
            )
        )
    if not Decimal("0") <= to_decimal(data.one_shot_discount_percentage) <= Decimal("100"):
        errors.append(
            ValidationError(
                field="one_shot_discount_percentage",
                message="Discount percentage must be between 0 and 100",
            )
        )
    if not errors:
        semesters, per_semester = data.number_of_semesters, data.instalments_per_semester
        errors.extend(validate_plan_dates("one_shot_dates", data.one_shot_dates, semesters, per_semester, one_shot=True))
        errors.extend(validate_plan_dates("sem_wise_dates", data.sem_wise_dates, semesters, 1))
        errors.extend(validate_plan_dates("instalment_wise_dates", data.instalment_wise_dates, semesters, per_semester))
    return errors


def errors_to_dict(errors: Iterable[ValidationError]) -> Dict[str, str]:
    """Field -> message, last message wins for a repeated field."""
    return {error.field: error.message for error in errors}


def find_scholarship_for_score(
    scholarships: Sequence[ScholarshipInput],
    score: Optional[Decimal],
) -> Optional[ScholarshipInput]:
    if score is None:
        return None
    value = to_decimal(score)
    for scholarship in scholarships:
        if scholarship.start_percentage <= value <= scholarship.end_percentage:
            return scholarship
    return None


def validate_plan_dates(
    field: str,
    dates: Dict[str, str],
    number_of_semesters: int,
    instalments_per_semester: int,
    one_shot: bool = False,
) -> List[ValidationError]:
    """Date overrides must use a key the plan actually produces and an ISO date value."""
    errors: List[ValidationError] = []
    for key, value in (dates or {}).items():
        if one_shot:
            known = key == ONE_SHOT_KEY
        else:
            parsed = parse_instalment_key(key)
            known = (
                parsed is not None
                and 1 <= parsed[0] <= number_of_semesters
                and 0 <= parsed[1] < instalments_per_semester
            )
        if not known:
            errors.append(ValidationError(field=f"{field}.{key}", message=f"Unknown instalment key '{key}'"))
            continue
        try:
            to_date(value)
        except (TypeError, ValueError):
            errors.append(ValidationError(field=f"{field}.{key}", message=f"'{value}' is not a valid ISO date"))
    return errors
