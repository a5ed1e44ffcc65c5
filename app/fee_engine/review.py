"""
Fee structure review generator.

Admission fee is quoted GST-inclusive and split into base + tax. The program
fee (total program fee minus admission fee) is quoted GST-exclusive and tax
is added on top. Scholarships are always a percentage of the raw total
program fee.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from app.core.enums import PaymentPlan

from .dates import ONE_SHOT_KEY, default_payment_date, instalment_key, resolve_payment_date, to_date
from .gst import (
    Amount,
    calculate_gst,
    extract_base_amount_from_total,
    extract_gst_from_total,
    percentage_of,
    round_money,
    to_decimal,
)
from .schemas import (
    NO_SCHOLARSHIP,
    AdmissionFeeLine,
    FeeStructureInput,
    FeeStructureReview,
    InstalmentLine,
    OverallSummary,
    ScholarshipInput,
    SemesterBreakdown,
    SemesterTotal,
)
from .validation import find_scholarship_for_score

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Errors a malformed fee structure can raise inside the arithmetic.
COMPUTATION_ERRORS = (ArithmeticError, ValueError, KeyError, TypeError, AttributeError)


def _sum(values) -> Decimal:
    return round_money(sum(values, ZERO))


def split_evenly(total: Amount, parts: int) -> List[Decimal]:
    """Split into `parts` paise-rounded shares; the last share absorbs the rounding remainder."""
    if parts < 1:
        raise ValueError("Cannot split an amount into fewer than one part")
    total = to_decimal(total)
    share = round_money(total / parts)
    shares = [share] * parts
    shares[-1] = round_money(total - share * (parts - 1))
    return shares


def resolve_scholarship(
    scholarships: Sequence[ScholarshipInput],
    scholarship_id: Optional[str],
    test_score: Optional[Amount],
) -> Optional[ScholarshipInput]:
    """Explicit id wins; without one, the tier whose range contains the test score."""
    if scholarship_id == NO_SCHOLARSHIP:
        return None
    if scholarship_id:
        return next((s for s in scholarships if s.id == scholarship_id), None)
    if test_score is None:
        return None
    return find_scholarship_for_score(scholarships, to_decimal(test_score))


def _admission_line(admission_fee: Decimal) -> AdmissionFeeLine:
    return AdmissionFeeLine(
        base_amount=extract_base_amount_from_total(admission_fee),
        gst_amount=extract_gst_from_total(admission_fee),
        total_payable=round_money(admission_fee),
    )


def _one_shot_line(
    program_fee: Decimal,
    admission: AdmissionFeeLine,
    discount_percentage: Decimal,
    scholarship_amount: Decimal,
    payment_date: Optional[str],
) -> InstalmentLine:
    base = round_money(program_fee + admission.base_amount)
    gst = round_money(calculate_gst(program_fee) + admission.gst_amount)
    gross = base + gst
    discount = percentage_of(gross, discount_percentage)
    payable = max(ZERO, round_money(gross - discount - scholarship_amount))
    return InstalmentLine(
        instalment_number=1,
        date_key=ONE_SHOT_KEY,
        payment_date=payment_date,
        base_amount=base,
        gst_amount=gst,
        discount_amount=discount,
        scholarship_amount=scholarship_amount,
        amount_payable=payable,
    )


def _semester_breakdowns(
    program_fee: Decimal,
    number_of_semesters: int,
    instalments_per_semester: int,
    scholarship_amount: Decimal,
    start: Optional[date],
    custom_dates: Optional[Dict[str, str]],
) -> List[SemesterBreakdown]:
    count = number_of_semesters * instalments_per_semester
    bases = split_evenly(program_fee, count)
    scholarship_shares = split_evenly(scholarship_amount, count)

    semesters: List[SemesterBreakdown] = []
    for sem in range(1, number_of_semesters + 1):
        lines: List[InstalmentLine] = []
        for i in range(instalments_per_semester):
            position = (sem - 1) * instalments_per_semester + i
            base = bases[position]
            gst = calculate_gst(base)
            scholarship = scholarship_shares[position]
            key = instalment_key(sem, i)
            default = default_payment_date(start, sem, i) if start else None
            lines.append(
                InstalmentLine(
                    instalment_number=i + 1,
                    date_key=key,
                    payment_date=resolve_payment_date(key, default, custom_dates),
                    base_amount=base,
                    gst_amount=gst,
                    scholarship_amount=scholarship,
                    amount_payable=max(ZERO, round_money(base + gst - scholarship)),
                )
            )
        semesters.append(
            SemesterBreakdown(
                semester_number=sem,
                instalments=lines,
                total=SemesterTotal(
                    base_amount=_sum(line.base_amount for line in lines),
                    gst_amount=_sum(line.gst_amount for line in lines),
                    discount_amount=_sum(line.discount_amount for line in lines),
                    scholarship_amount=_sum(line.scholarship_amount for line in lines),
                    total_payable=_sum(line.amount_payable for line in lines),
                ),
            )
        )
    return semesters


def compute_fee_review(
    fee_structure: FeeStructureInput,
    scholarships: Sequence[ScholarshipInput],
    selected_plan: Union[PaymentPlan, str],
    test_score: Optional[Amount] = None,
    cohort_start_date: Optional[Union[date, str]] = None,
    scholarship_id: Optional[str] = None,
    custom_dates: Optional[Dict[str, str]] = None,
    additional_discount_percentage: Amount = ZERO,
) -> FeeStructureReview:
    """
    Itemized review of what a student pays under `selected_plan`.

    Raises on a malformed fee structure or an unknown plan; use
    `review_with_fallback` where a result must always be produced.
    """
    plan = PaymentPlan(selected_plan)
    if plan == PaymentPlan.NOT_SELECTED:
        raise ValueError("A payment plan must be selected to generate a review")

    admission_fee = to_decimal(fee_structure.admission_fee)
    total_program_fee = to_decimal(fee_structure.total_program_fee)
    if total_program_fee <= 0:
        raise ValueError("Total program fee must be greater than 0")
    if fee_structure.number_of_semesters < 1 or fee_structure.instalments_per_semester < 1:
        raise ValueError("Semester and instalment counts must be at least 1")

    start = to_date(cohort_start_date) if cohort_start_date else None
    program_fee = round_money(total_program_fee - admission_fee)
    admission = _admission_line(admission_fee)

    scholarship = resolve_scholarship(scholarships, scholarship_id, test_score)
    scholarship_percentage = to_decimal(additional_discount_percentage)
    if scholarship is not None:
        scholarship_percentage += scholarship.amount_percentage
    scholarship_amount = percentage_of(total_program_fee, scholarship_percentage)

    semesters: List[SemesterBreakdown] = []
    one_shot: Optional[InstalmentLine] = None

    if plan == PaymentPlan.ONE_SHOT:
        default = start.isoformat() if start else None
        one_shot = _one_shot_line(
            program_fee,
            admission,
            to_decimal(fee_structure.one_shot_discount_percentage),
            scholarship_amount,
            resolve_payment_date(ONE_SHOT_KEY, default, custom_dates),
        )
        # The one-shot line already carries the admission component.
        summary = OverallSummary(
            total_program_fee=total_program_fee,
            admission_fee=admission_fee,
            total_gst=one_shot.gst_amount,
            total_discount=one_shot.discount_amount,
            total_scholarship=one_shot.scholarship_amount,
            total_amount_payable=one_shot.amount_payable,
        )
    else:
        per_semester = 1 if plan == PaymentPlan.SEM_WISE else fee_structure.instalments_per_semester
        semesters = _semester_breakdowns(
            program_fee,
            fee_structure.number_of_semesters,
            per_semester,
            scholarship_amount,
            start,
            custom_dates,
        )
        summary = OverallSummary(
            total_program_fee=total_program_fee,
            admission_fee=admission_fee,
            total_gst=_sum([admission.gst_amount] + [s.total.gst_amount for s in semesters]),
            total_discount=_sum(s.total.discount_amount for s in semesters),
            total_scholarship=_sum(s.total.scholarship_amount for s in semesters),
            total_amount_payable=max(ZERO, _sum([admission_fee] + [s.total.total_payable for s in semesters])),
        )

    return FeeStructureReview(
        payment_plan=plan,
        scholarship_id=scholarship.id if scholarship is not None else None,
        admission_fee=admission,
        semesters=semesters,
        one_shot_payment=one_shot,
        overall_summary=summary,
    )


def build_fallback_review(
    fee_structure: FeeStructureInput,
    selected_plan: Union[PaymentPlan, str] = PaymentPlan.NOT_SELECTED,
) -> FeeStructureReview:
    """Admission and whole-program totals only. Used when the itemized review cannot be computed."""
    try:
        plan = PaymentPlan(selected_plan)
    except ValueError:
        plan = PaymentPlan.NOT_SELECTED
    admission_fee = to_decimal(fee_structure.admission_fee)
    total_program_fee = to_decimal(fee_structure.total_program_fee)
    admission = _admission_line(admission_fee)
    return FeeStructureReview(
        payment_plan=plan,
        admission_fee=admission,
        overall_summary=OverallSummary(
            total_program_fee=round_money(total_program_fee),
            admission_fee=round_money(admission_fee),
            total_gst=admission.gst_amount,
            total_discount=ZERO,
            total_scholarship=ZERO,
            total_amount_payable=max(ZERO, round_money(total_program_fee)),
        ),
        is_fallback=True,
    )


def review_with_fallback(
    fee_structure: FeeStructureInput,
    scholarships: Sequence[ScholarshipInput],
    selected_plan: Union[PaymentPlan, str],
    test_score: Optional[Amount] = None,
    cohort_start_date: Optional[Union[date, str]] = None,
    scholarship_id: Optional[str] = None,
    custom_dates: Optional[Dict[str, str]] = None,
    additional_discount_percentage: Amount = ZERO,
) -> FeeStructureReview:
    """`compute_fee_review` that degrades to `build_fallback_review` instead of raising."""
    try:
        return compute_fee_review(
            fee_structure,
            scholarships,
            selected_plan,
            test_score=test_score,
            cohort_start_date=cohort_start_date,
            scholarship_id=scholarship_id,
            custom_dates=custom_dates,
            additional_discount_percentage=additional_discount_percentage,
        )
    except COMPUTATION_ERRORS:
        logger.warning(
            "Fee review computation failed for plan %s; serving summary-only review",
            selected_plan,
            exc_info=True,
        )
        return build_fallback_review(fee_structure, selected_plan)
