"""Fee review service: loads stored fee data and hands it to the fee engine."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.cohorts.service import get_cohort_or_404
from app.api.v1.fee_structures.service import get_effective_fee_structure, to_fee_structure_input
from app.api.v1.scholarships.service import get_student_scholarship_row, list_scholarship_inputs
from app.core.config import settings
from app.core.enums import PaymentPlan
from app.core.exceptions import ServiceError
from app.fee_engine.dates import generate_default_dates
from app.fee_engine.review import review_with_fallback
from app.fee_engine.schemas import NO_SCHOLARSHIP, FeeStructureReview
from app.fee_engine.session import REVIEW_PLANS, FeeReviewSession

from .schemas import DefaultDatesResponse, FeeReviewMatrixResponse, FeeReviewPreviewRequest


def preview_review(payload: FeeReviewPreviewRequest) -> FeeStructureReview:
    custom_dates = payload.custom_dates
    if custom_dates is None:
        custom_dates = payload.fee_structure.dates_for_plan(payload.plan)
    return review_with_fallback(
        payload.fee_structure,
        payload.scholarships,
        payload.plan,
        test_score=payload.test_score,
        cohort_start_date=payload.cohort_start_date,
        scholarship_id=payload.scholarship_id,
        custom_dates=custom_dates,
        additional_discount_percentage=payload.additional_discount_percentage,
    )


async def _load_structure(db: AsyncSession, tenant_id: UUID, cohort_id: UUID, student_id: Optional[UUID]):
    fs = await get_effective_fee_structure(db, tenant_id, cohort_id, student_id)
    if fs is None:
        raise ServiceError("Fee structure not found", status.HTTP_404_NOT_FOUND)
    return fs


def _resolve_plan(plan: Optional[PaymentPlan], stored_plan: Optional[str]) -> PaymentPlan:
    if plan is not None:
        return plan
    if stored_plan and stored_plan != PaymentPlan.NOT_SELECTED.value:
        return PaymentPlan(stored_plan)
    return PaymentPlan.ONE_SHOT


async def cohort_review(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    plan: Optional[PaymentPlan] = None,
    scholarship_id: Optional[str] = None,
    student_id: Optional[UUID] = None,
    test_score: Optional[Decimal] = None,
) -> FeeStructureReview:
    """
    Review from stored data: the student's custom structure when present, the
    cohort's tiers and start date, and the plan's saved payment dates.

    Without an explicit scholarship id, a student's awarded scholarship (and
    its additional discount) is used before falling back to the test score.
    """
    cohort = await get_cohort_or_404(db, tenant_id, cohort_id)
    fs = await _load_structure(db, tenant_id, cohort_id, student_id)
    fee_input = to_fee_structure_input(fs)
    scholarships = await list_scholarship_inputs(db, tenant_id, cohort_id)
    selected_plan = _resolve_plan(plan, fs.selected_payment_plan)

    additional = Decimal("0")
    if student_id is not None:
        award = await get_student_scholarship_row(db, tenant_id, cohort_id, student_id)
        if award is not None and scholarship_id in (None, str(award.scholarship_id)):
            scholarship_id = str(award.scholarship_id)
            additional = award.additional_discount_percentage or Decimal("0")

    return review_with_fallback(
        fee_input,
        scholarships,
        selected_plan,
        test_score=test_score,
        cohort_start_date=cohort.start_date,
        scholarship_id=scholarship_id,
        custom_dates=fee_input.dates_for_plan(selected_plan),
        additional_discount_percentage=additional,
    )


async def default_dates(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    plan: PaymentPlan,
    student_id: Optional[UUID] = None,
) -> DefaultDatesResponse:
    """Every date key of the plan with its default date, overlaid with the saved dates."""
    cohort = await get_cohort_or_404(db, tenant_id, cohort_id)
    fee_input = to_fee_structure_input(await _load_structure(db, tenant_id, cohort_id, student_id))
    dates = generate_default_dates(
        plan,
        cohort.start_date,
        fee_input.number_of_semesters,
        fee_input.instalments_per_semester,
    )
    dates.update({k: v for k, v in fee_input.dates_for_plan(plan).items() if k in dates and v})
    return DefaultDatesResponse(plan=plan, dates=dates)


async def review_matrix(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
    student_id: Optional[UUID] = None,
    test_score: Optional[Decimal] = None,
) -> FeeReviewMatrixResponse:
    """Preloads a review session and returns every plan x scholarship review it could compute."""
    cohort = await get_cohort_or_404(db, tenant_id, cohort_id)
    fee_input = to_fee_structure_input(await _load_structure(db, tenant_id, cohort_id, student_id))
    scholarships = await list_scholarship_inputs(db, tenant_id, cohort_id)

    session = FeeReviewSession(
        fee_input,
        scholarships,
        cohort.start_date,
        test_score=test_score,
        debounce_seconds=settings.review_debounce_seconds,
    )
    try:
        await session.preload()
        reviews: List[FeeStructureReview] = []
        for plan in REVIEW_PLANS:
            for scholarship_id in [NO_SCHOLARSHIP] + [s.id for s in scholarships]:
                review = session.cached(plan, scholarship_id, {})
                if review is not None:
                    reviews.append(review)
    finally:
        session.close()
    return FeeReviewMatrixResponse(cohort_id=str(cohort_id), reviews=reviews)
