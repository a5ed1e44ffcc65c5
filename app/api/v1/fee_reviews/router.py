"""Fee reviews router: wizard preview and reviews from stored cohort data."""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.enums import PaymentPlan
from app.core.exceptions import ServiceError
from app.db.session import get_db
from app.fee_engine.schemas import FeeStructureReview

from .schemas import DefaultDatesResponse, FeeReviewMatrixResponse, FeeReviewPreviewRequest
from . import service

router = APIRouter(prefix="/api/v1/fee-reviews", tags=["fee-reviews"])


@router.post(
    "/preview",
    response_model=FeeStructureReview,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def preview_fee_review(payload: FeeReviewPreviewRequest) -> FeeStructureReview:
    return service.preview_review(payload)


@router.get(
    "/cohort/{cohort_id}",
    response_model=FeeStructureReview,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_cohort_fee_review(
    cohort_id: UUID,
    plan: Optional[PaymentPlan] = Query(None, description="Defaults to the student's chosen plan, else one_shot"),
    scholarship_id: Optional[str] = Query(None, description="Scholarship id or 'no_scholarship'"),
    student_id: Optional[UUID] = None,
    test_score: Optional[Decimal] = Query(None, ge=0, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureReview:
    try:
        return await service.cohort_review(
            db,
            current_user.tenant_id,
            cohort_id,
            plan=plan,
            scholarship_id=scholarship_id,
            student_id=student_id,
            test_score=test_score,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/cohort/{cohort_id}/default-dates",
    response_model=DefaultDatesResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_default_dates(
    cohort_id: UUID,
    plan: PaymentPlan,
    student_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> DefaultDatesResponse:
    try:
        return await service.default_dates(db, current_user.tenant_id, cohort_id, plan, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/cohort/{cohort_id}/all",
    response_model=FeeReviewMatrixResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_fee_review_matrix(
    cohort_id: UUID,
    student_id: Optional[UUID] = None,
    test_score: Optional[Decimal] = Query(None, ge=0, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeReviewMatrixResponse:
    try:
        return await service.review_matrix(
            db, current_user.tenant_id, cohort_id, student_id=student_id, test_score=test_score
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
