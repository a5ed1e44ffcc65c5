"""Scholarships router: cohort tiers, wizard validation, per-student awards."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError, ValidationFailed
from app.db.session import get_db

from .schemas import (
    ScholarshipResponse,
    ScholarshipsSaveRequest,
    ScholarshipValidateRequest,
    ScholarshipValidateResponse,
    StudentScholarshipResponse,
    StudentScholarshipUpsert,
)
from . import service

router = APIRouter(prefix="/api/v1/scholarships", tags=["scholarships"])


@router.post(
    "/validate",
    response_model=ScholarshipValidateResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def validate_scholarships(payload: ScholarshipValidateRequest) -> ScholarshipValidateResponse:
    return service.check_scholarships(payload.scholarships, payload.require_at_least_one)


# --- Cohort scholarships ---
@router.get(
    "/cohort/{cohort_id}",
    response_model=List[ScholarshipResponse],
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def list_cohort_scholarships(
    cohort_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ScholarshipResponse]:
    try:
        return await service.list_cohort_scholarships(db, current_user.tenant_id, cohort_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/cohort/{cohort_id}",
    response_model=List[ScholarshipResponse],
    dependencies=[Depends(check_permission("fees", "update"))],
)
async def save_cohort_scholarships(
    cohort_id: UUID,
    payload: ScholarshipsSaveRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ScholarshipResponse]:
    try:
        return await service.save_cohort_scholarships(
            db, current_user.tenant_id, cohort_id, payload.scholarships, current_user.id
        )
    except ValidationFailed as e:
        raise HTTPException(status_code=e.status_code, detail=e.errors)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Student scholarship ---
@router.put(
    "/cohort/{cohort_id}/students/{student_id}",
    response_model=StudentScholarshipResponse,
    dependencies=[Depends(check_permission("fees", "update"))],
)
async def upsert_student_scholarship(
    cohort_id: UUID,
    student_id: UUID,
    payload: StudentScholarshipUpsert,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentScholarshipResponse:
    try:
        return await service.upsert_student_scholarship(
            db, current_user.tenant_id, cohort_id, student_id, payload, current_user.id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/cohort/{cohort_id}/students/{student_id}",
    response_model=StudentScholarshipResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_student_scholarship(
    cohort_id: UUID,
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentScholarshipResponse:
    row = await service.get_student_scholarship(db, current_user.tenant_id, cohort_id, student_id)
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student scholarship not found",
        )
    return row
