"""Fee structures router: cohort structure, setup lifecycle, per-student overrides."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError, ValidationFailed
from app.db.session import get_db

from .schemas import FeeStructureResponse, FeeStructureUpsert, StudentFeeStructureUpsert
from . import service

router = APIRouter(prefix="/api/v1/fee-structures", tags=["fee-structures"])


# --- Cohort fee structure ---
@router.put(
    "/cohort/{cohort_id}",
    response_model=FeeStructureResponse,
    dependencies=[Depends(check_permission("fees", "update"))],
)
async def upsert_cohort_fee_structure(
    cohort_id: UUID,
    payload: FeeStructureUpsert,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureResponse:
    try:
        return await service.upsert_cohort_fee_structure(
            db, current_user.tenant_id, cohort_id, payload, current_user.id
        )
    except ValidationFailed as e:
        raise HTTPException(status_code=e.status_code, detail=e.errors)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/cohort/{cohort_id}",
    response_model=FeeStructureResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_cohort_fee_structure(
    cohort_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureResponse:
    fs = await service.get_cohort_fee_structure(db, current_user.tenant_id, cohort_id)
    if not fs:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Fee structure not found",
        )
    return fs


@router.post(
    "/cohort/{cohort_id}/complete",
    response_model=FeeStructureResponse,
    dependencies=[Depends(check_permission("fees", "update"))],
)
async def complete_fee_structure_setup(
    cohort_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureResponse:
    try:
        return await service.set_setup_complete(
            db, current_user.tenant_id, cohort_id, True, current_user.id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/cohort/{cohort_id}/edit",
    response_model=FeeStructureResponse,
    dependencies=[Depends(check_permission("fees", "update"))],
)
async def reopen_fee_structure_setup(
    cohort_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureResponse:
    try:
        return await service.set_setup_complete(
            db, current_user.tenant_id, cohort_id, False, current_user.id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Student override ---
@router.put(
    "/cohort/{cohort_id}/students/{student_id}",
    response_model=FeeStructureResponse,
    dependencies=[Depends(check_permission("fees", "update"))],
)
async def upsert_student_fee_structure(
    cohort_id: UUID,
    student_id: UUID,
    payload: StudentFeeStructureUpsert,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureResponse:
    try:
        return await service.upsert_student_fee_structure(
            db, current_user.tenant_id, cohort_id, student_id, payload, current_user.id
        )
    except ValidationFailed as e:
        raise HTTPException(status_code=e.status_code, detail=e.errors)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/cohort/{cohort_id}/students/{student_id}",
    response_model=FeeStructureResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_student_fee_structure(
    cohort_id: UUID,
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureResponse:
    fs = await service.get_student_fee_structure(db, current_user.tenant_id, cohort_id, student_id)
    if not fs:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Custom fee structure not found",
        )
    return fs
