"""Cohorts router."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import check_permission
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import CohortCreate, CohortResponse
from . import service

router = APIRouter(prefix="/api/v1/cohorts", tags=["cohorts"])


@router.post(
    "",
    response_model=CohortResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("cohorts", "create"))],
)
async def create_cohort(
    payload: CohortCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CohortResponse:
    try:
        return await service.create_cohort(db, current_user.tenant_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[CohortResponse],
    dependencies=[Depends(check_permission("cohorts", "read"))],
)
async def list_cohorts(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[CohortResponse]:
    return await service.list_cohorts(db, current_user.tenant_id)


@router.get(
    "/{cohort_id}",
    response_model=CohortResponse,
    dependencies=[Depends(check_permission("cohorts", "read"))],
)
async def get_cohort(
    cohort_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CohortResponse:
    cohort = await service.get_cohort(db, current_user.tenant_id, cohort_id)
    if not cohort:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Cohort not found",
        )
    return cohort
