"""Cohort service layer."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.core.models import Cohort

from .schemas import CohortCreate, CohortResponse

logger = logging.getLogger(__name__)


async def get_cohort_or_404(db: AsyncSession, tenant_id: UUID, cohort_id: UUID) -> Cohort:
    """Tenant-scoped cohort lookup shared by the fee structure, scholarship and review services."""
    result = await db.execute(
        select(Cohort).where(Cohort.id == cohort_id, Cohort.tenant_id == tenant_id)
    )
    cohort = result.scalar_one_or_none()
    if not cohort:
        raise ServiceError("Cohort not found", status.HTTP_404_NOT_FOUND)
    return cohort


async def create_cohort(
    db: AsyncSession,
    tenant_id: UUID,
    payload: CohortCreate,
) -> CohortResponse:
    name = payload.name.strip()
    if not name:
        raise ServiceError("Cohort name is required", status.HTTP_400_BAD_REQUEST)
    cohort = Cohort(tenant_id=tenant_id, name=name, start_date=payload.start_date)
    db.add(cohort)
    await db.commit()
    await db.refresh(cohort)
    logger.info("Created cohort %s", cohort.id, extra={"tenant_id": str(tenant_id), "cohort_id": str(cohort.id)})
    return CohortResponse.model_validate(cohort)


async def list_cohorts(db: AsyncSession, tenant_id: UUID) -> List[CohortResponse]:
    result = await db.execute(
        select(Cohort).where(Cohort.tenant_id == tenant_id).order_by(Cohort.start_date.desc(), Cohort.name)
    )
    return [CohortResponse.model_validate(c) for c in result.scalars().all()]


async def get_cohort(
    db: AsyncSession,
    tenant_id: UUID,
    cohort_id: UUID,
) -> Optional[CohortResponse]:
    result = await db.execute(
        select(Cohort).where(Cohort.id == cohort_id, Cohort.tenant_id == tenant_id)
    )
    cohort = result.scalar_one_or_none()
    return CohortResponse.model_validate(cohort) if cohort else None
